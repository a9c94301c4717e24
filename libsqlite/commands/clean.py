import click
import shutil
import os
from .. import config as config_module
from ..cli_logger import logger

@click.command()
@click.pass_context
def clean(ctx):
    """Remove the generated package directory."""
    path = ctx.obj["path"]
    conf = config_module.get_build_settings(config_module.load_config(path=path))
    dist_dir = os.path.join(path, conf["build"]["dist_dir"])

    if not os.path.isdir(dist_dir):
        logger.info("Project is already clean.")
        return

    logger.info(f"Attempting to remove directory {dist_dir}...")
    try:
        shutil.rmtree(dist_dir)
        logger.success(f"Removed directory {dist_dir}")
    except OSError as e:
        logger.error(f"Error removing directory {dist_dir}: {e}")
        logger.info("Please check file permissions and ensure the directory is not in use.")
