import click
import sys
from .. import config as config_module
from ..build_backend import get_backend
from ..cli_logger import logger
from ..exceptions import BackendError

@click.command(name="dev-path")
@click.pass_context
def dev_path(ctx):
    """Print the library path from the development environment."""
    path = ctx.obj["path"]
    conf = config_module.get_build_settings(config_module.load_config(path=path))
    backend = get_backend(conf["build"]["backend"], flake=conf["build"]["flake"], attribute=conf["build"]["attribute"], cwd=path)
    try:
        click.echo(backend.print_path())
    except BackendError as e:
        logger.error(f"Failed to get library path: {e}")
        sys.exit(1)
