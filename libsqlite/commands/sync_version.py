import click
import sys
from .. import config as config_module
from ..build_backend import get_backend
from ..cli_logger import logger
from ..exceptions import BackendError

def next_version(current, sqlite_version):
    """Return the new package version, or None when current already tracks sqlite_version.

    A pre-release suffix ("3.45.1-2") is kept as long as its base matches.
    """
    base = str(current).split("-", 1)[0]
    if base == sqlite_version:
        return None
    return sqlite_version

@click.command(name="sync-version")
@click.pass_context
def sync_version(ctx):
    """Set the package version to the SQLite version the backend builds."""
    path = ctx.obj["path"]
    raw_conf = config_module.load_config(path=path)
    conf = config_module.get_build_settings(raw_conf)
    backend = get_backend(conf["build"]["backend"], flake=conf["build"]["flake"], attribute=conf["build"]["attribute"], cwd=path)

    logger.info("Getting SQLite version from the build backend...")
    try:
        sqlite_version = backend.print_version()
    except BackendError as e:
        logger.error(f"Failed to get SQLite version: {e}")
        sys.exit(1)
    logger.info(f"SQLite version: {sqlite_version}")

    current = conf["package"]["version"]
    new = next_version(current, sqlite_version)
    if new is None:
        logger.success(f"SQLite version matches, keeping current version: {current}")
        return

    logger.info(f"Updating to new SQLite version: {current} -> {new}")
    raw_conf.setdefault("package", {})["version"] = new
    if not config_module.save_config(raw_conf, path=path):
        sys.exit(1)
    logger.success("Package version synced successfully!")
