import click
import sys
import importlib.metadata
from ..cli_logger import logger
from ..packager import TOOL_NAME

@click.command()
def version():
    """Show the installed libsqlite tool version."""
    try:
        logger.info(f"{TOOL_NAME} {importlib.metadata.version(TOOL_NAME)}")
    except importlib.metadata.PackageNotFoundError:
        logger.error(f"{TOOL_NAME} is not installed as a distribution; run 'pip install -e .' from the checkout.")
        sys.exit(1)
