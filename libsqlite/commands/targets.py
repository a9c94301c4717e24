import click
from ..cli_logger import logger
from ..platforms import PLATFORM_TARGETS, detect_host

@click.command()
def targets():
    """List the platform targets the library is built for."""
    host = "-".join(detect_host())
    logger.info("Platform targets:")
    for target in PLATFORM_TARGETS:
        marker = " (this host)" if target.key == host else ""
        logger.step_info(f"{target.build_system:<16} {target.key:<16} .{target.extension:<6} {target.description}{marker}", indent=2)
