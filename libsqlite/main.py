import click
from .commands import build, clean, dev_path, lib_path, log, resolve, sync_version, targets, version


@click.group()
@click.option("--path", "-p", default=".", help="Path to the project directory.")
@click.pass_context
def cli(ctx, path):
    """libsqlite build and resolution tool."""
    ctx.obj = {"path": path}

cli.add_command(build)
cli.add_command(clean)
cli.add_command(targets)
cli.add_command(resolve)
cli.add_command(dev_path)
cli.add_command(lib_path)
cli.add_command(sync_version)
cli.add_command(version)
cli.add_command(log)

if __name__ == '__main__':
    cli()
