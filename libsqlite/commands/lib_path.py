import click
import sys
from .. import config as config_module
from ..build_backend import get_backend
from ..exceptions import ArtifactNotFound, BackendError
from ..resolver import get_library_path

@click.command(name="lib-path")
@click.option("--no-dev", is_flag=True, help="Fail instead of asking the build backend for the development build.")
@click.pass_context
def lib_path(ctx, no_dev):
    """Print the bundled SQLite library, or the development build when none is bundled."""
    path = ctx.obj["path"]
    conf = config_module.get_build_settings(config_module.load_config(path=path))
    backend = get_backend(conf["build"]["backend"], flake=conf["build"]["flake"], attribute=conf["build"]["attribute"], cwd=path)
    try:
        click.echo(get_library_path(fallback=None if no_dev else backend.print_path))
    except ArtifactNotFound as e:
        click.echo(str(e), err=True)
        sys.exit(1)
    except BackendError as e:
        click.echo(f"No bundled library and no development build: {e}", err=True)
        sys.exit(1)
