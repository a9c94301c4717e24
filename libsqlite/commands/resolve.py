import click
import os
import sys
from .. import config as config_module
from ..exceptions import ArtifactNotFound
from ..resolver import candidate_paths, resolve_library_path
from ..platforms import detect_host

@click.command()
@click.pass_context
@click.argument("lib_dir", required=False)
@click.option("--platform", "platform_name", default=None, help="Platform to resolve for (default: this host).")
@click.option("--arch", default=None, help="Architecture to resolve for (default: this host).")
@click.option("--show-candidates", is_flag=True, help="Print every candidate path in probe order.")
def resolve(ctx, lib_dir, platform_name, arch, show_candidates):
    """Resolve the library in LIB_DIR (default: the package's lib directory)."""
    path = ctx.obj["path"]
    conf = config_module.get_build_settings(config_module.load_config(path=path))
    library_name = conf["library"]["name"]
    if lib_dir is None:
        lib_dir = os.path.join(path, conf["build"]["dist_dir"], conf["package"]["module"], "lib")

    host_platform, host_arch = detect_host()
    platform_name = platform_name or host_platform
    arch = arch or host_arch

    if show_candidates:
        for candidate in candidate_paths(platform_name, arch, lib_dir, library_name):
            click.echo(f"  {candidate}", err=True)

    try:
        click.echo(resolve_library_path(platform_name, arch, lib_dir, library_name))
    except ArtifactNotFound as e:
        click.echo(str(e), err=True)
        sys.exit(1)
