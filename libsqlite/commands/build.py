import click
import os
import sys
from .. import config as config_module
from .. import builder, packager
from ..build_backend import get_backend
from ..cli_logger import logger
from ..decorators import handle_exceptions
from ..exceptions import PackagingStepFailed
from ..platforms import find_targets

@click.command()
@click.pass_context
@click.option("--target", "-t", "target_names", multiple=True, help="Build only this target (e.g. aarch64-darwin). Repeatable.")
@click.option("--max-workers", "-j", type=int, default=None, help="Number of targets built at the same time.")
@click.option("--output", "-o", default=None, help="Directory the package is written to.")
@click.option("--baked-path", default=None, help="Library path to try before the bundled ones.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@handle_exceptions
def build(ctx, target_names, max_workers, output, baked_path, verbose):
    """Build the SQLite library for every platform target and package it."""
    path = ctx.obj["path"]
    logger.verbose = verbose
    conf = config_module.get_build_settings(config_module.load_config(path=path))

    # Override config values with command-line arguments if provided
    if target_names: conf["build"]["targets"] = list(target_names)
    if max_workers: conf["build"]["max_workers"] = max(1, max_workers)
    if output: conf["build"]["dist_dir"] = output
    if baked_path: conf["build"]["baked_path"] = baked_path

    try:
        targets = find_targets(conf["build"]["targets"])
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--target")

    library_name = conf["library"]["name"]
    package_conf = dict(conf["package"])
    package_conf["readme"] = os.path.join(path, package_conf["readme"])
    dist_dir = os.path.join(path, conf["build"]["dist_dir"])

    logger.info(f"Building production package for {package_conf['name']} {package_conf['version']}")
    backend = get_backend(
        conf["build"]["backend"],
        flake=conf["build"]["flake"],
        attribute=conf["build"]["attribute"],
        cwd=path,
        verbose=verbose,
    )

    try:
        packager.check_package_conf(package_conf)
        lib_dir = packager.clean_dist_dir(dist_dir, package_conf["module"])
        summary = builder.build_all_libraries(
            targets,
            backend,
            lib_dir,
            library_name=library_name,
            max_workers=conf["build"]["max_workers"],
        )
        packager.package(
            summary,
            dist_dir,
            package_conf,
            library_name=library_name,
            baked_path=conf["build"]["baked_path"] or None,
        )
    except PackagingStepFailed as e:
        logger.error(f"Build failed: {e}")
        sys.exit(1)

    packager.print_build_summary(summary, dist_dir)
    if summary.is_universal:
        logger.success("Production build complete!")
    else:
        logger.warning(f"Production build complete with {summary.succeeded}/{summary.total} targets.")
