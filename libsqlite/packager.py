"""
Turn a set of built libraries into a distributable Python package.

Layout written under the dist directory:

    pyproject.toml              manifest with package data and console scripts
    README.md                   copied when present
    bin/sqlite-lib-path         executable wrapper around <module>.cli
    <module>/__init__.py        standalone resolver with the built platforms baked in
    <module>/cli.py             prints the resolved path
    <module>/lib/               lib<name>-<platform>-<arch>.<ext> files
"""

import os
import re
import shutil
import string

import toml

from .cli_logger import logger
from .exceptions import PackagingStepFailed
from .platforms import (
    DEFAULT_LIBRARY_NAME,
    PLATFORM_TARGETS,
    ARM64_ALIASES,
    DARWIN_ALIASES,
)

CLI_NAME = "sqlite-lib-path"

# Distribution, import package and console script of the build tool itself
TOOL_NAME = "libsqlite"

RUNTIME_MODULE_TEMPLATE = string.Template('''\
"""Absolute path to the bundled lib${library_name} shared library."""

import os
import platform as _platform
import sys
import threading

__version__ = ${version}

LIBRARY_NAME = ${library_name_repr}
LIBRARY_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "lib")
BAKED_PATH = ${baked_path}
AVAILABLE_PLATFORMS = ${available}
SUPPORTED_TARGETS = ${supported}

_DARWIN_ALIASES = ${darwin_aliases}
_ARM64_ALIASES = ${arm64_aliases}


class ArtifactNotFound(FileNotFoundError):
    def __init__(self, platform, arch, expected):
        self.platform = platform
        self.arch = arch
        self.expected = expected
        super().__init__(
            "SQLite library not found for %s/%s. Expected: %s. "
            "Available platforms: %s. This package supports: %s"
            % (platform, arch, expected, ", ".join(AVAILABLE_PLATFORMS) or "none",
               ", ".join(SUPPORTED_TARGETS))
        )


def _normalize_platform(value):
    return "darwin" if value and value.lower() in _DARWIN_ALIASES else "linux"


def _normalize_arch(value):
    return "aarch64" if value and value.lower() in _ARM64_ALIASES else "x86_64"


def candidate_paths(platform=None, arch=None):
    platform = _normalize_platform(sys.platform if platform is None else platform)
    arch = _normalize_arch(_platform.machine() if arch is None else arch)
    ext = "dylib" if platform == "darwin" else "so"
    names = [
        "lib%s-%s-%s.%s" % (LIBRARY_NAME, platform, arch, ext),
        "lib%s.%s" % (LIBRARY_NAME, ext),
        "lib%s.dylib" % LIBRARY_NAME,
        "lib%s.so" % LIBRARY_NAME,
    ]
    candidates = [BAKED_PATH] if BAKED_PATH else []
    for name in names:
        path = os.path.join(LIBRARY_DIR, name)
        if path not in candidates:
            candidates.append(path)
    return candidates


def resolve_library_path(platform=None, arch=None):
    for candidate in candidate_paths(platform, arch):
        if os.path.exists(candidate):
            return candidate
    platform = _normalize_platform(sys.platform if platform is None else platform)
    arch = _normalize_arch(_platform.machine() if arch is None else arch)
    ext = "dylib" if platform == "darwin" else "so"
    raise ArtifactNotFound(platform, arch, "lib%s-%s-%s.%s" % (LIBRARY_NAME, platform, arch, ext))


_lock = threading.Lock()
_path = None


def get_library_path():
    """Resolve once, then return the cached path."""
    global _path
    if _path is None:
        with _lock:
            if _path is None:
                _path = resolve_library_path()
    return _path
''')

CLI_MODULE_TEMPLATE = string.Template('''\
import sys

from . import ArtifactNotFound, get_library_path


def main():
    try:
        print(get_library_path())
    except ArtifactNotFound as e:
        print(str(e), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
''')

BIN_SCRIPT_TEMPLATE = string.Template('''\
#!/usr/bin/env python3
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.realpath(__file__)), os.pardir))

from ${module}.cli import main

sys.exit(main())
''')


def _write_file(step, path, content, mode=None):
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w") as f:
            f.write(content)
        if mode is not None:
            os.chmod(path, mode)
    except OSError as e:
        raise PackagingStepFailed(step, f"cannot write {path}: {e}") from e
    return path


def library_dir(dist_dir, module):
    return os.path.join(dist_dir, module, "lib")


def clean_dist_dir(dist_dir, module):
    """Remove any previous package and recreate an empty library directory."""
    logger.info(f"Cleaning build directory {dist_dir}...")
    try:
        if os.path.lexists(dist_dir):
            shutil.rmtree(dist_dir)
        lib_dir = library_dir(dist_dir, module)
        os.makedirs(lib_dir, exist_ok=True)
    except OSError as e:
        raise PackagingStepFailed("clean", f"cannot prepare {dist_dir}: {e}") from e
    return lib_dir


def generate_runtime_module(summary, dist_dir, package_conf, library_name=DEFAULT_LIBRARY_NAME, baked_path=None):
    logger.info("Generating runtime module...")
    content = RUNTIME_MODULE_TEMPLATE.substitute(
        library_name=library_name,
        library_name_repr=repr(library_name),
        version=repr(str(package_conf["version"])),
        baked_path=repr(os.path.abspath(baked_path) if baked_path else None),
        available=repr([r.target.key for r in summary.results]),
        supported=repr([t.description for t in PLATFORM_TARGETS]),
        darwin_aliases=repr(sorted(DARWIN_ALIASES)),
        arm64_aliases=repr(sorted(ARM64_ALIASES)),
    )
    return _write_file("runtime module", os.path.join(dist_dir, package_conf["module"], "__init__.py"), content)


def generate_cli(dist_dir, package_conf):
    logger.info("Generating CLI...")
    module = package_conf["module"]
    _write_file("cli", os.path.join(dist_dir, module, "cli.py"), CLI_MODULE_TEMPLATE.substitute())
    return _write_file(
        "cli",
        os.path.join(dist_dir, "bin", CLI_NAME),
        BIN_SCRIPT_TEMPLATE.substitute(module=module),
        mode=0o755,
    )


def check_package_conf(package_conf):
    """Refuse names that would replace the build tool when the package is installed."""
    if re.sub(r"[-_.]+", "-", package_conf["name"]).lower() == TOOL_NAME:
        raise PackagingStepFailed("manifest", f"package name '{TOOL_NAME}' belongs to the build tool; set another [package] name")
    if package_conf["module"] == TOOL_NAME:
        raise PackagingStepFailed("manifest", f"package module '{TOOL_NAME}' belongs to the build tool; set another [package] module")


def build_manifest(summary, package_conf, include_readme=False):
    """Return the pyproject.toml contents for the generated package as a dict."""
    check_package_conf(package_conf)
    module = package_conf["module"]
    entry_point = f"{module}.cli:main"
    project = {
        "name": package_conf["name"],
        "version": str(package_conf["version"]),
        "description": package_conf.get("description", ""),
        "requires-python": ">=3.8",
        "dependencies": [],
        "scripts": {CLI_NAME: entry_point},
    }
    if include_readme:
        project["readme"] = os.path.basename(package_conf["readme"])

    return {
        "build-system": {
            "requires": ["setuptools>=61"],
            "build-backend": "setuptools.build_meta",
        },
        "project": project,
        "tool": {
            "setuptools": {
                "packages": [module],
                "script-files": [f"bin/{CLI_NAME}"],
                "package-data": {
                    module: [f"lib/{result.file_name}" for result in summary.results],
                },
            },
        },
    }


def generate_manifest(summary, dist_dir, package_conf, include_readme=False):
    logger.info("Generating package manifest...")
    manifest = build_manifest(summary, package_conf, include_readme)
    return _write_file("manifest", os.path.join(dist_dir, "pyproject.toml"), toml.dumps(manifest))


def copy_static_files(dist_dir, readme):
    """Copy the README into the package. Returns True when it was copied."""
    logger.info("Copying static files...")
    if not readme or not os.path.isfile(readme):
        logger.warning(f"README not found at {readme}; the package will have no long description.")
        return False
    try:
        shutil.copy(readme, os.path.join(dist_dir, os.path.basename(readme)))
    except OSError as e:
        raise PackagingStepFailed("static files", f"cannot copy {readme}: {e}") from e
    return True


def print_build_summary(summary, dist_dir):
    logger.info("Build Summary:")
    logger.step_info(f"Built libraries: {summary.succeeded}/{summary.total}", indent=3)
    for result in summary.results:
        logger.step_info(f"✓ {result.file_name} - {result.target.description}", indent=3)
    for target in summary.missing_targets:
        logger.step_info(f"✖ {target.key} - {target.description} (missing)", indent=3)
    if not summary.is_universal:
        logger.warning("Package is not universal; re-run the build on a machine that can build the missing targets.")
    logger.info(f"Package created in {dist_dir}")
    try:
        logger.info(f"Package contents: {', '.join(sorted(os.listdir(dist_dir)))}")
    except OSError:
        pass


def package(summary, dist_dir, package_conf, library_name=DEFAULT_LIBRARY_NAME, baked_path=None):
    """Write everything except the libraries themselves, which the build placed already.

    Any failure here raises PackagingStepFailed and leaves no usable package.
    """
    include_readme = copy_static_files(dist_dir, package_conf.get("readme"))
    generate_runtime_module(summary, dist_dir, package_conf, library_name, baked_path)
    generate_cli(dist_dir, package_conf)
    generate_manifest(summary, dist_dir, package_conf, include_readme)
    return dist_dir
