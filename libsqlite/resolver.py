"""
Library path resolution.

Given a platform, an architecture and a directory of packaged artifacts, pick
the single shared library to load. Candidates are probed in a fixed order and
the first one that exists wins:

    0. an optional path baked in at packaging time
    1. lib<name>-<platform>-<arch>.<ext>
    2. lib<name>.<ext>
    3. lib<name>.dylib, then lib<name>.so, whatever the host is

Step 3 lets a Linux host pick up a lone .dylib and vice versa. It is a
candidate for tightening once every published package carries exact names.
"""

import os
import re
import threading
from typing import Callable, List, Optional

from .exceptions import ArtifactNotFound
from .platforms import (
    DEFAULT_LIBRARY_NAME,
    canonical_library_name,
    detect_host,
    library_extension,
    normalize_arch,
    normalize_platform,
)

DEFAULT_LIB_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "lib")


def candidate_paths(platform, arch, lib_dir, library_name=DEFAULT_LIBRARY_NAME, baked_path=None) -> List[str]:
    """Return the ordered, de-duplicated list of absolute paths to probe."""
    platform = normalize_platform(platform)
    arch = normalize_arch(arch)
    ext = library_extension(platform)
    lib_dir = os.path.abspath(lib_dir)

    names = [
        canonical_library_name(platform, arch, ext, library_name),
        f"lib{library_name}.{ext}",
        f"lib{library_name}.dylib",
        f"lib{library_name}.so",
    ]
    candidates = [os.path.abspath(baked_path)] if baked_path else []
    for name in names:
        path = os.path.join(lib_dir, name)
        if path not in candidates:
            candidates.append(path)
    return candidates


def available_platforms(lib_dir, library_name=DEFAULT_LIBRARY_NAME):
    """List the platform-arch keys of canonically named files in lib_dir."""
    pattern = re.compile(rf"^lib{re.escape(library_name)}-([a-z]+-[a-z0-9_]+)\.(so|dylib)$")
    try:
        entries = sorted(os.listdir(lib_dir))
    except OSError:
        return []
    return [m.group(1) for m in map(pattern.match, entries) if m]


def resolve_library_path(
    platform: Optional[str] = None,
    arch: Optional[str] = None,
    lib_dir: Optional[str] = None,
    library_name: str = DEFAULT_LIBRARY_NAME,
    baked_path: Optional[str] = None,
    exists: Callable[[str], bool] = os.path.exists,
) -> str:
    """
    Resolve the shared library for a platform/arch pair.

    Args:
        platform: Raw platform name; defaults to the running interpreter's.
        arch: Raw machine name; defaults to the running interpreter's.
        lib_dir: Directory holding the packaged artifacts.
        library_name: Library name without the 'lib' prefix.
        baked_path: Optional priority-zero candidate.
        exists: Existence predicate, injectable for tests.

    Returns:
        The absolute path of the first existing candidate.

    Raises:
        ArtifactNotFound: If no candidate exists.
    """
    host_platform, host_arch = detect_host()
    platform = normalize_platform(platform if platform is not None else host_platform)
    arch = normalize_arch(arch if arch is not None else host_arch)
    lib_dir = lib_dir or DEFAULT_LIB_DIR

    for candidate in candidate_paths(platform, arch, lib_dir, library_name, baked_path):
        if exists(candidate):
            return candidate

    expected = canonical_library_name(platform, arch, library_extension(platform), library_name)
    raise ArtifactNotFound(platform, arch, expected, available_platforms(lib_dir, library_name))


class LibraryPath:
    """
    Lazily resolved, cached library path.

    The first successful ``get()`` is cached for the lifetime of the object.
    Concurrent first calls resolve once. A failed resolution is raised to the
    caller and not cached.
    """

    def __init__(self, resolve=resolve_library_path, **options):
        self._resolve = resolve
        self._options = options
        self._lock = threading.Lock()
        self._path = None

    def get(self) -> str:
        if self._path is not None:
            return self._path
        with self._lock:
            if self._path is None:
                self._path = self._resolve(**self._options)
            return self._path

    def reset(self):
        with self._lock:
            self._path = None

    @property
    def resolved(self):
        return self._path is not None


_default_path = LibraryPath()


def get_library_path(fallback=None):
    """Return the SQLite library bundled with this package.

    When nothing is bundled and ``fallback`` is given, its result is returned
    instead, e.g. the development build reported by the build backend.
    """
    try:
        return _default_path.get()
    except ArtifactNotFound:
        if fallback is None:
            raise
        return fallback()
