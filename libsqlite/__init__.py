"""Prebuilt SQLite shared libraries: resolve the right one for this host, or build them all."""

from .exceptions import ArtifactNotFound, PackagingStepFailed, TargetBuildFailed
from .resolver import LibraryPath, get_library_path, resolve_library_path

__all__ = [
    "ArtifactNotFound",
    "LibraryPath",
    "PackagingStepFailed",
    "TargetBuildFailed",
    "get_library_path",
    "resolve_library_path",
]
