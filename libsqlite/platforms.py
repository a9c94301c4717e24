"""
Platform targets and host platform/architecture normalization.

Exactly two operating-system families (linux, darwin) and two architectures
(x86_64, aarch64) are supported. Anything else is folded into the linux and
x86_64 buckets.
"""

import platform as _platform
import sys
from dataclasses import dataclass
from typing import Optional, Tuple

LINUX = "linux"
DARWIN = "darwin"

X86_64 = "x86_64"
AARCH64 = "aarch64"

DARWIN_ALIASES = {"darwin", "macos", "mac", "osx", "macosx"}
ARM64_ALIASES = {"aarch64", "arm64", "armv8", "arm64e"}

DEFAULT_LIBRARY_NAME = "sqlite3"


@dataclass(frozen=True)
class PlatformTarget:
    build_system: str
    platform: str
    arch: str
    extension: str
    description: str

    @property
    def key(self):
        return f"{self.platform}-{self.arch}"


PLATFORM_TARGETS = (
    PlatformTarget(
        build_system="x86_64-linux",
        platform=LINUX,
        arch=X86_64,
        extension="so",
        description="Intel/AMD Linux (Docker, most servers)",
    ),
    PlatformTarget(
        build_system="aarch64-linux",
        platform=LINUX,
        arch=AARCH64,
        extension="so",
        description="ARM64 Linux (Raspberry Pi 4+, AWS Graviton)",
    ),
    PlatformTarget(
        build_system="x86_64-darwin",
        platform=DARWIN,
        arch=X86_64,
        extension="dylib",
        description="Intel Mac",
    ),
    PlatformTarget(
        build_system="aarch64-darwin",
        platform=DARWIN,
        arch=AARCH64,
        extension="dylib",
        description="Apple Silicon Mac (M1/M2/M3)",
    ),
)


def _check_unique(targets):
    seen = set()
    for target in targets:
        if target.key in seen:
            raise ValueError(f"Duplicate platform target: {target.key}")
        seen.add(target.key)


_check_unique(PLATFORM_TARGETS)


def normalize_platform(value: Optional[str]) -> str:
    """Map a raw platform name onto 'darwin' or 'linux'."""
    if value and value.strip().lower() in DARWIN_ALIASES:
        return DARWIN
    return LINUX


def normalize_arch(value: Optional[str]) -> str:
    """Map a raw machine name onto 'aarch64' or 'x86_64'."""
    if value and value.strip().lower() in ARM64_ALIASES:
        return AARCH64
    return X86_64


def library_extension(platform: str) -> str:
    return "dylib" if platform == DARWIN else "so"


def canonical_library_name(platform, arch, extension=None, library_name=DEFAULT_LIBRARY_NAME):
    """File name an artifact is published under, e.g. libsqlite3-darwin-aarch64.dylib."""
    extension = extension or library_extension(platform)
    return f"lib{library_name}-{platform}-{arch}.{extension}"


def detect_host() -> Tuple[str, str]:
    """Return the normalized (platform, arch) of the running interpreter."""
    return normalize_platform(sys.platform), normalize_arch(_platform.machine())


def find_targets(names):
    """Select targets by build-system identifier or platform-arch key.

    An empty selection means every known target.
    """
    if not names:
        return list(PLATFORM_TARGETS)

    selected = []
    for name in names:
        matches = [t for t in PLATFORM_TARGETS if name in (t.build_system, t.key)]
        if not matches:
            known = ", ".join(t.build_system for t in PLATFORM_TARGETS)
            raise ValueError(f"Unknown platform target '{name}'. Known targets: {known}")
        for target in matches:
            if target not in selected:
                selected.append(target)
    return selected
