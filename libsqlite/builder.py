import enum
import os
import re
import shutil
import stat
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List

from .cli_logger import logger
from .exceptions import TargetBuildFailed
from .platforms import DEFAULT_LIBRARY_NAME, PlatformTarget, canonical_library_name

DEFAULT_MAX_WORKERS = 2


class TargetState(enum.Enum):
    PENDING = "pending"
    BUILDING = "building"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class BuildResult:
    target: PlatformTarget
    file_name: str
    path: str


@dataclass
class BuildSummary:
    targets: List[PlatformTarget]
    results: List[BuildResult] = field(default_factory=list)
    failures: List[TargetBuildFailed] = field(default_factory=list)
    states: Dict[str, TargetState] = field(default_factory=dict)

    @property
    def total(self):
        return len(self.targets)

    @property
    def succeeded(self):
        return len(self.results)

    @property
    def is_universal(self):
        return self.succeeded == self.total

    @property
    def missing_targets(self):
        built = {result.target for result in self.results}
        return [target for target in self.targets if target not in built]


def select_library_file(file_names, library_name, extension):
    """
    Pick the real library among the files of a build's lib directory.

    Preference: a versioned lib<name>.MAJOR.MINOR.PATCH.* file, then the
    exact lib<name>.<ext>, then any file mentioning the library name and
    ending in .<ext>. Returns None when nothing qualifies.
    """
    names = sorted(file_names)
    versioned = re.compile(rf"^lib{re.escape(library_name)}\.\d+\.\d+\.\d+\.")
    exact = f"lib{library_name}.{extension}"

    for name in names:
        if versioned.match(name):
            return name
    if exact in names:
        return exact
    for name in names:
        if library_name in name and name.endswith(f".{extension}"):
            return name
    return None


def copy_library(source, destination):
    """Copy source to destination as a regular file, following symlinks."""
    if os.path.lexists(destination):
        os.remove(destination)
    shutil.copyfile(source, destination, follow_symlinks=True)
    shutil.copymode(source, destination, follow_symlinks=True)
    # Store paths are read-only; the copy must stay replaceable.
    mode = os.stat(destination).st_mode
    os.chmod(destination, mode | stat.S_IWUSR)
    return destination


def build_platform_library(target, backend, output_dir, library_name=DEFAULT_LIBRARY_NAME):
    """Build, locate and copy the library for one target.

    Raises TargetBuildFailed for every way the target can fail.
    """
    logger.info(f"Building {target.description} ({target.build_system})...")

    try:
        returncode = backend.build(target.build_system)
    except Exception as e:
        raise TargetBuildFailed(target.build_system, f"build raised {e}") from e
    if returncode != 0:
        raise TargetBuildFailed(target.build_system, f"build exited with code {returncode}, not available on this system")

    try:
        store_path = backend.evaluate(target.build_system)
    except Exception as e:
        raise TargetBuildFailed(target.build_system, f"could not get output path: {e}") from e

    source_lib_dir = os.path.join(store_path.strip(), "lib")
    try:
        lib_files = os.listdir(source_lib_dir)
    except OSError as e:
        raise TargetBuildFailed(target.build_system, f"cannot list {source_lib_dir}: {e}") from e

    selected = select_library_file(lib_files, library_name, target.extension)
    if selected is None:
        raise TargetBuildFailed(target.build_system, f"no library file found in {source_lib_dir}")

    source_path = os.path.join(source_lib_dir, selected)
    file_name = canonical_library_name(target.platform, target.arch, target.extension, library_name)
    target_path = os.path.join(output_dir, file_name)
    try:
        copy_library(source_path, target_path)
    except OSError as e:
        raise TargetBuildFailed(target.build_system, f"failed to copy {source_path} to {target_path}: {e}") from e

    logger.success(f"{file_name} -> {target.description}")
    return BuildResult(target=target, file_name=file_name, path=target_path)


def _build_target(summary, target, backend, output_dir, library_name):
    summary.states[target.build_system] = TargetState.BUILDING
    try:
        result = build_platform_library(target, backend, output_dir, library_name)
    except TargetBuildFailed as e:
        summary.states[target.build_system] = TargetState.FAILED
        logger.warning(f"Skipping {e}")
        return e
    except Exception as e:
        summary.states[target.build_system] = TargetState.FAILED
        logger.exception(*sys.exc_info())
        return TargetBuildFailed(target.build_system, f"unexpected error: {e}")
    summary.states[target.build_system] = TargetState.SUCCEEDED
    return result


def build_all_libraries(targets, backend, output_dir, library_name=DEFAULT_LIBRARY_NAME, max_workers=DEFAULT_MAX_WORKERS):
    """
    Build every target with at most max_workers builds in flight.

    A failing target never aborts the run. Results keep the order of targets.
    """
    targets = list(targets)
    summary = BuildSummary(targets=targets)
    summary.states.update({t.build_system: TargetState.PENDING for t in targets})
    os.makedirs(output_dir, exist_ok=True)

    logger.info(f"Building SQLite libraries for {len(targets)} platforms...")
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
        futures = [
            executor.submit(_build_target, summary, target, backend, output_dir, library_name)
            for target in targets
        ]
        outcomes = [future.result() for future in futures]

    for outcome in outcomes:
        if isinstance(outcome, BuildResult):
            summary.results.append(outcome)
        else:
            summary.failures.append(outcome)

    message = f"Built {summary.succeeded}/{summary.total} platform libraries"
    if summary.is_universal:
        logger.success(message)
    else:
        logger.warning(f"{message}; the package is not universal.")
    return summary
