"""Path helpers shared by the merger and the module graph builder."""

from __future__ import annotations

import posixpath
from pathlib import Path, PurePosixPath
from typing import Callable, Iterable, List, Optional, Sequence

from ..logging import get_logger

_LOGGER = get_logger("resolver.paths")

DEFAULT_BUILD_FILE_NAMES: tuple[str, ...] = ("BUILD",)

BuildFileLookup = Callable[[str], Optional[str]]


def canonical_module_name(address: str) -> str:
    """Return a module name safe for classpaths: no ``:`` and no path separators."""
    return address.replace(":", "_").replace("/", "_").replace("\\", "_")


def target_directory(address: str) -> str:
    """Return the directory part of a ``path:name`` target address."""
    index = address.rfind(":")
    return address[:index] if index >= 0 else address


def find_common_root(paths: Sequence[str]) -> Optional[str]:
    """Return the deepest directory shared by every path, or None when there is none."""
    if not paths:
        return None
    split = [PurePosixPath(path).parts for path in paths]
    common: List[str] = []
    for parts in zip(*split):
        if len(set(parts)) != 1:
            break
        common.append(parts[0])
    if not common or common == ["/"]:
        return None
    return str(PurePosixPath(*common))


def relative_path(path: str, work_dir: Optional[Path]) -> Optional[str]:
    """Return ``path`` relative to the work directory, or None when it cannot be computed."""
    if work_dir is None:
        return None
    candidate = PurePosixPath(path)
    if not candidate.is_absolute():
        return posixpath.normpath(path)
    return posixpath.relpath(str(candidate), work_dir.as_posix())


def anchored(path: str, work_dir: Optional[Path]) -> PurePosixPath:
    """Resolve a relative path against the work directory when one is known."""
    candidate = PurePosixPath(path)
    if not candidate.is_absolute() and work_dir is not None:
        candidate = PurePosixPath(work_dir.as_posix()) / candidate
    return PurePosixPath(posixpath.normpath(str(candidate)))


def is_under(path: str, root: str, work_dir: Optional[Path]) -> bool:
    child = anchored(path, work_dir)
    parent = anchored(root, work_dir)
    return child == parent or parent in child.parents


def is_build_file_name(name: str, build_file_names: Iterable[str] = DEFAULT_BUILD_FILE_NAMES) -> bool:
    return any(name == base or name.startswith(base + ".") for base in build_file_names)


class BuildFileProbe:
    """Finds the build definition file inside a target directory on disk."""

    def __init__(
        self,
        work_dir: Optional[Path],
        build_file_names: Sequence[str] = DEFAULT_BUILD_FILE_NAMES,
    ) -> None:
        self._work_dir = work_dir
        self._names = tuple(build_file_names)

    def __call__(self, directory: str) -> Optional[str]:
        if self._work_dir is None:
            return None
        folder = self._work_dir / directory
        try:
            entries = sorted(folder.iterdir())
        except OSError:
            return None
        for entry in entries:
            if entry.is_file() and is_build_file_name(entry.name, self._names):
                relative = entry.relative_to(self._work_dir).as_posix()
                _LOGGER.debug("Found build file %s for %s", relative, directory)
                return relative
        return None


def no_build_files(directory: str) -> Optional[str]:
    return None


__all__ = [
    "BuildFileLookup",
    "BuildFileProbe",
    "DEFAULT_BUILD_FILE_NAMES",
    "anchored",
    "canonical_module_name",
    "find_common_root",
    "is_build_file_name",
    "is_under",
    "no_build_files",
    "relative_path",
    "target_directory",
]
