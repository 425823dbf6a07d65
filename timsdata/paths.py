"""Locating timsTOF datasets on disk."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path

from .errors import ExtensionNotFoundError, UnknownTypeError

TDF_NAME = "analysis.tdf"
TDF_BIN_NAME = "analysis.tdf_bin"


class TimsTofFileType(Enum):
    """The kind of dataset a path holds."""

    TDF = "tdf"


def find_extension(path: str | os.PathLike[str], extension: str) -> Path:
    """Return the first file in ``path`` whose name ends with ``extension``.

    Matching ignores case. Raises ExtensionNotFoundError when nothing matches
    and OSError when ``path`` cannot be listed.
    """
    directory = Path(path)
    wanted = extension.lower()
    for entry in sorted(directory.iterdir()):
        if entry.name.lower().endswith(wanted):
            return entry
    raise ExtensionNotFoundError(extension, directory)


def _holds_tdf(directory: Path) -> bool:
    try:
        find_extension(directory, TDF_NAME)
        find_extension(directory, TDF_BIN_NAME)
    except (ExtensionNotFoundError, OSError):
        return False
    return True


class TimsTofPath:
    """A resolved dataset directory together with its file type.

    The given path may be the dataset directory itself or anything inside
    it; parent directories are searched until a dataset is found.
    """

    __slots__ = ("path", "file_type")

    def __init__(self, path: str | os.PathLike[str]) -> None:
        resolved = Path(path).resolve(strict=True)
        for candidate in (resolved, *resolved.parents):
            if _holds_tdf(candidate):
                self.path = candidate
                self.file_type = TimsTofFileType.TDF
                return
        raise UnknownTypeError(resolved)

    def tdf(self) -> Path:
        """The SQLite index file of the dataset."""
        return find_extension(self.path, TDF_NAME)

    def tdf_bin(self) -> Path:
        """The binary peak file of the dataset."""
        return find_extension(self.path, TDF_BIN_NAME)

    def __fspath__(self) -> str:
        return str(self.path)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimsTofPath):
            return NotImplemented
        return (self.path, self.file_type) == (other.path, other.file_type)

    def __hash__(self) -> int:
        return hash((self.path, self.file_type))

    def __repr__(self) -> str:
        return f"TimsTofPath({str(self.path)!r}, {self.file_type.name})"