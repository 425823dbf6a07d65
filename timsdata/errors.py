"""Exceptions raised while reading timsTOF data."""

from __future__ import annotations

from os import PathLike
from pathlib import Path
from typing import Any

BLOB_VALUE_SIZE = 4


class TimsDataError(Exception):
    """Base class of all errors raised by this package."""

    message = ""

    def __str__(self) -> str:
        return super().__str__() or self.message


class TimsTofPathError(TimsDataError):
    """A path does not point to usable timsTOF data."""


class ExtensionNotFoundError(TimsTofPathError):
    """No file with the wanted name ending exists in a directory."""

    def __init__(self, extension: str, path: str | PathLike[str]) -> None:
        self.extension = extension
        self.path = Path(path)
        super().__init__(f"Extension {extension} not found for {self.path}")


class UnknownTypeError(TimsTofPathError):
    """Neither the path nor any of its parents holds known timsTOF data."""

    def __init__(self, path: str | PathLike[str]) -> None:
        self.path = Path(path)
        super().__init__(f"No valid type found for {self.path}")


class SqlReaderError(TimsDataError):
    """The SQLite part of a dataset could not be read."""


class TdfBlobReaderError(TimsDataError):
    """A binary blob could not be read or decompressed."""


class TdfBlobError(TdfBlobReaderError):
    """A decompressed blob has a length that is not a whole number of values."""

    def __init__(self, length: int) -> None:
        self.length = length
        super().__init__(f"Length {length} is not a multiple of {BLOB_VALUE_SIZE}")


class MetadataReaderError(TimsDataError):
    """Run metadata is missing or malformed."""


class KeyNotFoundError(MetadataReaderError):
    """A required key is absent from the global metadata."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Key not found: {key}")


class ValueParseError(MetadataReaderError):
    """A global metadata value cannot be parsed."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Key not parsable: {key}")


class QuadrupoleSettingsReaderError(TimsDataError):
    """Quadrupole settings could not be read."""


class FrameReaderError(TimsDataError):
    """A frame could not be read."""


class CorruptFrameError(FrameReaderError):
    """A frame's binary data is inconsistent."""

    message = "Corrupt Frame"


class CompressionTypeError(FrameReaderError):
    """The dataset uses a compression type that is not supported."""

    def __init__(self, compression_type: int) -> None:
        self.compression_type = compression_type
        super().__init__(f"Compression type {compression_type} not understood")


class PrecursorReaderError(TimsDataError):
    """Precursors could not be read."""


class RawSpectrumReaderError(TimsDataError):
    """Raw spectra could not be assembled."""


class UnsupportedAcquisitionError(PrecursorReaderError, RawSpectrumReaderError):
    """The acquisition type is not supported for this kind of reading."""

    def __init__(self, acquisition_type: Any) -> None:
        self.acquisition_type = acquisition_type
        name = getattr(acquisition_type, "name", acquisition_type)
        super().__init__(f"Invalid acquisition type: {name}")


class SpectrumReaderError(TimsDataError):
    """Spectra could not be read."""


class NoPrecursorError(SpectrumReaderError):
    """A spectrum has no matching precursor."""

    message = "No precursor"