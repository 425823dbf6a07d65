"""Reading tables from the SQLite index of a TDF dataset."""

from __future__ import annotations

import os
import sqlite3
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, ClassVar

from .errors import SqlReaderError
from .paths import TimsTofPath


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _unsigned(value: Any, bits: int) -> int:
    if _is_integer(value) and 0 <= value < 1 << bits:
        return value
    return 0


def _usize(value: Any) -> int:
    return _unsigned(value, 64)


def _u8(value: Any) -> int:
    return _unsigned(value, 8)


def _i32(value: Any) -> int:
    if _is_integer(value) and -(1 << 31) <= value < 1 << 31:
        return value
    return 0


def _real(value: Any) -> float:
    if _is_integer(value) or isinstance(value, float):
        return float(value)
    return 0.0


def _optional_real(value: Any) -> float | None:
    if _is_integer(value) or isinstance(value, float):
        return float(value)
    return None


def _optional_i32(value: Any) -> int | None:
    if _is_integer(value) and -(1 << 31) <= value < 1 << 31:
        return value
    return None


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _coerce(value: Any, default: Any) -> Any:
    """Return ``value`` if it fits the type of ``default``, else ``default``."""
    if isinstance(default, float):
        return float(value) if _is_integer(value) or isinstance(value, float) else default
    if _is_integer(default):
        return value if _is_integer(value) else default
    if isinstance(default, str):
        return value if isinstance(value, str) else default
    return default if value is None else value


class SqlReader:
    """A connection to the ``analysis.tdf`` SQLite file of a dataset."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        dataset = path if isinstance(path, TimsTofPath) else TimsTofPath(path)
        tdf_path = dataset.tdf()
        try:
            self._connection = sqlite3.connect(tdf_path)
        except sqlite3.Error as exc:
            raise SqlReaderError(str(exc)) from exc
        self.path = dataset

    def _fetch(self, query: str) -> list[tuple[Any, ...]]:
        try:
            return self._connection.execute(query).fetchall()
        except sqlite3.Error as exc:
            raise SqlReaderError(str(exc)) from exc

    def read_column_from_table(
        self, column_name: str, table_name: str, default: Any
    ) -> list[Any]:
        """Read one column; values that are null or of another type become ``default``."""
        rows = self._fetch(f"SELECT {column_name} FROM {table_name}")
        return [_coerce(row[0], default) for row in rows]

    def read_metadata(self) -> dict[str, str]:
        """The key/value pairs of the GlobalMetadata table."""
        metadata: dict[str, str] = {}
        for key, value in self._fetch("SELECT Key, Value FROM GlobalMetadata"):
            if not isinstance(key, str):
                raise SqlReaderError(f"Invalid metadata key: {key!r}")
            if isinstance(value, str):
                metadata[key] = value
            elif _is_integer(value) or isinstance(value, float):
                metadata[key] = str(value)
            else:
                raise SqlReaderError(f"Invalid metadata value for key {key}")
        return metadata

    def has_maldi_info(self) -> bool:
        """Whether the dataset holds a MaldiFrameInfo table."""
        try:
            rows = self._fetch(
                "SELECT name FROM sqlite_master "
                "WHERE type='table' AND name='MaldiFrameInfo'"
            )
        except SqlReaderError:
            return False
        return bool(rows)

    def read_maldi_frame_info(self) -> list[SqlMaldiFrameInfo]:
        """All MALDI frame entries, or an empty list if there is no such table."""
        if not self.has_maldi_info():
            return []
        return SqlMaldiFrameInfo.from_sql_reader(self)

    def close(self) -> None:
        self._connection.close()

    def __enter__(self) -> SqlReader:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


def _read_rows(
    reader: SqlReader,
    factory: Callable[..., Any],
    query: str,
    converters: Sequence[Callable[[Any], Any]],
) -> list[Any]:
    """Read every row of ``query``; raises SqlReaderError when it returns none."""
    rows = reader._fetch(query)
    if not rows:
        raise SqlReaderError("Query returned no rows")
    return [
        factory(*(convert(value) for convert, value in zip(converters, row)))
        for row in rows
    ]


@dataclass(frozen=True)
class SqlFrame:
    """A row of the Frames table."""

    _QUERY: ClassVar[str] = (
        "SELECT Id, ScanMode, MsMsType, NumPeaks, Time, NumScans, TimsId, "
        "AccumulationTime FROM Frames"
    )
    _CONVERTERS: ClassVar[Sequence[Callable[[Any], Any]]] = (
        _usize, _u8, _u8, _usize, _real, _usize, _usize, _real,
    )

    id: int = 0
    scan_mode: int = 0
    msms_type: int = 0
    peak_count: int = 0
    rt: float = 0.0
    scan_count: int = 0
    binary_offset: int = 0
    accumulation_time: float = 0.0

    @classmethod
    def from_sql_reader(cls, reader: SqlReader) -> list[SqlFrame]:
        """Read every row; raises SqlReaderError when the table is empty."""
        return _read_rows(reader, cls, cls._QUERY, cls._CONVERTERS)


@dataclass(frozen=True)
class SqlWindowGroup:
    """A row of the DiaFrameMsMsInfo table."""

    _QUERY: ClassVar[str] = "SELECT Frame, WindowGroup FROM DiaFrameMsMsInfo"
    _CONVERTERS: ClassVar[Sequence[Callable[[Any], Any]]] = (_usize, _u8)

    frame: int = 0
    window_group: int = 0

    @classmethod
    def from_sql_reader(cls, reader: SqlReader) -> list[SqlWindowGroup]:
        """Read every row; raises SqlReaderError when the table is empty."""
        return _read_rows(reader, cls, cls._QUERY, cls._CONVERTERS)


@dataclass(frozen=True)
class SqlMaldiFrameInfo:
    """A row of the MaldiFrameInfo table."""

    _QUERY: ClassVar[str] = (
        "SELECT Frame, SpotName, XIndexPos, YIndexPos, PositionX, PositionY, "
        "LaserPower, LaserRepRate, NumLaserShots FROM MaldiFrameInfo"
    )
    _CONVERTERS: ClassVar[Sequence[Callable[[Any], Any]]] = (
        _usize, _text, _i32, _i32, _optional_real, _optional_real,
        _optional_real, _optional_real, _optional_i32,
    )

    frame: int = 0
    spot_name: str = ""
    x_index_pos: int = 0
    y_index_pos: int = 0
    x_position: float | None = None
    y_position: float | None = None
    laser_power: float | None = None
    laser_rep_rate: float | None = None
    laser_shots: int | None = None

    @classmethod
    def from_sql_reader(cls, reader: SqlReader) -> list[SqlMaldiFrameInfo]:
        """Read every row; raises SqlReaderError when the table is empty."""
        return _read_rows(reader, cls, cls._QUERY, cls._CONVERTERS)


@dataclass(frozen=True)
class SqlPasefFrameMsMs:
    """A row of the PasefFrameMsMsInfo table."""

    _QUERY: ClassVar[str] = (
        "SELECT Frame, ScanNumBegin, ScanNumEnd, IsolationMz, IsolationWidth, "
        "CollisionEnergy, Precursor FROM PasefFrameMsMsInfo"
    )
    _CONVERTERS: ClassVar[Sequence[Callable[[Any], Any]]] = (
        _usize, _usize, _usize, _real, _real, _real, _usize,
    )

    frame: int = 0
    scan_start: int = 0
    scan_end: int = 0
    isolation_mz: float = 0.0
    isolation_width: float = 0.0
    collision_energy: float = 0.0
    precursor: int = 0

    @classmethod
    def from_sql_reader(cls, reader: SqlReader) -> list[SqlPasefFrameMsMs]:
        """Read every row; raises SqlReaderError when the table is empty."""
        return _read_rows(reader, cls, cls._QUERY, cls._CONVERTERS)


@dataclass(frozen=True)
class SqlPrecursor:
    """A row of the Precursors table."""

    _QUERY: ClassVar[str] = (
        "SELECT Id, MonoisotopicMz, Charge, ScanNumber, Intensity, Parent "
        "FROM Precursors"
    )
    _CONVERTERS: ClassVar[Sequence[Callable[[Any], Any]]] = (
        _usize, _real, _usize, _real, _real, _usize,
    )

    id: int = 0
    mz: float = 0.0
    charge: int = 0
    scan_average: float = 0.0
    intensity: float = 0.0
    precursor_frame: int = 0

    @classmethod
    def from_sql_reader(cls, reader: SqlReader) -> list[SqlPrecursor]:
        """Read every row; raises SqlReaderError when the table is empty."""
        return _read_rows(reader, cls, cls._QUERY, cls._CONVERTERS)


@dataclass(frozen=True)
class SqlQuadSettings:
    """A row of the DiaFrameMsMsWindows table."""

    _QUERY: ClassVar[str] = (
        "SELECT WindowGroup, ScanNumBegin, ScanNumEnd, IsolationMz, "
        "IsolationWidth, CollisionEnergy FROM DiaFrameMsMsWindows"
    )
    _CONVERTERS: ClassVar[Sequence[Callable[[Any], Any]]] = (
        _usize, _usize, _usize, _real, _real, _real,
    )

    window_group: int = 0
    scan_start: int = 0
    scan_end: int = 0
    mz_center: float = 0.0
    mz_width: float = 0.0
    collision_energy: float = 0.0

    @classmethod
    def from_sql_reader(cls, reader: SqlReader) -> list[SqlQuadSettings]:
        """Read every row; raises SqlReaderError when the table is empty."""
        return _read_rows(reader, cls, cls._QUERY, cls._CONVERTERS)