"""Reading run-level metadata from the SQLite index of a TDF dataset."""

from __future__ import annotations

import math
import os
import re
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from .converters import Frame2RtConverter, Scan2ImConverter, Tof2MzConverter
from .errors import (
    KeyNotFoundError,
    MetadataReaderError,
    SqlReaderError,
    ValueParseError,
)
from .ms_data import Metadata
from .sql import SqlReader

OTOF_CONTROL = "Bruker otofControl"
_MZ_MARGIN = 5.0
_UNSIGNED = re.compile(r"\+?[0-9]+")

_R = TypeVar("_R")


def _lookup(metadata: Mapping[str, str], key: str) -> str:
    try:
        return metadata[key]
    except KeyError:
        raise KeyNotFoundError(key) from None


def _parse_unsigned(metadata: Mapping[str, str], key: str, bits: int) -> int:
    text = _lookup(metadata, key)
    if _UNSIGNED.fullmatch(text) is None:
        raise ValueParseError(key)
    value = int(text)
    if value >= 1 << bits:
        raise ValueParseError(key)
    return value


def _parse_float(metadata: Mapping[str, str], key: str) -> float:
    text = _lookup(metadata, key)
    if not text or text != text.strip() or "_" in text:
        raise ValueParseError(key)
    try:
        return float(text)
    except ValueError:
        raise ValueParseError(key) from None


def _mz_bounds(metadata: Mapping[str, str]) -> tuple[float, float]:
    software = _lookup(metadata, "AcquisitionSoftware")
    mz_min = _parse_float(metadata, "MzAcqRangeLower")
    mz_max = _parse_float(metadata, "MzAcqRangeUpper")
    if software == OTOF_CONTROL:
        mz_min -= _MZ_MARGIN
        mz_max += _MZ_MARGIN
    return mz_min, mz_max


def _im_bounds(metadata: Mapping[str, str]) -> tuple[float, float]:
    im_min = _parse_float(metadata, "OneOverK0AcqRangeLower")
    im_max = _parse_float(metadata, "OneOverK0AcqRangeUpper")
    return im_min, im_max


def _read(func: Callable[..., _R], *args: Any) -> _R:
    try:
        return func(*args)
    except SqlReaderError as exc:
        raise MetadataReaderError(str(exc)) from exc


def read_metadata(path: str | os.PathLike[str]) -> Metadata:
    """Read the converters and acquisition ranges of the dataset at ``path``.

    Raises KeyNotFoundError or ValueParseError for missing or malformed
    global metadata and MetadataReaderError when the tables cannot be read.
    """
    with _read(SqlReader, path) as reader:
        sql_metadata = _read(reader.read_metadata)
        compression_type = _parse_unsigned(sql_metadata, "TimsCompressionType", 8)
        mz_min, mz_max = _mz_bounds(sql_metadata)
        im_min, im_max = _im_bounds(sql_metadata)
        rt_values = _read(reader.read_column_from_table, "Time", "Frames", 0.0)
        scan_counts = _read(reader.read_column_from_table, "NumScans", "Frames", 0)

    finite_rts = [value for value in rt_values if not math.isnan(value)]
    if not finite_rts:
        raise MetadataReaderError("Frames table holds no retention times")
    if not scan_counts:
        raise MetadataReaderError("Frames table holds no scan counts")
    tof_max_index = _parse_unsigned(sql_metadata, "DigitizerNumSamples", 32)

    return Metadata(
        rt_converter=Frame2RtConverter(rt_values=list(rt_values)),
        im_converter=Scan2ImConverter.from_boundaries(
            im_min, im_max, max(scan_counts)
        ),
        mz_converter=Tof2MzConverter.from_boundaries(mz_min, mz_max, tof_max_index),
        compression_type=compression_type,
        lower_rt=min(finite_rts),
        upper_rt=max(finite_rts),
        lower_im=im_min,
        upper_im=im_max,
        lower_mz=mz_min,
        upper_mz=mz_max,
    )