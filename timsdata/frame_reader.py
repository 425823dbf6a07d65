"""Reading frames from the binary peak file of a TDF dataset."""

from __future__ import annotations

import dataclasses
import math
import os
from collections.abc import Callable, Iterator, Mapping, Sequence
from itertools import accumulate
from typing import Any

from .blobs import TdfBlob
from .errors import (
    CompressionTypeError,
    CorruptFrameError,
    FrameReaderError,
    MetadataReaderError,
    QuadrupoleSettingsReaderError,
    SqlReaderError,
    TdfBlobReaderError,
)
from .metadata_reader import read_metadata
from .ms_data import (
    AcquisitionType,
    Frame,
    MaldiInfo,
    MSLevel,
    QuadrupoleSettings,
)
from .paths import TimsTofPath
from .quad_settings import quadrupole_settings_from_sql
from .sql import SqlFrame, SqlMaldiFrameInfo, SqlReader, SqlWindowGroup
from .tdf_blob_reader import TdfBlobReader

SUPPORTED_COMPRESSION_TYPE = 2

_WRAPPED_ERRORS = (
    SqlReaderError,
    MetadataReaderError,
    QuadrupoleSettingsReaderError,
    TdfBlobReaderError,
)


def _acquisition_of(msms_types: Sequence[int]) -> AcquisitionType:
    if any(msms_type == 8 for msms_type in msms_types):
        return AcquisitionType.DDAPASEF
    if any(msms_type == 9 for msms_type in msms_types):
        return AcquisitionType.DIAPASEF
    return AcquisitionType.Unknown


def _reciprocal(value: float) -> float:
    if value == 0:
        return math.copysign(math.inf, value)
    return 1.0 / value


def _decode_frame(blob: TdfBlob) -> tuple[list[int], list[int], list[int]]:
    """Scan offsets, TOF indices and intensities of one frame blob."""
    values = blob.get_all()
    if not values:
        raise CorruptFrameError()
    scan_count = values[0]
    if scan_count == 0 or scan_count > len(values):
        raise CorruptFrameError()
    peak_count = (len(values) - scan_count) // 2
    scan_offsets = list(
        accumulate((size // 2 for size in values[1:scan_count]), initial=0)
    )
    if scan_offsets[-1] > peak_count:
        raise CorruptFrameError()
    scan_offsets.append(peak_count)
    peak_end = scan_count + 2 * peak_count
    tof_deltas = values[scan_count:peak_end:2]
    intensities = values[scan_count + 1 : peak_end : 2]
    tof_indices: list[int] = []
    for start, end in zip(scan_offsets, scan_offsets[1:]):
        tof_indices.extend(total - 1 for total in accumulate(tof_deltas[start:end]))
    return scan_offsets, tof_indices, intensities


def build_frame_without_data(
    index: int,
    sql_frames: Sequence[SqlFrame],
    acquisition: AcquisitionType,
    window_groups: Sequence[int],
    quadrupole_settings: Sequence[QuadrupoleSettings],
    maldi_map: Mapping[int, SqlMaldiFrameInfo],
) -> Frame:
    """A frame holding everything but its peak data."""
    sql_frame = sql_frames[index]
    ms_level = MSLevel.from_msms_type(sql_frame.msms_type)
    frame = Frame(
        index=sql_frame.id,
        ms_level=ms_level,
        rt_in_seconds=sql_frame.rt,
        acquisition_type=acquisition,
        intensity_correction_factor=_reciprocal(sql_frame.accumulation_time),
    )
    if acquisition is AcquisitionType.DIAPASEF and ms_level is MSLevel.MS2:
        window_group = window_groups[index]
        if not 1 <= window_group <= len(quadrupole_settings):
            raise FrameReaderError(
                f"Invalid window group {window_group} for frame {sql_frame.id}"
            )
        frame.window_group = window_group
        frame.quadrupole_settings = quadrupole_settings[window_group - 1]
    maldi = maldi_map.get(sql_frame.id)
    if maldi is not None:
        frame.maldi_info = MaldiInfo(
            spot_name=maldi.spot_name,
            pixel_x=maldi.x_index_pos,
            pixel_y=maldi.y_index_pos,
            position_x_um=maldi.x_position,
            position_y_um=maldi.y_position,
            laser_power=maldi.laser_power,
            laser_rep_rate=maldi.laser_rep_rate,
            laser_shots=maldi.laser_shots,
        )
    return frame


class FrameReader:
    """Random access to the frames of a TDF dataset.

    Frames are addressed by their position in the Frames table, starting at
    zero, not by their frame id.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        dataset = path if isinstance(path, TimsTofPath) else TimsTofPath(path)
        try:
            compression_type = read_metadata(dataset).compression_type
            if compression_type != SUPPORTED_COMPRESSION_TYPE:
                raise CompressionTypeError(compression_type)
            with SqlReader(dataset) as sql:
                sql_frames = SqlFrame.from_sql_reader(sql)
                maldi_rows = sql.read_maldi_frame_info()
                acquisition = _acquisition_of([f.msms_type for f in sql_frames])
                window_groups = [0] * len(sql_frames)
                quadrupole_settings: list[QuadrupoleSettings] = []
                if acquisition is AcquisitionType.DIAPASEF:
                    for window_group in SqlWindowGroup.from_sql_reader(sql):
                        if not 1 <= window_group.frame <= len(window_groups):
                            raise FrameReaderError(
                                f"Invalid frame {window_group.frame} in window groups"
                            )
                        window_groups[window_group.frame - 1] = (
                            window_group.window_group
                        )
                    quadrupole_settings = quadrupole_settings_from_sql(sql)
            blob_reader = TdfBlobReader(dataset)
        except _WRAPPED_ERRORS as exc:
            raise FrameReaderError(str(exc)) from exc

        maldi_map = {row.frame: row for row in maldi_rows}
        self.path = dataset
        self.compression_type = compression_type
        self._blob_reader = blob_reader
        self._acquisition = acquisition
        self._is_maldi = bool(maldi_rows)
        self._offsets = [sql_frame.binary_offset for sql_frame in sql_frames]
        self._frames = [
            build_frame_without_data(
                index,
                sql_frames,
                acquisition,
                window_groups,
                quadrupole_settings,
                maldi_map,
            )
            for index in range(len(sql_frames))
        ]
        self._dia_windows = (
            quadrupole_settings if acquisition is AcquisitionType.DIAPASEF else None
        )

    def __len__(self) -> int:
        return len(self._frames)

    def get_binary_offset(self, index: int) -> int:
        """Byte offset of a frame's blob in the binary file."""
        return self._offsets[index]

    def get_frame_without_coordinates(self, index: int) -> Frame:
        """A copy of the frame at ``index`` without its peak data."""
        if not 0 <= index < len(self._frames):
            raise FrameReaderError("Index out of bounds")
        template = self._frames[index]
        maldi = template.maldi_info
        return dataclasses.replace(
            template,
            scan_offsets=[],
            tof_indices=[],
            intensities=[],
            maldi_info=dataclasses.replace(maldi) if maldi is not None else None,
        )

    def get(self, index: int) -> Frame:
        """The frame at ``index`` with all its peak data."""
        frame = self.get_frame_without_coordinates(index)
        try:
            blob = self._blob_reader.get(self.get_binary_offset(index))
        except TdfBlobReaderError as exc:
            raise FrameReaderError(str(exc)) from exc
        frame.scan_offsets, frame.tof_indices, frame.intensities = _decode_frame(blob)
        return frame

    def filter(self, predicate: Callable[[Frame], bool]) -> Iterator[Frame]:
        """Read, in order, every frame whose data-less form satisfies ``predicate``."""
        for index, frame in enumerate(self._frames):
            if predicate(frame):
                yield self.get(index)

    def get_all(self) -> list[Frame]:
        return list(self.filter(lambda _: True))

    def get_all_ms1(self) -> list[Frame]:
        return list(self.filter(lambda frame: frame.ms_level is MSLevel.MS1))

    def get_all_ms2(self) -> list[Frame]:
        return list(self.filter(lambda frame: frame.ms_level is MSLevel.MS2))

    def get_dia_windows(self) -> list[QuadrupoleSettings] | None:
        """The DIA window groups, or None for other acquisitions."""
        if self._dia_windows is None:
            return None
        return list(self._dia_windows)

    def acquisition(self) -> AcquisitionType:
        return self._acquisition

    def is_maldi(self) -> bool:
        """Whether the dataset holds MALDI imaging data."""
        return self._is_maldi

    def close(self) -> None:
        self._blob_reader.close()

    def __enter__(self) -> FrameReader:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()