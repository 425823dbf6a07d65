"""Assembling raw MS2 spectra from the frames of a DDA or DIA dataset."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterator
from dataclasses import dataclass, field
from itertools import islice, pairwise

from .converters import Tof2MzConverter
from .errors import (
    FrameReaderError,
    QuadrupoleSettingsReaderError,
    RawSpectrumReaderError,
    SqlReaderError,
    UnsupportedAcquisitionError,
)
from .frame_reader import FrameReader
from .ms_data import AcquisitionType, Frame, Precursor, Spectrum
from .quad_settings import (
    FrameWindowSplittingConfiguration,
    FrameWindowSplittingStrategy,
    quadrupole_settings_from_splitting,
)
from .sql import SqlPasefFrameMsMs, SqlReader
from .vec_utils import (
    argsort,
    filter_with_mask,
    find_sparse_local_maxima_mask,
    group_and_sum,
)


@dataclass
class RawSpectrum:
    """Summed TOF indices and intensities of one MS2 spectrum."""

    tof_indices: list[int] = field(default_factory=list)
    intensities: list[int] = field(default_factory=list)
    index: int = 0
    collision_energy: float = 0.0
    isolation_mz: float = 0.0
    isolation_width: float = 0.0

    def smooth(self, window: int) -> RawSpectrum:
        """Add to each peak the intensities of its neighbours within ``window``."""
        tofs = self.tof_indices
        original = self.intensities
        smoothed = list(original)
        for current, (tof, intensity) in enumerate(zip(tofs, original)):
            following = current + 1
            for next_tof, next_intensity in islice(
                zip(tofs, original), following, None
            ):
                if next_tof - tof > window:
                    break
                smoothed[current] += next_intensity
                smoothed[following] += intensity
                following += 1
        return dataclasses.replace(self, intensities=smoothed)

    def centroid(self, window: int) -> RawSpectrum:
        """Keep only the peaks that are local maxima within ``window``."""
        mask = find_sparse_local_maxima_mask(self.tof_indices, self.intensities, window)
        return dataclasses.replace(
            self,
            tof_indices=filter_with_mask(self.tof_indices, mask),
            intensities=filter_with_mask(self.intensities, mask),
        )

    def finalize(self, precursor: Precursor, mz_converter: Tof2MzConverter) -> Spectrum:
        """Convert to a spectrum with m/z values for the given precursor."""
        return Spectrum(
            mz_values=[mz_converter.convert(tof) for tof in self.tof_indices],
            intensities=[float(intensity) for intensity in self.intensities],
            precursor=precursor,
            index=self.index,
            collision_energy=self.collision_energy,
            isolation_mz=self.isolation_mz,
            isolation_width=self.isolation_width,
        )


def _read_frame(frame_reader: FrameReader, frame_id: int) -> Frame:
    if frame_id < 1:
        raise RawSpectrumReaderError(f"Invalid frame id {frame_id}")
    try:
        return frame_reader.get(frame_id - 1)
    except FrameReaderError as exc:
        raise RawSpectrumReaderError(str(exc)) from exc


def _check_index(index: int, count: int) -> None:
    if not 0 <= index < count:
        raise IndexError(f"spectrum index {index} out of range for length {count}")


class DDARawSpectrumReader:
    """Raw spectra of a DDA-PASEF dataset, one per precursor."""

    def __init__(self, sql_reader: SqlReader, frame_reader: FrameReader) -> None:
        try:
            pasef_frames = SqlPasefFrameMsMs.from_sql_reader(sql_reader)
        except SqlReaderError as exc:
            raise RawSpectrumReaderError(str(exc)) from exc
        precursors = [row.precursor for row in pasef_frames]
        order = argsort(precursors)
        boundaries = [
            position
            for position, (first, second) in enumerate(pairwise(order), start=1)
            if precursors[first] != precursors[second]
        ]
        self._pasef_frames = pasef_frames
        self._order = order
        self._offsets = [0, *boundaries, len(order)]
        self._frame_reader = frame_reader

    def iterate_over_pasef_frames(self, index: int) -> Iterator[SqlPasefFrameMsMs]:
        """The PASEF rows of the precursor at ``index``, in table order."""
        _check_index(index, len(self))
        start, end = self._offsets[index], self._offsets[index + 1]
        for position in self._order[start:end]:
            yield self._pasef_frames[position]

    def get(self, index: int) -> RawSpectrum:
        collision_energy = 0.0
        isolation_mz = 0.0
        isolation_width = 0.0
        tof_indices: list[int] = []
        intensities: list[int] = []
        for pasef_frame in self.iterate_over_pasef_frames(index):
            collision_energy = pasef_frame.collision_energy
            isolation_mz = pasef_frame.isolation_mz
            isolation_width = pasef_frame.isolation_width
            frame = _read_frame(self._frame_reader, pasef_frame.frame)
            if not frame.intensities:
                continue
            offset_start = frame.scan_offsets[pasef_frame.scan_start]
            offset_end = frame.scan_offsets[pasef_frame.scan_end]
            tof_indices.extend(frame.tof_indices[offset_start:offset_end])
            intensities.extend(frame.intensities[offset_start:offset_end])
        summed_tofs, summed_intensities = group_and_sum(tof_indices, intensities)
        return RawSpectrum(
            tof_indices=summed_tofs,
            intensities=summed_intensities,
            index=index,
            collision_energy=collision_energy,
            isolation_mz=isolation_mz,
            isolation_width=isolation_width,
        )

    def __len__(self) -> int:
        return len(self._offsets) - 1


class DIARawSpectrumReader:
    """Raw spectra of a DIA-PASEF dataset, one per (split) window and frame."""

    def __init__(
        self,
        sql_reader: SqlReader,
        frame_reader: FrameReader,
        splitting_strategy: FrameWindowSplittingStrategy,
    ) -> None:
        try:
            self._settings = quadrupole_settings_from_splitting(
                sql_reader, splitting_strategy
            )
        except (SqlReaderError, QuadrupoleSettingsReaderError) as exc:
            raise RawSpectrumReaderError(str(exc)) from exc
        self._frame_reader = frame_reader

    def get(self, index: int) -> RawSpectrum:
        _check_index(index, len(self))
        settings = self._settings[index]
        frame = _read_frame(self._frame_reader, settings.index)
        offset_start = frame.scan_offsets[settings.scan_starts[0]]
        offset_end = frame.scan_offsets[settings.scan_ends[0]]
        summed_tofs, summed_intensities = group_and_sum(
            frame.tof_indices[offset_start:offset_end],
            frame.intensities[offset_start:offset_end],
        )
        return RawSpectrum(
            tof_indices=summed_tofs,
            intensities=summed_intensities,
            index=index,
            collision_energy=settings.collision_energy[0],
            isolation_mz=settings.isolation_mz[0],
            isolation_width=settings.isolation_width[0],
        )

    def __len__(self) -> int:
        return len(self._settings)


class RawSpectrumReader:
    """Raw spectra of a dataset, read the way its acquisition type needs."""

    def __init__(
        self,
        sql_reader: SqlReader,
        frame_reader: FrameReader,
        acquisition_type: AcquisitionType,
        splitting_strategy: FrameWindowSplittingStrategy | None = None,
    ) -> None:
        self._reader: DDARawSpectrumReader | DIARawSpectrumReader
        if acquisition_type is AcquisitionType.DDAPASEF:
            self._reader = DDARawSpectrumReader(sql_reader, frame_reader)
        elif acquisition_type is AcquisitionType.DIAPASEF:
            if splitting_strategy is None:
                splitting_strategy = FrameWindowSplittingConfiguration().finalize(None)
            self._reader = DIARawSpectrumReader(
                sql_reader, frame_reader, splitting_strategy
            )
        else:
            raise UnsupportedAcquisitionError(acquisition_type)
        self.acquisition_type = acquisition_type

    def get(self, index: int) -> RawSpectrum:
        return self._reader.get(index)

    def __len__(self) -> int:
        return len(self._reader)