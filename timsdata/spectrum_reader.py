"""Reading MS2 spectra from TDF datasets."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from .converters import Tof2MzConverter
from .errors import (
    NoPrecursorError,
    RawSpectrumReaderError,
    SpectrumReaderError,
    TimsDataError,
    UnsupportedAcquisitionError,
)
from .frame_reader import FrameReader
from .metadata_reader import read_metadata
from .ms_data import Spectrum
from .paths import TimsTofPath
from .precursor_reader import PrecursorReader
from .quad_settings import FrameWindowSplittingConfiguration
from .raw_spectra import RawSpectrum, RawSpectrumReader
from .sql import SqlReader

_WRAPPED_ERRORS = (TimsDataError, UnsupportedAcquisitionError, OSError)


@dataclass(frozen=True)
class SpectrumProcessingParams:
    """How raw spectra are smoothed, centroided and calibrated."""

    smoothing_window: int = 1
    centroiding_window: int = 1
    calibration_tolerance: float = 0.1
    calibrate: bool = False


@dataclass(frozen=True)
class SpectrumReaderConfig:
    """Processing and DIA window splitting settings of a spectrum reader."""

    spectrum_processing_params: SpectrumProcessingParams = field(
        default_factory=SpectrumProcessingParams
    )
    frame_splitting_params: FrameWindowSplittingConfiguration = field(
        default_factory=FrameWindowSplittingConfiguration
    )


class TDFSpectrumReader:
    """Spectra of a DDA or DIA TDF dataset, assembled from its frames."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        config: SpectrumReaderConfig | None = None,
    ) -> None:
        self.config = config if config is not None else SpectrumReaderConfig()
        frame_reader: FrameReader | None = None
        try:
            dataset = path if isinstance(path, TimsTofPath) else TimsTofPath(path)
            frame_reader = FrameReader(dataset)
            metadata = read_metadata(dataset)
            precursor_reader = PrecursorReader(
                dataset, self.config.frame_splitting_params
            )
            strategy = self.config.frame_splitting_params.finalize(
                metadata.im_converter
            )
            with SqlReader(dataset) as sql:
                raw_reader = RawSpectrumReader(
                    sql, frame_reader, frame_reader.acquisition(), strategy
                )
        except SpectrumReaderError:
            if frame_reader is not None:
                frame_reader.close()
            raise
        except _WRAPPED_ERRORS as exc:
            if frame_reader is not None:
                frame_reader.close()
            raise SpectrumReaderError(str(exc)) from exc
        self.path = dataset
        self.mz_converter: Tof2MzConverter = metadata.mz_converter
        self._frame_reader = frame_reader
        self._precursor_reader = precursor_reader
        self._raw_reader = raw_reader

    def read_single_raw_spectrum(self, index: int) -> RawSpectrum:
        """The raw spectrum at ``index``, smoothed and centroided."""
        params = self.config.spectrum_processing_params
        return (
            self._raw_reader.get(index)
            .smooth(params.smoothing_window)
            .centroid(params.centroiding_window)
        )

    def _processed(self, index: int) -> RawSpectrum:
        try:
            return self.read_single_raw_spectrum(index)
        except RawSpectrumReaderError as exc:
            raise SpectrumReaderError(str(exc)) from exc

    def get(self, index: int) -> Spectrum:
        """The spectrum at ``index`` with m/z values and its precursor."""
        if not 0 <= index < len(self):
            raise IndexError(
                f"spectrum index {index} out of range for length {len(self)}"
            )
        raw_spectrum = self._processed(index)
        precursor = self._precursor_reader.get(index)
        if precursor is None:
            raise NoPrecursorError("No precursor")
        return raw_spectrum.finalize(precursor, self.mz_converter)

    def __len__(self) -> int:
        return len(self._raw_reader)

    def calibrate(self) -> None:
        """Refit the m/z converter on peaks that lie near their precursor m/z."""
        tolerance = self.config.spectrum_processing_params.calibration_tolerance
        hits: list[tuple[float, int]] = []
        for index in range(len(self._precursor_reader)):
            raw_spectrum = self._processed(index)
            precursor = self._precursor_reader.get(index)
            if precursor is None:
                raise NoPrecursorError("No precursor")
            hits.extend(
                (precursor.mz, tof)
                for tof in raw_spectrum.tof_indices
                if abs(self.mz_converter.convert(tof) - precursor.mz) < tolerance
            )
        if len(hits) >= 2:
            try:
                self.mz_converter = Tof2MzConverter.regress_from_pairs(hits)
            except ValueError as exc:
                raise SpectrumReaderError(f"Cannot calibrate: {exc}") from exc


class SpectrumReader:
    """Reads MS2 spectra from a dataset."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        config: SpectrumReaderConfig | None = None,
    ) -> None:
        self.config = config if config is not None else SpectrumReaderConfig()
        self._reader = TDFSpectrumReader(path, self.config)
        if self.config.spectrum_processing_params.calibrate:
            self._reader.calibrate()

    def get(self, index: int) -> Spectrum:
        return self._reader.get(index)

    def __len__(self) -> int:
        return len(self._reader)

    def get_all(self) -> list[Spectrum]:
        """Every spectrum, ordered by precursor index."""
        spectra = [self.get(index) for index in range(len(self))]
        spectra.sort(
            key=lambda spectrum: spectrum.precursor.index
            if spectrum.precursor is not None
            else spectrum.index
        )
        return spectra