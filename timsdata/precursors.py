"""Precursor readers for DDA and DIA TDF datasets."""

from __future__ import annotations

import os

from .errors import (
    MetadataReaderError,
    PrecursorReaderError,
    QuadrupoleSettingsReaderError,
    SqlReaderError,
)
from .metadata_reader import read_metadata
from .ms_data import Precursor
from .quad_settings import (
    FrameWindowSplittingConfiguration,
    quadrupole_settings_from_splitting,
)
from .sql import SqlPrecursor, SqlReader


class DDATDFPrecursorReader:
    """Precursors of a DDA-PASEF dataset, from its Precursors table."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        try:
            with SqlReader(path) as sql:
                metadata = read_metadata(path)
                self._sql_precursors = SqlPrecursor.from_sql_reader(sql)
        except (SqlReaderError, MetadataReaderError) as exc:
            raise PrecursorReaderError(str(exc)) from exc
        self._rt_converter = metadata.rt_converter
        self._im_converter = metadata.im_converter

    def get(self, index: int) -> Precursor | None:
        """The precursor at ``index``, or None when there is none."""
        if not 0 <= index < len(self._sql_precursors):
            return None
        sql_precursor = self._sql_precursors[index]
        frame_id = sql_precursor.precursor_frame
        return Precursor(
            mz=sql_precursor.mz,
            rt=self._rt_converter.convert(frame_id),
            im=self._im_converter.convert(sql_precursor.scan_average),
            charge=sql_precursor.charge,
            intensity=sql_precursor.intensity,
            index=index + 1,
            frame_index=frame_id,
        )

    def __len__(self) -> int:
        return len(self._sql_precursors)


class DIATDFPrecursorReader:
    """One pseudo-precursor per (split) DIA isolation window of every frame."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        splitting_config: FrameWindowSplittingConfiguration | None = None,
    ) -> None:
        config = splitting_config or FrameWindowSplittingConfiguration()
        try:
            with SqlReader(path) as sql:
                metadata = read_metadata(path)
                strategy = config.finalize(metadata.im_converter)
                self._settings = quadrupole_settings_from_splitting(sql, strategy)
        except (
            SqlReaderError,
            MetadataReaderError,
            QuadrupoleSettingsReaderError,
        ) as exc:
            raise PrecursorReaderError(str(exc)) from exc
        self._rt_converter = metadata.rt_converter
        self._im_converter = metadata.im_converter

    def get(self, index: int) -> Precursor | None:
        """The window at ``index`` as a precursor, or None when there is none."""
        if not 0 <= index < len(self._settings):
            return None
        settings = self._settings[index]
        scan_id = (settings.scan_starts[0] + settings.scan_ends[0]) / 2.0
        return Precursor(
            mz=settings.isolation_mz[0],
            rt=self._rt_converter.convert(settings.index - 1),
            im=self._im_converter.convert(scan_id),
            charge=None,
            intensity=None,
            index=index,
            frame_index=settings.index,
        )

    def __len__(self) -> int:
        return len(self._settings)