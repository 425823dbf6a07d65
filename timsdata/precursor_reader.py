"""A single entry point for reading the precursors of a dataset."""

from __future__ import annotations

import os

from .errors import PrecursorReaderError, SqlReaderError, TimsTofPathError
from .ms_data import AcquisitionType, Precursor
from .paths import TimsTofPath
from .precursors import DDATDFPrecursorReader, DIATDFPrecursorReader
from .quad_settings import FrameWindowSplittingConfiguration
from .errors import UnsupportedAcquisitionError
from .sql import SqlReader


def _acquisition_of(scan_modes: list[int]) -> AcquisitionType:
    if any(scan_mode == 8 for scan_mode in scan_modes):
        return AcquisitionType.DDAPASEF
    if any(scan_mode == 9 for scan_mode in scan_modes):
        return AcquisitionType.DIAPASEF
    return AcquisitionType.Unknown


class PrecursorReader:
    """Reads the precursors of a DDA or DIA dataset.

    The acquisition type is taken from the ``ScanMode`` column of the
    Frames table; DIA windows are split according to ``config``.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        config: FrameWindowSplittingConfiguration | None = None,
    ) -> None:
        try:
            dataset = path if isinstance(path, TimsTofPath) else TimsTofPath(path)
        except (TimsTofPathError, OSError) as exc:
            raise PrecursorReaderError(str(exc)) from exc
        self.path = dataset
        self.config = config if config is not None else FrameWindowSplittingConfiguration()
        try:
            with SqlReader(dataset) as sql:
                scan_modes = sql.read_column_from_table("ScanMode", "Frames", 0)
        except SqlReaderError as exc:
            raise PrecursorReaderError(str(exc)) from exc
        self.acquisition = _acquisition_of(scan_modes)
        self._reader: DDATDFPrecursorReader | DIATDFPrecursorReader
        if self.acquisition is AcquisitionType.DDAPASEF:
            self._reader = DDATDFPrecursorReader(dataset)
        elif self.acquisition is AcquisitionType.DIAPASEF:
            self._reader = DIATDFPrecursorReader(dataset, self.config)
        else:
            raise UnsupportedAcquisitionError(self.acquisition)

    def get(self, index: int) -> Precursor | None:
        """The precursor at ``index``, or None when there is none."""
        return self._reader.get(index)

    def __len__(self) -> int:
        return len(self._reader)

    def __repr__(self) -> str:
        return f"PrecursorReader({str(self.path.path)!r}, {self.acquisition.name})"