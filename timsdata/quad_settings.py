"""Reading DIA quadrupole settings and splitting them into sub-windows."""

from __future__ import annotations

import dataclasses
import math
import os
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from .converters import Scan2ImConverter
from .errors import QuadrupoleSettingsReaderError, SqlReaderError
from .ms_data import QuadrupoleSettings
from .sql import SqlQuadSettings, SqlReader, SqlWindowGroup
from .vec_utils import argsort

_USIZE_MAX = (1 << 64) - 1


@dataclass(frozen=True)
class NoExpansion:
    """Keep each window as it is."""


@dataclass(frozen=True)
class EvenExpansion:
    """Split a window into ``num_splits`` overlapping sub-windows of equal width."""

    num_splits: int


@dataclass(frozen=True)
class UniformMobilityExpansion:
    """Sub-windows of ``span`` wide, ``step`` apart, in ion mobility space."""

    span: float
    step: float
    converter: Scan2ImConverter | None = None


@dataclass(frozen=True)
class UniformScanExpansion:
    """Sub-windows of ``span`` scans wide, ``step`` scans apart."""

    span: int
    step: int


QuadWindowExpansionStrategy = Union[
    NoExpansion, EvenExpansion, UniformMobilityExpansion, UniformScanExpansion
]


class SplittingMode(Enum):
    """Whether to split each quadrupole window or each whole window group."""

    QUADRUPOLE = "quadrupole"
    WINDOW = "window"


@dataclass(frozen=True)
class FrameWindowSplittingStrategy:
    """A splitting mode with a ready-to-use expansion strategy."""

    mode: SplittingMode
    expansion: QuadWindowExpansionStrategy


@dataclass(frozen=True)
class FrameWindowSplittingConfiguration:
    """User-facing splitting settings; the default keeps every window whole."""

    mode: SplittingMode = SplittingMode.QUADRUPOLE
    expansion: QuadWindowExpansionStrategy = field(
        default_factory=lambda: EvenExpansion(1)
    )

    def finalize(
        self, scan_converter: Scan2ImConverter | None
    ) -> FrameWindowSplittingStrategy:
        """Attach ``scan_converter`` to a mobility-based expansion."""
        expansion = self.expansion
        if isinstance(expansion, UniformMobilityExpansion):
            expansion = dataclasses.replace(expansion, converter=scan_converter)
        return FrameWindowSplittingStrategy(mode=self.mode, expansion=expansion)


def _as_usize(value: float) -> int:
    if math.isnan(value) or value <= 0:
        return 0
    if math.isinf(value):
        return _USIZE_MAX
    return min(int(value), _USIZE_MAX)


def read_quadrupole_settings(
    path: str | os.PathLike[str],
) -> list[QuadrupoleSettings]:
    """The quadrupole settings of every DIA window group of a dataset."""
    try:
        with SqlReader(path) as reader:
            return quadrupole_settings_from_sql(reader)
    except SqlReaderError as exc:
        raise QuadrupoleSettingsReaderError(str(exc)) from exc


def quadrupole_settings_from_sql(reader: SqlReader) -> list[QuadrupoleSettings]:
    """One QuadrupoleSettings per window group, windows sorted by scan start."""
    try:
        rows = SqlQuadSettings.from_sql_reader(reader)
    except SqlReaderError as exc:
        raise QuadrupoleSettingsReaderError(str(exc)) from exc
    group_count = max(row.window_group for row in rows)
    groups = [QuadrupoleSettings(index=group + 1) for group in range(group_count)]
    for row in rows:
        if row.window_group < 1:
            raise QuadrupoleSettingsReaderError(
                f"Invalid window group {row.window_group}"
            )
        settings = groups[row.window_group - 1]
        settings.scan_starts.append(row.scan_start)
        settings.scan_ends.append(row.scan_end)
        settings.collision_energy.append(row.collision_energy)
        settings.isolation_mz.append(row.mz_center)
        settings.isolation_width.append(row.mz_width)
    return [_sorted_by_scan_start(settings) for settings in groups]


def _sorted_by_scan_start(settings: QuadrupoleSettings) -> QuadrupoleSettings:
    order = argsort(settings.scan_starts)

    def reorder(values: list) -> list:
        return [values[i] for i in order]

    return QuadrupoleSettings(
        index=settings.index,
        scan_starts=reorder(settings.scan_starts),
        scan_ends=reorder(settings.scan_ends),
        isolation_mz=reorder(settings.isolation_mz),
        isolation_width=reorder(settings.isolation_width),
        collision_energy=reorder(settings.collision_energy),
    )


def quadrupole_settings_from_splitting(
    reader: SqlReader, strategy: FrameWindowSplittingStrategy
) -> list[QuadrupoleSettings]:
    """Per-frame sub-window settings for every DIA frame of a dataset."""
    quadrupole_settings = quadrupole_settings_from_sql(reader)
    try:
        window_groups = SqlWindowGroup.from_sql_reader(reader)
    except SqlReaderError as exc:
        raise QuadrupoleSettingsReaderError(str(exc)) from exc
    if strategy.mode is SplittingMode.QUADRUPOLE:
        return expand_quadrupole_settings(
            window_groups, quadrupole_settings, strategy.expansion
        )
    return expand_window_settings(
        window_groups, quadrupole_settings, strategy.expansion
    )


def scan_range_subsplit(
    start: int, end: int, strategy: QuadWindowExpansionStrategy
) -> list[tuple[int, int]]:
    """Split the scan range ``start``..``end`` according to ``strategy``."""
    if isinstance(strategy, NoExpansion):
        return [(start, end)]
    if isinstance(strategy, EvenExpansion):
        width = (end - start) // (strategy.num_splits + 1)
        return [
            (start + width * split, start + width * (split + 2))
            for split in range(strategy.num_splits)
        ]
    if isinstance(strategy, UniformMobilityExpansion):
        return _mobility_subsplit(start, end, strategy)
    if isinstance(strategy, UniformScanExpansion):
        out = []
        current_start = start
        current_end = start + strategy.span
        while current_end < end:
            out.append((current_start, current_end))
            current_start += strategy.step
            current_end += strategy.step
        if current_start < end:
            out.append((current_start, end))
        return out
    raise TypeError(f"Unknown expansion strategy: {strategy!r}")


def _mobility_subsplit(
    start: int, end: int, strategy: UniformMobilityExpansion
) -> list[tuple[int, int]]:
    converter = strategy.converter
    if converter is None:
        raise ValueError("Uniform mobility expansion needs a scan converter")
    # Low scan numbers are high mobilities, so mobilities decrease along the range.
    current_start = start
    start_im = converter.convert(current_start)
    current_end = _as_usize(converter.invert(start_im - strategy.span))
    out = []
    while current_end < end:
        out.append((current_start, current_end))
        start_im -= strategy.step
        current_start = _as_usize(converter.invert(start_im))
        current_end = _as_usize(converter.invert(start_im - strategy.span))
    if current_start < end:
        out.append((current_start, end))
    return out


def _group_of(
    quadrupole_settings: Sequence[QuadrupoleSettings], window_group: int
) -> QuadrupoleSettings:
    if not 1 <= window_group <= len(quadrupole_settings):
        raise QuadrupoleSettingsReaderError(f"Invalid window group {window_group}")
    return quadrupole_settings[window_group - 1]


def expand_window_settings(
    window_groups: Sequence[SqlWindowGroup],
    quadrupole_settings: Sequence[QuadrupoleSettings],
    strategy: QuadWindowExpansionStrategy,
) -> list[QuadrupoleSettings]:
    """Split each frame's whole window group and merge the windows inside each part."""
    expanded = []
    for window_group in window_groups:
        group = _group_of(quadrupole_settings, window_group.window_group)
        group_start = min(group.scan_starts)
        group_end = max(group.scan_ends)
        for sub_start, sub_end in scan_range_subsplit(group_start, group_end, strategy):
            mz_min = sys.float_info.max
            mz_max = -sys.float_info.max
            nce_sum = 0.0
            total_scan_width = 0.0
            windows = zip(
                group.scan_starts,
                group.scan_ends,
                group.isolation_mz,
                group.isolation_width,
                group.collision_energy,
            )
            for scan_start, scan_end, mz, width, energy in windows:
                if sub_end <= scan_end or scan_start <= sub_start:
                    continue
                half_width = width / 2.0
                mz_min = min(mz_min, mz - half_width)
                mz_max = max(mz_max, mz + half_width)
                scan_width = float(min(scan_end, sub_end) - max(scan_start, sub_start))
                nce_sum += energy * scan_width
                total_scan_width += scan_width
            energy_mean = (
                nce_sum / total_scan_width if total_scan_width else math.nan
            )
            expanded.append(
                QuadrupoleSettings(
                    index=window_group.frame,
                    scan_starts=[sub_start],
                    scan_ends=[sub_end],
                    isolation_mz=[(mz_min + mz_max) / 2.0],
                    isolation_width=[mz_min - mz_max],
                    collision_energy=[energy_mean],
                )
            )
    return expanded


def expand_quadrupole_settings(
    window_groups: Sequence[SqlWindowGroup],
    quadrupole_settings: Sequence[QuadrupoleSettings],
    strategy: QuadWindowExpansionStrategy,
) -> list[QuadrupoleSettings]:
    """Split each quadrupole window of each frame into sub-windows."""
    expanded = []
    for window_group in window_groups:
        group = _group_of(quadrupole_settings, window_group.window_group)
        windows = zip(
            group.scan_starts,
            group.scan_ends,
            group.isolation_mz,
            group.isolation_width,
            group.collision_energy,
        )
        for scan_start, scan_end, mz, width, energy in windows:
            for sub_start, sub_end in scan_range_subsplit(scan_start, scan_end, strategy):
                expanded.append(
                    QuadrupoleSettings(
                        index=window_group.frame,
                        scan_starts=[sub_start],
                        scan_ends=[sub_end],
                        isolation_mz=[mz],
                        isolation_width=[width],
                        collision_energy=[energy],
                    )
                )
    return expanded