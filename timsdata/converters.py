"""Conversions between acquisition domains (frame, scan and TOF indices)."""

from __future__ import annotations

import bisect
import math
import statistics
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field


class ConvertableDomain(ABC):
    """Maps values from one domain to another and back again."""

    @abstractmethod
    def convert(self, value: float) -> float:
        """Map a value from the source domain to the target domain."""

    @abstractmethod
    def invert(self, value: float) -> float:
        """Map a value from the target domain back to the source domain."""


@dataclass
class Frame2RtConverter(ConvertableDomain):
    """Converts frame indices to retention times using a lookup table."""

    rt_values: list[float] = field(default_factory=list)

    def convert(self, value: float) -> float:
        position = float(value)
        lower = self.rt_values[max(0, math.floor(position))]
        upper = self.rt_values[max(0, math.ceil(position))]
        return (lower + upper) / 2.0

    def invert(self, value: float) -> float:
        rt_value = float(value)
        if math.isnan(rt_value):
            raise ValueError("Cannot handle NaN retention times")
        count = len(self.rt_values)
        index = bisect.bisect_left(self.rt_values, rt_value)
        if index < count and self.rt_values[index] == rt_value:
            return float(index)
        if 0 < index < count:
            start = self.rt_values[index - 1]
            end = self.rt_values[index]
            return index + (rt_value - start) / (end - start)
        return float(index)


@dataclass(frozen=True)
class Scan2ImConverter(ConvertableDomain):
    """Linear converter from scan index to inverse ion mobility."""

    scan_intercept: float = 0.0
    scan_slope: float = 0.0

    @classmethod
    def from_boundaries(
        cls, im_min: float, im_max: float, scan_max_index: int
    ) -> Scan2ImConverter:
        intercept = float(im_max)
        slope = (im_min - intercept) / float(scan_max_index)
        return cls(scan_intercept=intercept, scan_slope=slope)

    def convert(self, value: float) -> float:
        return self.scan_intercept + self.scan_slope * float(value)

    def invert(self, value: float) -> float:
        return (float(value) - self.scan_intercept) / self.scan_slope


@dataclass(frozen=True)
class Tof2MzConverter(ConvertableDomain):
    """Converter from TOF index to m/z, linear in the square root of m/z."""

    tof_intercept: float = 0.0
    tof_slope: float = 0.0

    @classmethod
    def from_boundaries(
        cls, mz_min: float, mz_max: float, tof_max_index: int
    ) -> Tof2MzConverter:
        intercept = math.sqrt(mz_min)
        slope = (math.sqrt(mz_max) - intercept) / float(tof_max_index)
        return cls(tof_intercept=intercept, tof_slope=slope)

    @classmethod
    def regress_from_pairs(
        cls, data: Iterable[tuple[float, int]]
    ) -> Tof2MzConverter:
        """Fit a converter to ``(mz, tof_index)`` pairs by least squares.

        Raises ValueError when fewer than two pairs are given or all TOF
        indices are equal.
        """
        pairs = list(data)
        tof_indices = [float(tof) for _, tof in pairs]
        sqrt_mzs = [math.sqrt(mz) for mz, _ in pairs]
        slope, intercept = statistics.linear_regression(tof_indices, sqrt_mzs)
        return cls(tof_intercept=intercept, tof_slope=slope)

    def convert(self, value: float) -> float:
        return (self.tof_intercept + self.tof_slope * float(value)) ** 2

    def invert(self, value: float) -> float:
        return (math.sqrt(float(value)) - self.tof_intercept) / self.tof_slope