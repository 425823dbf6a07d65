"""Small helpers on parallel lists of indices and values."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, TypeVar

T = TypeVar("T")


def argsort(values: Sequence[Any]) -> list[int]:
    """Indices that sort ``values``, stable for equal elements."""
    return sorted(range(len(values)), key=values.__getitem__)


def group_and_sum(
    groups: Sequence[Any], values: Sequence[Any]
) -> tuple[list[Any], list[Any]]:
    """Sum ``values`` per distinct group; groups come back sorted."""
    new_groups: list[Any] = []
    new_values: list[Any] = []
    for index in argsort(groups):
        group = groups[index]
        value = values[index]
        if new_groups and new_groups[-1] == group:
            new_values[-1] = new_values[-1] + value
        else:
            new_groups.append(group)
            new_values.append(value)
    return new_groups, new_values


def find_sparse_local_maxima_mask(
    indices: Sequence[int], values: Sequence[int], window: int
) -> list[bool]:
    """Mark peaks that are maximal among neighbours within ``window``.

    ``indices`` must be sorted ascending. Of two neighbours with equal
    values, the earlier one is kept.
    """
    count = len(indices)
    mask = [True] * count
    for current, (position, value) in enumerate(zip(indices, values)):
        following = current + 1
        while following < count and indices[following] - position <= window:
            if value < values[following]:
                mask[current] = False
            else:
                mask[following] = False
            following += 1
    return mask


def filter_with_mask(values: Sequence[T], mask: Sequence[bool]) -> list[T]:
    """Keep the elements of ``values`` whose mask entry is true."""
    return [value for value, keep in zip(values, mask) if keep]