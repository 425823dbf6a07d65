"""Decoded binary blobs holding byte-plane encoded 32-bit values."""

from __future__ import annotations

import struct
from collections.abc import Iterator

from .errors import BLOB_VALUE_SIZE, TdfBlobError


class TdfBlob:
    """A sequence of unsigned 32-bit values stored as four byte planes.

    Byte ``k`` of value ``i`` lives at position ``i + k * len(blob)``.
    """

    __slots__ = ("_data",)

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        raw = bytes(data)
        if len(raw) % BLOB_VALUE_SIZE:
            raise TdfBlobError(len(raw))
        self._data = raw

    @property
    def data(self) -> bytes:
        return self._data

    def __len__(self) -> int:
        return len(self._data) // BLOB_VALUE_SIZE

    def __getitem__(self, index: int) -> int:
        count = len(self)
        if index < 0:
            index += count
        if not 0 <= index < count:
            raise IndexError(f"blob index {index} out of range for length {count}")
        data = self._data
        return (
            data[index]
            | data[index + count] << 8
            | data[index + 2 * count] << 16
            | data[index + 3 * count] << 24
        )

    def get_all(self) -> list[int]:
        """Decode every value in the blob."""
        count = len(self)
        interleaved = bytearray(len(self._data))
        for plane in range(BLOB_VALUE_SIZE):
            interleaved[plane::BLOB_VALUE_SIZE] = self._data[
                plane * count : (plane + 1) * count
            ]
        return list(struct.unpack(f"<{count}I", interleaved))

    def __iter__(self) -> Iterator[int]:
        return iter(self.get_all())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TdfBlob):
            return NotImplemented
        return self._data == other._data

    def __hash__(self) -> int:
        return hash(self._data)

    def __repr__(self) -> str:
        return f"TdfBlob(len={len(self)})"