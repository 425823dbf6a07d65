"""Random access to the compressed blobs in a dataset's binary file."""

from __future__ import annotations

import io
import mmap
import os
import struct
from collections.abc import Sequence
from typing import Any

import zstandard

from .blobs import TdfBlob
from .errors import TdfBlobReaderError
from .paths import TimsTofPath

_U32 = struct.Struct("<I")
_HEADER_SIZE = 2 * _U32.size


def _decompress(data: bytes) -> bytes:
    """Decompress every zstd frame in ``data`` and join the results."""
    if not data:
        return b""
    decompressor = zstandard.ZstdDecompressor()
    try:
        with decompressor.stream_reader(
            io.BytesIO(data), read_across_frames=True
        ) as reader:
            return reader.read()
    except zstandard.ZstdError as exc:
        raise TdfBlobReaderError("Decompression fails") from exc


class TdfBlobReader:
    """Reads blobs by byte offset from ``analysis.tdf_bin``.

    Each blob starts with a little-endian 32-bit byte count covering the
    whole record, followed by a second 32-bit header field and the
    zstd-compressed payload.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        dataset = path if isinstance(path, TimsTofPath) else TimsTofPath(path)
        bin_path = dataset.tdf_bin()
        self._buffer: mmap.mmap | bytes
        try:
            with open(bin_path, "rb") as handle:
                if os.fstat(handle.fileno()).st_size:
                    self._buffer = mmap.mmap(
                        handle.fileno(), 0, access=mmap.ACCESS_READ
                    )
                else:
                    self._buffer = b""
        except OSError as exc:
            raise TdfBlobReaderError(str(exc)) from exc

    def get(self, offset: int) -> TdfBlob:
        """Read and decompress the blob that starts at ``offset``."""
        buffer = self._buffer
        size = len(buffer)
        if offset < 0 or offset + _U32.size > size:
            raise TdfBlobReaderError(f"Invalid offset {offset}")
        (byte_count,) = _U32.unpack_from(buffer, offset)
        start = offset + _HEADER_SIZE
        end = offset + byte_count
        if start > end or end > size:
            raise TdfBlobReaderError("Data is corrupt")
        return TdfBlob(_decompress(buffer[start:end]))

    def close(self) -> None:
        if isinstance(self._buffer, mmap.mmap):
            self._buffer.close()

    def __enter__(self) -> TdfBlobReader:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class IndexedTdfBlobReader:
    """Reads blobs by position in a list of known byte offsets."""

    def __init__(
        self, path: str | os.PathLike[str], binary_offsets: Sequence[int]
    ) -> None:
        self.binary_offsets = list(binary_offsets)
        self._blob_reader = TdfBlobReader(path)

    def get(self, index: int) -> TdfBlob:
        if not 0 <= index < len(self.binary_offsets):
            raise TdfBlobReaderError(f"Invalid index {index}")
        return self._blob_reader.get(self.binary_offsets[index])

    def close(self) -> None:
        self._blob_reader.close()

    def __enter__(self) -> IndexedTdfBlobReader:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()