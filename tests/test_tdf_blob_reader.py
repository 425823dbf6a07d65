import struct

import pytest
import zstandard

from timsdata.errors import TdfBlobError, TdfBlobReaderError, TimsTofPathError
from timsdata.tdf_blob_reader import IndexedTdfBlobReader, TdfBlobReader


def _planes(values):
    return b"".join(
        bytes((value >> (8 * plane)) & 0xFF for value in values)
        for plane in range(4)
    )


def _record(compressed, scan_count=0):
    return struct.pack("<II", len(compressed) + 8, scan_count) + compressed


def _compress(payload):
    return zstandard.ZstdCompressor().compress(payload)


def _make_dataset(tmp_path, binary):
    dataset = tmp_path / "run.d"
    dataset.mkdir()
    (dataset / "analysis.tdf").write_bytes(b"")
    (dataset / "analysis.tdf_bin").write_bytes(binary)
    return dataset


FIRST = [1, 256, 70000, 2**32 - 1]
SECOND = [5, 6, 7]


@pytest.fixture
def two_blobs(tmp_path):
    first = _record(_compress(_planes(FIRST)), scan_count=2)
    second = _record(_compress(_planes(SECOND)), scan_count=1)
    return _make_dataset(tmp_path, first + second), [0, len(first)]


def test_reads_blob_at_offset_zero(two_blobs):
    dataset, _ = two_blobs
    with TdfBlobReader(dataset) as reader:
        assert reader.get(0).get_all() == FIRST


def test_reads_blob_at_later_offset(two_blobs):
    dataset, offsets = two_blobs
    with TdfBlobReader(dataset) as reader:
        blob = reader.get(offsets[1])
    assert list(blob) == SECOND
    assert len(blob) == len(SECOND)


def test_offset_past_end_is_invalid(two_blobs):
    dataset, _ = two_blobs
    with TdfBlobReader(dataset) as reader:
        with pytest.raises(TdfBlobReaderError, match="Invalid offset"):
            reader.get(10_000)


def test_byte_count_past_end_is_corrupt(tmp_path):
    compressed = _compress(_planes(FIRST))
    binary = struct.pack("<II", len(compressed) + 100, 0) + compressed
    with TdfBlobReader(_make_dataset(tmp_path, binary)) as reader:
        with pytest.raises(TdfBlobReaderError, match="corrupt"):
            reader.get(0)


def test_undecodable_payload_raises(tmp_path):
    binary = _record(b"not zstd data at all")
    with TdfBlobReader(_make_dataset(tmp_path, binary)) as reader:
        with pytest.raises(TdfBlobReaderError, match="Decompression"):
            reader.get(0)


def test_payload_not_multiple_of_four_raises(tmp_path):
    binary = _record(_compress(b"\x01\x02\x03\x04\x05"))
    with TdfBlobReader(_make_dataset(tmp_path, binary)) as reader:
        with pytest.raises(TdfBlobError):
            reader.get(0)


def test_multiple_frames_are_joined(tmp_path):
    payload = _planes(FIRST)
    compressed = _compress(payload[:8]) + _compress(payload[8:])
    with TdfBlobReader(_make_dataset(tmp_path, _record(compressed))) as reader:
        assert reader.get(0).get_all() == FIRST


def test_empty_payload_gives_empty_blob(tmp_path):
    with TdfBlobReader(_make_dataset(tmp_path, _record(b""))) as reader:
        assert len(reader.get(0)) == 0


def test_empty_binary_file_has_no_valid_offsets(tmp_path):
    with TdfBlobReader(_make_dataset(tmp_path, b"")) as reader:
        with pytest.raises(TdfBlobReaderError):
            reader.get(0)


def test_opens_from_file_inside_dataset(two_blobs):
    dataset, _ = two_blobs
    with TdfBlobReader(dataset / "analysis.tdf_bin") as reader:
        assert reader.get(0).get_all() == FIRST


def test_missing_binary_file_raises(tmp_path):
    dataset = tmp_path / "run.d"
    dataset.mkdir()
    (dataset / "analysis.tdf").write_bytes(b"")
    with pytest.raises(TimsTofPathError):
        TdfBlobReader(dataset)


def test_indexed_reader_reads_by_position(two_blobs):
    dataset, offsets = two_blobs
    with IndexedTdfBlobReader(dataset, offsets) as reader:
        assert reader.get(1).get_all() == SECOND
        assert reader.get(0).get_all() == FIRST


@pytest.mark.parametrize("index", [2, -1])
def test_indexed_reader_rejects_bad_index(two_blobs, index):
    dataset, offsets = two_blobs
    with IndexedTdfBlobReader(dataset, offsets) as reader:
        with pytest.raises(TdfBlobReaderError, match="Invalid index"):
            reader.get(index)