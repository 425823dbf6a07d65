import sqlite3
from contextlib import closing

import pytest

from timsdata.errors import (
    KeyNotFoundError,
    MetadataReaderError,
    UnknownTypeError,
    ValueParseError,
)
from timsdata.metadata_reader import OTOF_CONTROL, read_metadata

BASE_METADATA = {
    "TimsCompressionType": "2",
    "AcquisitionSoftware": "timsTOF",
    "MzAcqRangeLower": "100",
    "MzAcqRangeUpper": "1700",
    "OneOverK0AcqRangeLower": "0.6",
    "OneOverK0AcqRangeUpper": "1.6",
    "DigitizerNumSamples": "400000",
}
TIMES = [0.3, 0.1, 0.4, 0.2]
SCANS = [700, 709, 650, 709]


def make_dataset(root, metadata=None, frames=None, with_metadata_table=True):
    root.mkdir()
    (root / "analysis.tdf_bin").write_bytes(b"")
    if metadata is None:
        metadata = BASE_METADATA
    if frames is None:
        frames = list(zip(TIMES, SCANS))
    with closing(sqlite3.connect(root / "analysis.tdf")) as conn:
        if with_metadata_table:
            conn.execute("CREATE TABLE GlobalMetadata (Key TEXT, Value TEXT)")
            conn.executemany(
                "INSERT INTO GlobalMetadata VALUES (?, ?)", list(metadata.items())
            )
        conn.execute("CREATE TABLE Frames (Id INTEGER, Time REAL, NumScans INTEGER)")
        conn.executemany(
            "INSERT INTO Frames VALUES (?, ?, ?)",
            [(i + 1, t, s) for i, (t, s) in enumerate(frames)],
        )
        conn.commit()
    return root


@pytest.fixture
def dataset(tmp_path):
    return make_dataset(tmp_path / "run.d")


def test_reads_ranges_and_compression(dataset):
    metadata = read_metadata(dataset)
    assert metadata.compression_type == 2
    assert metadata.lower_mz == 100.0
    assert metadata.upper_mz == 1700.0
    assert metadata.lower_im == 0.6
    assert metadata.upper_im == 1.6


def test_rt_bounds_and_converter(dataset):
    metadata = read_metadata(dataset)
    assert metadata.lower_rt == min(TIMES)
    assert metadata.upper_rt == max(TIMES)
    assert metadata.rt_converter.rt_values == TIMES


def test_mz_converter_spans_range(dataset):
    metadata = read_metadata(dataset)
    assert metadata.mz_converter.convert(0) == pytest.approx(100.0)
    assert metadata.mz_converter.convert(400000) == pytest.approx(1700.0)


def test_im_converter_uses_max_scan_count(dataset):
    metadata = read_metadata(dataset)
    assert metadata.im_converter.convert(0) == pytest.approx(1.6)
    assert metadata.im_converter.convert(max(SCANS)) == pytest.approx(0.6)


def test_otof_control_widens_mz_range(tmp_path):
    root = make_dataset(
        tmp_path / "otof.d",
        metadata={**BASE_METADATA, "AcquisitionSoftware": OTOF_CONTROL},
    )
    metadata = read_metadata(root)
    assert metadata.lower_mz == pytest.approx(100.0 - 5.0)
    assert metadata.upper_mz == pytest.approx(1700.0 + 5.0)
    assert metadata.mz_converter.convert(0) == pytest.approx(metadata.lower_mz)


def test_path_inside_dataset_is_accepted(dataset):
    metadata = read_metadata(dataset / "analysis.tdf")
    assert metadata.compression_type == 2


@pytest.mark.parametrize("key", sorted(BASE_METADATA))
def test_missing_key(tmp_path, key):
    metadata = {k: v for k, v in BASE_METADATA.items() if k != key}
    root = make_dataset(tmp_path / "missing.d", metadata=metadata)
    with pytest.raises(KeyNotFoundError) as info:
        read_metadata(root)
    assert info.value.key == key


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("TimsCompressionType", "two"),
        ("TimsCompressionType", "-1"),
        ("TimsCompressionType", "256"),
        ("DigitizerNumSamples", "1.5"),
        ("MzAcqRangeLower", "abc"),
        ("MzAcqRangeUpper", " 100"),
        ("OneOverK0AcqRangeLower", ""),
    ],
)
def test_unparsable_value(tmp_path, key, value):
    root = make_dataset(tmp_path / "bad.d", metadata={**BASE_METADATA, key: value})
    with pytest.raises(ValueParseError) as info:
        read_metadata(root)
    assert info.value.key == key


def test_missing_metadata_table(tmp_path):
    root = make_dataset(tmp_path / "nometa.d", with_metadata_table=False)
    with pytest.raises(MetadataReaderError):
        read_metadata(root)


def test_empty_frames_table(tmp_path):
    root = make_dataset(tmp_path / "noframes.d", frames=[])
    with pytest.raises(MetadataReaderError):
        read_metadata(root)


def test_not_a_dataset(tmp_path):
    with pytest.raises(UnknownTypeError):
        read_metadata(tmp_path)