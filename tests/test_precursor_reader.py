import sqlite3
import struct

import pytest
import zstandard

from timsdata.converters import Scan2ImConverter
from timsdata.errors import PrecursorReaderError, UnsupportedAcquisitionError
from timsdata.ms_data import AcquisitionType
from timsdata.precursor_reader import PrecursorReader
from timsdata.quad_settings import (
    FrameWindowSplittingConfiguration,
    NoExpansion,
    SplittingMode,
    UniformScanExpansion,
)

METADATA = {
    "TimsCompressionType": "2",
    "AcquisitionSoftware": "timsTOF",
    "MzAcqRangeLower": "100.0",
    "MzAcqRangeUpper": "1000.0",
    "OneOverK0AcqRangeLower": "0.5",
    "OneOverK0AcqRangeUpper": "1.5",
    "DigitizerNumSamples": "1000",
}
FRAME_COLUMNS = (
    "Id", "ScanMode", "MsMsType", "NumPeaks", "Time", "NumScans", "TimsId",
    "AccumulationTime",
)
FOUR_SCANS = [[(1, 1)], [(2, 1)], [(3, 1)], [(4, 1)]]


def _frame_blob(scans):
    values = [len(scans), *(2 * len(scan) for scan in scans[:-1])]
    for scan in scans:
        previous = -1
        for tof, intensity in scan:
            values += [tof - previous, intensity]
            previous = tof
    raw = struct.pack(f"<{len(values)}I", *values)
    planes = b"".join(raw[k::4] for k in range(4))
    payload = zstandard.ZstdCompressor().compress(planes)
    return struct.pack("<II", len(payload) + 8, len(scans)) + payload


def _build_dataset(directory, frames, tables):
    directory.mkdir()
    binary = bytearray()
    frame_rows = []
    for frame_id, (msms_type, time, scans) in enumerate(frames, start=1):
        frame_rows.append(
            (frame_id, msms_type, msms_type, sum(map(len, scans)), time,
             len(scans), len(binary), 100.0)
        )
        binary += _frame_blob(scans)
    (directory / "analysis.tdf_bin").write_bytes(bytes(binary))
    all_tables = {
        "GlobalMetadata": (("Key", "Value"), list(METADATA.items())),
        "Frames": (FRAME_COLUMNS, frame_rows),
        **tables,
    }
    connection = sqlite3.connect(directory / "analysis.tdf")
    with connection:
        for name, (columns, rows) in all_tables.items():
            connection.execute(f"CREATE TABLE {name} ({', '.join(columns)})")
            placeholders = ", ".join("?" * len(columns))
            connection.executemany(
                f"INSERT INTO {name} VALUES ({placeholders})", rows
            )
    connection.close()
    return directory


@pytest.fixture
def dda_dataset(tmp_path):
    frames = [
        (0, 0.1, FOUR_SCANS),
        (8, 0.2, FOUR_SCANS),
        (8, 0.3, FOUR_SCANS),
        (8, 0.4, FOUR_SCANS),
    ]
    precursors = (
        ("Id", "MonoisotopicMz", "Charge", "ScanNumber", "Intensity", "Parent"),
        [
            (1, 500.0, 2, 0.0, 10.0, 1),
            (2, 501.0, 3, 2.0, 10.0, 1),
            (3, 502.0, 2, 0.0, 10.0, 3),
        ],
    )
    return _build_dataset(tmp_path / "dda.d", frames, {"Precursors": precursors})


@pytest.fixture
def dia_dataset(tmp_path):
    frames = [(0, 0.1, FOUR_SCANS), (9, 0.2, FOUR_SCANS), (9, 0.3, FOUR_SCANS)]
    tables = {
        "DiaFrameMsMsInfo": (("Frame", "WindowGroup"), [(2, 1), (3, 2)]),
        "DiaFrameMsMsWindows": (
            ("WindowGroup", "ScanNumBegin", "ScanNumEnd", "IsolationMz",
             "IsolationWidth", "CollisionEnergy"),
            [
                (1, 0, 2, 400.0, 25.0, 20.0),
                (1, 2, 4, 425.0, 25.0, 21.0),
                (2, 0, 4, 600.0, 50.0, 30.0),
            ],
        ),
    }
    return _build_dataset(tmp_path / "dia.d", frames, tables)


def test_dda_precursor_count(dda_dataset):
    reader = PrecursorReader(dda_dataset)
    assert reader.acquisition is AcquisitionType.DDAPASEF
    assert len(reader) == 3


def test_dda_precursor_values(dda_dataset):
    precursor = PrecursorReader(dda_dataset).get(0)
    assert precursor.mz == 500.0
    assert precursor.charge == 2
    assert precursor.intensity == 10.0
    assert precursor.index == 1
    assert precursor.frame_index == 1
    assert precursor.rt == pytest.approx(0.2)
    assert precursor.im == pytest.approx(1.5)


def test_dda_precursor_rt_follows_parent_frame(dda_dataset):
    precursor = PrecursorReader(dda_dataset).get(2)
    assert precursor.frame_index == 3
    assert precursor.rt == pytest.approx(0.4)
    assert precursor.index == 3


def test_dda_precursor_out_of_range_is_none(dda_dataset):
    assert PrecursorReader(dda_dataset).get(3) is None


def test_dia_default_config_keeps_windows(dia_dataset):
    reader = PrecursorReader(dia_dataset)
    assert reader.acquisition is AcquisitionType.DIAPASEF
    assert len(reader) == 3
    precursor = reader.get(0)
    assert precursor.mz == 400.0
    assert precursor.charge is None
    assert precursor.intensity is None
    assert precursor.index == 0
    assert precursor.frame_index == 2
    assert precursor.rt == pytest.approx(0.2)
    assert precursor.im == pytest.approx(
        Scan2ImConverter.from_boundaries(0.5, 1.5, 4).convert(1.0)
    )


def test_dia_no_expansion_matches_default(dia_dataset):
    default = PrecursorReader(dia_dataset)
    config = FrameWindowSplittingConfiguration(
        mode=SplittingMode.QUADRUPOLE, expansion=NoExpansion()
    )
    plain = PrecursorReader(dia_dataset, config)
    assert [plain.get(i) for i in range(len(plain))] == [
        default.get(i) for i in range(len(default))
    ]


def test_dia_window_splitting_by_scans(dia_dataset):
    config = FrameWindowSplittingConfiguration(
        mode=SplittingMode.WINDOW, expansion=UniformScanExpansion(1, 1)
    )
    reader = PrecursorReader(dia_dataset, config)
    assert len(reader) == 8
    frame_indices = {reader.get(i).frame_index for i in range(len(reader))}
    assert frame_indices == {2, 3}


def test_unsupported_acquisition(tmp_path):
    dataset = _build_dataset(
        tmp_path / "ms1.d", [(0, 0.1, FOUR_SCANS), (0, 0.2, FOUR_SCANS)], {}
    )
    with pytest.raises(UnsupportedAcquisitionError):
        PrecursorReader(dataset)


def test_unsupported_acquisition_is_precursor_error(tmp_path):
    dataset = _build_dataset(tmp_path / "ms1.d", [(0, 0.1, FOUR_SCANS)], {})
    with pytest.raises(PrecursorReaderError):
        PrecursorReader(dataset)


def test_directory_without_dataset(tmp_path):
    empty = tmp_path / "empty"
    empty.mkdir()
    with pytest.raises(PrecursorReaderError):
        PrecursorReader(empty)


def test_missing_path(tmp_path):
    with pytest.raises(PrecursorReaderError):
        PrecursorReader(tmp_path / "does-not-exist")