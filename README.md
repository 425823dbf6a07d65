# timsdata

Read Bruker timsTOF data from Python. The package opens `.d` dataset folders
that hold an `analysis.tdf` SQLite index and an `analysis.tdf_bin` binary peak
file. You can give it the dataset folder itself or any path inside it. Parent
folders are searched until a dataset is found.

The package gives you two views of the data.

* **Frames**: everything recorded in one TIMS elution. A frame holds the raw
  TOF indices and intensities, and the scan offsets that split them into scans.
* **Spectra**: MS2 spectra with m/z values and summed intensities. Each
  spectrum is linked to its precursor. Spectra can be read from DDA-PASEF and
  DIA-PASEF acquisitions.

## Installation

```
pip install .
```

The only runtime dependency is `zstandard`.

## Reading frames

```python
from timsdata.frame_reader import FrameReader
from timsdata.ms_data import MSLevel

with FrameReader("sample.d") as reader:
    print(len(reader), reader.acquisition(), reader.is_maldi())
    frame = reader.get(0)
    print(frame.index, frame.rt_in_seconds, len(frame.intensities))
    ms1 = reader.get_all_ms1()
    ms2 = list(reader.filter(lambda f: f.ms_level is MSLevel.MS2))
```

* `get(index)` addresses frames by their position in the Frames table,
  starting at zero. It does not use the frame id.
* `get_frame_without_coordinates(index)` returns the frame's metadata without
  its peak data.
* `get_dia_windows()` returns the DIA window groups as `QuadrupoleSettings`.
  For any other acquisition it returns `None`.

If the dataset has a `MaldiFrameInfo` table, each frame carries a `MaldiInfo`
in its `maldi_info` field. It holds the pixel coordinates, the physical
position and the laser settings.

## Reading spectra

```python
from timsdata.spectrum_reader import SpectrumReader

reader = SpectrumReader("sample.d")
for spectrum in reader.get_all():
    print(spectrum.precursor.mz, len(spectrum))
```

`get_all()` returns every spectrum, ordered by precursor index.
`Spectrum.get_top_n(n)` keeps the `n` most intense peaks in m/z order. With
`n = 0` it keeps every peak.

Pass a `SpectrumReaderConfig` to control DIA window splitting, smoothing,
centroiding and m/z calibration:

```python
from timsdata.quad_settings import (
    EvenExpansion,
    FrameWindowSplittingConfiguration,
    SplittingMode,
)
from timsdata.spectrum_reader import (
    SpectrumProcessingParams,
    SpectrumReader,
    SpectrumReaderConfig,
)

config = SpectrumReaderConfig(
    spectrum_processing_params=SpectrumProcessingParams(calibrate=True),
    frame_splitting_params=FrameWindowSplittingConfiguration(
        SplittingMode.QUADRUPOLE, EvenExpansion(2)
    ),
)
reader = SpectrumReader("sample.d", config)
```

DIA windows can be split in two ways:

* `SplittingMode.QUADRUPOLE` splits each quadrupole window.
* `SplittingMode.WINDOW` splits each whole window group.

These expansion strategies decide how a window is split:

* `NoExpansion`
* `EvenExpansion(num_splits)`
* `UniformScanExpansion(span, step)`
* `UniformMobilityExpansion(span, step)`

The default is quadrupole mode with `EvenExpansion(1)`.

With `calibrate=True`, the m/z converter is fitted again by least squares. The
fit uses peaks that lie within `calibration_tolerance` of their precursor's
m/z, and it only runs when at least two such peaks are found.

## Precursors and metadata

* `timsdata.precursor_reader.PrecursorReader` reads the precursors of a DDA or
  DIA dataset. It picks the acquisition type from the `ScanMode` column of the
  Frames table.
* `timsdata.metadata_reader.read_metadata(path)` returns a `Metadata` record.
  It holds the retention time, ion mobility and m/z ranges, the compression
  type, and three domain converters:
  * `Frame2RtConverter`
  * `Scan2ImConverter`
  * `Tof2MzConverter`

Each converter has `convert` and `invert`.

## Writing MGF

```python
from timsdata.mgf import write_mgf

path = write_mgf("sample.d", reader.get_all())
```

This writes `sample.mgf` next to the input path and returns that path. Every
spectrum written must have a precursor. A spectrum without one raises
`ValueError`.

## Command line

```
timsdata path/to/sample.d
```

For a dataset, this prints:

* the frame count and the acquisition type;
* whether it is MALDI imaging data;
* the MS1 and MS2 frame counts;
* a summary of the first five frames;
* the first DIA windows, if there are any.

## Errors

Every error raised while reading a dataset is a subclass of
`timsdata.errors.TimsDataError`. Examples are `FrameReaderError`,
`SpectrumReaderError`, `MetadataReaderError` and `UnknownTypeError`.

## Limitations

* Only `.d` folders with `analysis.tdf` and `analysis.tdf_bin` are recognised.
  Other dataset layouts, such as a Parquet index beside a `.bin` file, are not
  read.
* Frames are decoded only for compression type 2. Any other type raises
  `CompressionTypeError`.
* Spectra and precursors are available only for DDA-PASEF and DIA-PASEF
  acquisitions. Other acquisitions raise `UnsupportedAcquisitionError`.
* Data is read, never written back. The only output format is MGF.

## Running the tests

```
pip install ".[test]"
pytest
```