"""Command-line summary of a TDF dataset."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from .errors import TimsDataError
from .frame_reader import FrameReader
from .ms_data import MSLevel

_PREVIEW_FRAMES = 5
_PREVIEW_WINDOWS = 3


def _count_level(reader: FrameReader, level: MSLevel) -> int:
    return sum(
        1
        for index in range(len(reader))
        if reader.get_frame_without_coordinates(index).ms_level is level
    )


def _print_frame(reader: FrameReader, index: int) -> None:
    try:
        frame = reader.get(index)
    except TimsDataError as exc:
        print(f"  Error reading frame {index}: {exc}")
        return
    print(
        f"\nFrame {index}: rt={frame.rt_in_seconds:.2f}s, "
        f"{len(frame.intensities)} peaks"
    )
    maldi = frame.maldi_info
    if maldi is not None:
        print(
            f"  MALDI: pixel ({maldi.pixel_x}, {maldi.pixel_y}), "
            f"spot: {maldi.spot_name}"
        )
        if maldi.position_x_um is not None:
            position_y = maldi.position_y_um if maldi.position_y_um is not None else 0.0
            print(f"  Position: ({maldi.position_x_um:.2f} um, {position_y:.2f} um)")
        if maldi.laser_power is not None:
            print(f"  Laser power: {maldi.laser_power:.1f}%")
    if frame.intensities:
        print(f"  Max intensity: {max(frame.intensities)}")


def _report(reader: FrameReader) -> None:
    print("\n=== Dataset Information ===")
    print(f"Total frames: {len(reader)}")
    print(f"Acquisition type: {reader.acquisition().name}")
    print(f"Is MALDI imaging: {str(reader.is_maldi()).lower()}")
    print(f"MS1 frames: {_count_level(reader, MSLevel.MS1)}")
    print(f"MS2 frames: {_count_level(reader, MSLevel.MS2)}")

    print(f"\n=== First {_PREVIEW_FRAMES} Frames ===")
    for index in range(min(_PREVIEW_FRAMES, len(reader))):
        _print_frame(reader, index)

    windows = reader.get_dia_windows()
    if windows is not None:
        print("\n=== DIA Windows ===")
        print(f"Window configurations: {len(windows)}")
        for index, window in enumerate(windows[:_PREVIEW_WINDOWS]):
            print(f"  Window {index}: {window!r}")

    print("\nSuccessfully read TDF dataset")


def main(argv: Sequence[str] | None = None) -> int:
    """Print frame statistics and metadata of a TDF dataset."""
    parser = argparse.ArgumentParser(
        prog="timsdata", description="Summarise a timsTOF TDF dataset."
    )
    parser.add_argument("path", help="path to a .d dataset directory")
    args = parser.parse_args(argv)

    if not Path(args.path).exists():
        print(f"Error: Path does not exist: {args.path}", file=sys.stderr)
        return 1
    print(f"Opening TDF dataset: {args.path}")
    try:
        reader = FrameReader(args.path)
    except (TimsDataError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    with reader:
        _report(reader)
    return 0


if __name__ == "__main__":
    sys.exit(main())