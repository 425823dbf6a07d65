"""Writing spectra in Mascot Generic Format."""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from .ms_data import Spectrum


def format_mgf_header(spectrum: Spectrum) -> str:
    """The TITLE, PEPMASS, CHARGE and RTINSECONDS lines of a spectrum.

    Raises ValueError when the spectrum has no precursor.
    """
    precursor = spectrum.precursor
    if precursor is None:
        raise ValueError("Spectrum has no precursor")
    intensity = precursor.intensity if precursor.intensity is not None else 0.0
    charge = precursor.charge if precursor.charge is not None else 0
    return (
        f"TITLE=index:{precursor.index}, im:{precursor.im:.4f}, "
        f"intensity:{intensity:.4f}, frame:{precursor.frame_index}, "
        f"ce:{spectrum.collision_energy:.4f}\n"
        f"PEPMASS={precursor.mz:.4f}\n"
        f"CHARGE={charge}\n"
        f"RTINSECONDS={precursor.rt:.2f}\n"
    )


def format_mgf_peaks(spectrum: Spectrum) -> str:
    """One tab-separated ``mz intensity`` line per peak."""
    return "".join(
        f"{mz:.4f}\t{intensity:.0f}\n"
        for mz, intensity in zip(spectrum.mz_values, spectrum.intensities)
    )


def format_mgf_entry(spectrum: Spectrum) -> str:
    """Header and peak lines of one spectrum."""
    return format_mgf_header(spectrum) + format_mgf_peaks(spectrum)


def write_mgf(
    input_file_path: str | os.PathLike[str], spectra: Iterable[Spectrum]
) -> Path:
    """Write ``spectra`` next to the input as ``<stem>.mgf``; returns that path."""
    input_path = Path(input_file_path)
    output_path = input_path.parent / f"{input_path.stem}.mgf"
    with open(output_path, "w", encoding="utf-8", newline="") as handle:
        for spectrum in spectra:
            handle.write("BEGIN IONS\n")
            handle.write(format_mgf_entry(spectrum))
            handle.write("END IONS\n")
    return output_path