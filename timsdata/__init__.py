"""Readers for Bruker timsTOF TDF data: frames, spectra, precursors and metadata."""

__version__ = "0.4.2"