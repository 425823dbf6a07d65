[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "timsdata"
version = "0.4.2"
description = "Read Bruker timsTOF TDF data: frames, spectra, precursors and metadata"
requires-python = ">=3.10"
keywords = ["mass spectrometry", "timsTOF", "TDF", "PASEF", "proteomics"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Bio-Informatics",
]
dependencies = [
    "zstandard",
]

[project.optional-dependencies]
test = [
    "pytest",
    "zstandard",
]

[project.scripts]
timsdata = "timsdata.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["timsdata"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"
