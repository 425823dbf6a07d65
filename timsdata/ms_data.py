"""Data structures that represent mass spectrometry data."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum

from .converters import Frame2RtConverter, Scan2ImConverter, Tof2MzConverter


class AcquisitionType(Enum):
    """The kind of acquisition that was used."""

    DDAPASEF = "DDAPASEF"
    DIAPASEF = "DIAPASEF"
    DiagonalDIAPASEF = "DiagonalDIAPASEF"
    Unknown = "Unknown"


class MSLevel(Enum):
    """The MS level of a frame."""

    MS1 = "MS1"
    MS2 = "MS2"
    Unknown = "Unknown"

    @classmethod
    def from_msms_type(cls, msms_type: int) -> MSLevel:
        """Map the ``MsMsType`` column of the Frames table to an MS level."""
        return {0: cls.MS1, 8: cls.MS2, 9: cls.MS2}.get(msms_type, cls.Unknown)


@dataclass
class MaldiInfo:
    """MALDI imaging metadata attached to a frame."""

    spot_name: str = ""
    pixel_x: int = 0
    pixel_y: int = 0
    position_x_um: float | None = None
    position_y_um: float | None = None
    laser_power: float | None = None
    laser_rep_rate: float | None = None
    laser_shots: int | None = None


@dataclass
class QuadrupoleSettings:
    """Quadrupole isolation windows used for fragmentation."""

    index: int = 0
    scan_starts: list[int] = field(default_factory=list)
    scan_ends: list[int] = field(default_factory=list)
    isolation_mz: list[float] = field(default_factory=list)
    isolation_width: list[float] = field(default_factory=list)
    collision_energy: list[float] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.isolation_mz)

    def __hash__(self) -> int:
        return hash(
            (
                self.index,
                tuple(self.scan_starts),
                tuple(self.scan_ends),
                tuple(self.isolation_mz),
                tuple(self.isolation_width),
                tuple(self.collision_energy),
            )
        )


@dataclass
class Frame:
    """All unprocessed data of one TIMS elution, as it was acquired."""

    scan_offsets: list[int] = field(default_factory=list)
    tof_indices: list[int] = field(default_factory=list)
    intensities: list[int] = field(default_factory=list)
    index: int = 0
    rt_in_seconds: float = 0.0
    acquisition_type: AcquisitionType = AcquisitionType.Unknown
    ms_level: MSLevel = MSLevel.Unknown
    quadrupole_settings: QuadrupoleSettings = field(default_factory=QuadrupoleSettings)
    intensity_correction_factor: float = 0.0
    window_group: int = 0
    maldi_info: MaldiInfo | None = None

    def get_corrected_intensity(self, index: int) -> float:
        return self.intensity_correction_factor * float(self.intensities[index])


@dataclass
class Metadata:
    """Run-level metadata and domain converters."""

    rt_converter: Frame2RtConverter = field(default_factory=Frame2RtConverter)
    im_converter: Scan2ImConverter = field(default_factory=Scan2ImConverter)
    mz_converter: Tof2MzConverter = field(default_factory=Tof2MzConverter)
    compression_type: int = 0
    lower_rt: float = 0.0
    upper_rt: float = 0.0
    lower_im: float = 0.0
    upper_im: float = 0.0
    lower_mz: float = 0.0
    upper_mz: float = 0.0


@dataclass(frozen=True)
class Precursor:
    """The MS1 precursor that was selected for fragmentation."""

    mz: float = 0.0
    rt: float = 0.0
    im: float = 0.0
    charge: int | None = None
    intensity: float | None = None
    index: int = 0
    frame_index: int = 0


@dataclass
class Spectrum:
    """An MS2 spectrum with centroided m/z values and summed intensities."""

    mz_values: list[float] = field(default_factory=list)
    intensities: list[float] = field(default_factory=list)
    precursor: Precursor | None = None
    index: int = 0
    collision_energy: float = 0.0
    isolation_mz: float = 0.0
    isolation_width: float = 0.0

    def get_top_n(self, n: int) -> Spectrum:
        """Keep the ``n`` most intense peaks in m/z order; 0 keeps all."""
        top_n = len(self) if n == 0 else n
        by_intensity = sorted(
            range(len(self.intensities)),
            key=self.intensities.__getitem__,
            reverse=True,
        )
        kept = sorted(by_intensity[:top_n])
        return dataclasses.replace(
            self,
            mz_values=[self.mz_values[i] for i in kept],
            intensities=[self.intensities[i] for i in kept],
        )

    def __len__(self) -> int:
        return len(self.mz_values)