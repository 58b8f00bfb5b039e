"""
soundset ExtractOptions - Per-run extraction settings.

Responsibilities:
- Hold every knob a worker needs to turn a sample into an example
- Serialization for debugging/logging

Invariants:
- Immutable for the lifetime of a run
- Picklable (shipped to worker processes with each task)
"""

from dataclasses import dataclass, field
from typing import Any

from soundset.audio import DEFAULT_ALIGN, DEFAULT_STRIDE, IN_SAMPLE_RATE
from soundset.augment import AugmentConfig
from soundset.features import MfccConfig


@dataclass(frozen=True)
class ExtractOptions:
    """Settings shared by every worker in a run."""

    align: int = DEFAULT_ALIGN
    stride: int = DEFAULT_STRIDE
    augment: bool = False
    use_mfcc: bool = False
    sample_rate: int = IN_SAMPLE_RATE
    mfcc: MfccConfig = field(default_factory=MfccConfig)
    augment_config: AugmentConfig = field(default_factory=AugmentConfig)

    def validate(self) -> None:
        """
        Check numeric settings.

        Raises:
            ValueError: On a non-positive align, stride, or sample rate.
        """
        if self.align < 1:
            raise ValueError(f"align must be >= 1, got {self.align}")
        if self.stride < 1:
            raise ValueError(f"stride must be >= 1, got {self.stride}")
        if self.sample_rate < 1:
            raise ValueError(f"sample_rate must be >= 1, got {self.sample_rate}")

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "align": self.align,
            "stride": self.stride,
            "augment": self.augment,
            "use_mfcc": self.use_mfcc,
            "sample_rate": self.sample_rate,
            "mfcc": {
                "sample_rate_hz": self.mfcc.sample_rate_hz,
                "n_mfcc": self.mfcc.n_mfcc,
                "n_fft": self.mfcc.n_fft,
                "hop_length": self.mfcc.hop_length,
            },
            "augment_config": {
                "profiles": list(self.augment_config.profiles),
                "gain_jitter_db": list(self.augment_config.gain_jitter_db),
                "noise_snr_db": list(self.augment_config.noise_snr_db),
                "max_shift_fraction": self.augment_config.max_shift_fraction,
                "clip": self.augment_config.clip,
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExtractOptions":
        """Deserialize from dictionary; missing keys take their defaults."""
        mfcc = data.get("mfcc", {})
        aug = data.get("augment_config", {})
        defaults = AugmentConfig()
        return cls(
            align=data.get("align", DEFAULT_ALIGN),
            stride=data.get("stride", DEFAULT_STRIDE),
            augment=data.get("augment", False),
            use_mfcc=data.get("use_mfcc", False),
            sample_rate=data.get("sample_rate", IN_SAMPLE_RATE),
            mfcc=MfccConfig(**mfcc),
            augment_config=AugmentConfig(
                profiles=tuple(aug.get("profiles", defaults.profiles)),
                gain_jitter_db=tuple(aug.get("gain_jitter_db", defaults.gain_jitter_db)),
                noise_snr_db=tuple(aug.get("noise_snr_db", defaults.noise_snr_db)),
                max_shift_fraction=aug.get("max_shift_fraction", defaults.max_shift_fraction),
                clip=aug.get("clip", defaults.clip),
            ),
        )
