"""
soundset Augmentation

Randomized waveform perturbations applied before featurization.

PROFILES (applied in configured order):
    - gain:  multiply by a gain drawn uniformly in dB
    - noise: add white Gaussian noise at a drawn SNR
    - shift: circular time shift within max_shift_fraction
    - clip:  hard clip to [-1, 1]

INVARIANTS:
    - Output length equals input length
    - Output dtype is float32
    - Every draw comes from the caller's Generator (same state = same output)
    - Empty input is returned unchanged
"""

from dataclasses import dataclass

import numpy as np


PROFILES = ("gain", "noise", "shift", "clip")


@dataclass(frozen=True)
class AugmentConfig:
    """Augmentation profiles and their draw ranges (dB ranges are inclusive)."""

    profiles: tuple[str, ...] = ("gain", "noise", "shift")
    gain_jitter_db: tuple[float, float] = (-6.0, 6.0)
    noise_snr_db: tuple[float, float] = (15.0, 40.0)
    max_shift_fraction: float = 0.1
    clip: bool = True


def apply_augmentation(
    waveform: np.ndarray,
    rng: np.random.Generator,
    config: AugmentConfig = AugmentConfig(),
) -> np.ndarray:
    """
    Apply the configured profiles in order.

    Every random draw comes from `rng`, so equal generator state gives equal
    output. Length is preserved and the result is float32.
    """
    if waveform.size == 0:
        return waveform
    if waveform.ndim != 1:
        raise ValueError("Augmentation expects a 1D waveform.")

    augmented = waveform.astype(np.float32, copy=True)
    for profile in config.profiles:
        name = (profile or "").strip().lower()
        if name in {"", "none"}:
            continue
        if name == "gain":
            augmented = _apply_gain_jitter(augmented, rng, config.gain_jitter_db)
        elif name == "noise":
            augmented = _apply_noise(augmented, rng, config.noise_snr_db)
        elif name == "shift":
            augmented = _apply_shift(augmented, rng, config.max_shift_fraction)
        elif name == "clip":
            augmented = _apply_clipping(augmented)
        else:
            raise ValueError(f"Unknown augmentation profile: {profile!r}. Valid: {list(PROFILES)}")

    if config.clip:
        augmented = _apply_clipping(augmented)
    return augmented.astype(np.float32, copy=False)


def _apply_gain_jitter(waveform: np.ndarray, rng: np.random.Generator, jitter_db) -> np.ndarray:
    gain_db = rng.uniform(jitter_db[0], jitter_db[1])
    return waveform * np.float32(10.0 ** (gain_db / 20.0))


def _apply_noise(waveform: np.ndarray, rng: np.random.Generator, snr_range) -> np.ndarray:
    snr_db = rng.uniform(snr_range[0], snr_range[1])
    signal_power = max(float(np.mean(waveform.astype(np.float64) ** 2)), 1e-8)
    noise_power = signal_power / (10.0 ** (snr_db / 10.0))
    noise = rng.standard_normal(waveform.shape) * np.sqrt(noise_power)
    return waveform + noise.astype(np.float32)


def _apply_shift(waveform: np.ndarray, rng: np.random.Generator, max_fraction: float) -> np.ndarray:
    max_shift = int(len(waveform) * max_fraction)
    if max_shift <= 0:
        return waveform
    shift = int(rng.integers(-max_shift, max_shift + 1))
    return np.roll(waveform, shift)


def _apply_clipping(waveform: np.ndarray) -> np.ndarray:
    return np.clip(waveform, -1.0, 1.0)
