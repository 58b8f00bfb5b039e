"""
soundset Audio Utilities

Waveform decoding and shaping primitives.

Library Stack:
    - soundfile: WAV/FLAC/OGG I/O (libsndfile-backed)
    - numpy: Array operations
    - scipy.signal.resample_poly: Deterministic resampling

INVARIANTS:
    - Decoded waveforms are mono float32 at IN_SAMPLE_RATE
    - Resampling uses fixed integer up/down factors
    - Padding only ever appends zeros; it never truncates
"""

from math import gcd
from pathlib import Path

import numpy as np
import soundfile as sf
from scipy.signal import resample_poly


# =============================================================================
# Constants
# =============================================================================

IN_SAMPLE_RATE = 22050
SUPPORTED_EXTENSIONS = (".wav", ".flac", ".ogg")
DEFAULT_ALIGN = 512
DEFAULT_STRIDE = 1


class InvalidAudioError(Exception):
    """Raised when a decoded clip contains non-finite values."""
    pass


# =============================================================================
# WAV I/O
# =============================================================================


def read_wav(path: Path) -> tuple[np.ndarray, int]:
    """
    Read an audio file and return samples with sample rate.

    Args:
        path: Path to audio file (any format libsndfile decodes)

    Returns:
        Tuple of (samples as float32 in [-1, 1], sample_rate)

    Raises:
        RuntimeError: If file cannot be read (raised by soundfile)
    """
    samples, sr = sf.read(path, dtype="float32", always_2d=False)
    return samples, sr


def write_wav(path: Path, samples: np.ndarray, sample_rate: int = IN_SAMPLE_RATE) -> None:
    """
    Write samples to WAV file as PCM 16-bit.

    Note:
        Hard clips to [-1, 1] before writing.
    """
    clipped = np.clip(samples, -1.0, 1.0)
    sf.write(path, clipped, sample_rate, subtype="PCM_16")


# =============================================================================
# Canonicalization
# =============================================================================


def normalize_audio(
    samples: np.ndarray,
    sample_rate: int,
    target_rate: int = IN_SAMPLE_RATE,
) -> np.ndarray:
    """
    Normalize audio to mono float32 at the target rate.

    Args:
        samples: Input samples (may be multi-channel, any sample rate)
        sample_rate: Input sample rate
        target_rate: Output sample rate

    Returns:
        Normalized samples (1D, float32)

    Note:
        - Multi-channel → mono by arithmetic mean
        - No amplitude normalization / AGC
    """
    if samples.ndim > 1:
        samples = np.mean(samples, axis=1)

    samples = samples.astype(np.float32)

    if sample_rate != target_rate and samples.size > 0:
        samples = _resample_deterministic(samples, sample_rate, target_rate)

    return samples


def _resample_deterministic(samples: np.ndarray, sr_from: int, sr_to: int) -> np.ndarray:
    """Resample using scipy.signal.resample_poly with fixed integer factors."""
    g = gcd(sr_from, sr_to)
    up = sr_to // g
    down = sr_from // g
    return resample_poly(samples, up, down).astype(np.float32)


def load_waveform(path: Path, sample_rate: int = IN_SAMPLE_RATE) -> np.ndarray:
    """
    Decode a clip into a mono float32 waveform at `sample_rate`.

    Raises:
        RuntimeError: If soundfile cannot decode the file
        InvalidAudioError: If the signal contains NaN or Inf
    """
    samples, sr = read_wav(path)
    waveform = normalize_audio(samples, sr, sample_rate)
    if not np.all(np.isfinite(waveform)):
        raise InvalidAudioError(f"Audio file contains non-finite values: {path}")
    return waveform


# =============================================================================
# Shaping
# =============================================================================


def downsample(samples: np.ndarray, stride: int) -> np.ndarray:
    """
    Keep every `stride`-th sample, starting with the first.

    The output has ceil(len(samples) / stride) samples. No anti-alias
    filtering is applied; this is plain decimation.
    """
    if stride < 1:
        raise ValueError(f"stride must be >= 1, got {stride}")
    if stride == 1:
        return samples
    return samples[::stride]


def pad_to_alignment(samples: np.ndarray, align: int) -> np.ndarray:
    """
    Zero-pad the end of `samples` up to the next multiple of `align`.

    Args:
        samples: 1D waveform
        align: Alignment in samples (>= 1)

    Returns:
        Padded waveform. Already-aligned input (including empty) is
        returned unchanged.
    """
    if align < 1:
        raise ValueError(f"align must be >= 1, got {align}")
    remainder = len(samples) % align
    if remainder == 0:
        return samples
    padding = np.zeros(align - remainder, dtype=samples.dtype)
    return np.concatenate([samples, padding])
