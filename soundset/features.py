"""
soundset MFCC Features

Library Stack:
    - librosa.feature.mfcc: Mel-frequency cepstral coefficients

INVARIANTS:
    - Output is 1D float32, frame-major (all coefficients of frame 0 first)
    - Length is a multiple of n_mfcc
    - Empty input gives an empty vector
"""

from dataclasses import dataclass

import librosa
import numpy as np

from soundset.audio import IN_SAMPLE_RATE


@dataclass(frozen=True)
class MfccConfig:
    """MFCC analysis settings. sample_rate_hz must match the decode rate."""

    sample_rate_hz: int = IN_SAMPLE_RATE
    n_mfcc: int = 13
    n_fft: int = 512
    hop_length: int = 256


def mfcc_stream(waveform: np.ndarray, cfg: MfccConfig = MfccConfig()) -> np.ndarray:
    """
    Compute MFCCs and flatten them frame by frame.

    Returns a 1D float32 vector: all `n_mfcc` coefficients of the first
    frame, then the second frame, and so on.
    """
    if waveform.size == 0:
        return np.zeros(0, dtype=np.float32)

    # mfcc: (n_mfcc, frames)
    mfcc = librosa.feature.mfcc(
        y=waveform.astype(np.float32, copy=False),
        sr=cfg.sample_rate_hz,
        n_mfcc=cfg.n_mfcc,
        n_fft=cfg.n_fft,
        hop_length=cfg.hop_length,
    )
    return np.ascontiguousarray(mfcc.T).reshape(-1).astype(np.float32)
