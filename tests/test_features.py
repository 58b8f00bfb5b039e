"""
soundset MFCC Tests
"""

import librosa
import numpy as np

from soundset.features import MfccConfig, mfcc_stream


def _tone(num_samples: int = 11025) -> np.ndarray:
    t = np.arange(num_samples) / 22050
    return (0.5 * np.sin(2 * np.pi * 440 * t)).astype(np.float32)


def test_length_is_frames_times_coefficients():
    cfg = MfccConfig()
    coeffs = mfcc_stream(_tone(), cfg)

    frames = 1 + 11025 // cfg.hop_length
    assert coeffs.shape == (frames * cfg.n_mfcc,)
    assert coeffs.dtype == np.float32
    assert np.all(np.isfinite(coeffs))


def test_flattened_frame_by_frame():
    cfg = MfccConfig()
    waveform = _tone()
    expected = librosa.feature.mfcc(
        y=waveform, sr=cfg.sample_rate_hz, n_mfcc=cfg.n_mfcc,
        n_fft=cfg.n_fft, hop_length=cfg.hop_length,
    )

    coeffs = mfcc_stream(waveform, cfg).reshape(-1, cfg.n_mfcc)

    np.testing.assert_allclose(coeffs[0], expected[:, 0], rtol=1e-5, atol=1e-4)
    np.testing.assert_allclose(coeffs[1], expected[:, 1], rtol=1e-5, atol=1e-4)


def test_custom_coefficient_count():
    cfg = MfccConfig(n_mfcc=20)
    assert len(mfcc_stream(_tone(), cfg)) % 20 == 0


def test_empty_waveform():
    assert mfcc_stream(np.zeros(0, dtype=np.float32)).size == 0
