"""
soundset Augmentation Tests
"""

import numpy as np
import pytest

from soundset.augment import AugmentConfig, apply_augmentation


def _tone(num_samples: int = 4096) -> np.ndarray:
    t = np.arange(num_samples) / 22050
    return (0.5 * np.sin(2 * np.pi * 440 * t)).astype(np.float32)


class TestApplyAugmentation:

    def test_preserves_length_and_dtype(self):
        waveform = _tone()
        result = apply_augmentation(waveform, np.random.default_rng(0))
        assert result.shape == waveform.shape
        assert result.dtype == np.float32

    def test_output_is_clipped(self):
        waveform = _tone() * 1.9
        config = AugmentConfig(gain_jitter_db=(6.0, 6.0))
        result = apply_augmentation(waveform, np.random.default_rng(0), config)
        assert np.max(np.abs(result)) <= 1.0

    def test_same_seed_same_output(self):
        waveform = _tone()
        a = apply_augmentation(waveform, np.random.default_rng(42))
        b = apply_augmentation(waveform, np.random.default_rng(42))
        np.testing.assert_array_equal(a, b)

    def test_changes_the_signal(self):
        waveform = _tone()
        result = apply_augmentation(waveform, np.random.default_rng(3))
        assert not np.array_equal(result, waveform)

    def test_does_not_mutate_input(self):
        waveform = _tone()
        original = waveform.copy()
        apply_augmentation(waveform, np.random.default_rng(0))
        np.testing.assert_array_equal(waveform, original)

    def test_empty_waveform_unchanged(self):
        waveform = np.zeros(0, dtype=np.float32)
        result = apply_augmentation(waveform, np.random.default_rng(0))
        assert result.size == 0

    def test_gain_stays_within_jitter_range(self):
        waveform = _tone()
        config = AugmentConfig(profiles=("gain",), gain_jitter_db=(-6.0, 6.0), clip=False)
        result = apply_augmentation(waveform, np.random.default_rng(5), config)

        ratio = np.max(np.abs(result)) / np.max(np.abs(waveform))
        assert 10 ** (-6 / 20) - 1e-6 <= ratio <= 10 ** (6 / 20) + 1e-6

    def test_shift_is_a_rotation(self):
        waveform = _tone()
        config = AugmentConfig(profiles=("shift",), max_shift_fraction=0.25)
        result = apply_augmentation(waveform, np.random.default_rng(9), config)
        np.testing.assert_array_equal(np.sort(result), np.sort(waveform))

    def test_none_profile_is_passthrough(self):
        waveform = _tone()
        config = AugmentConfig(profiles=("none",))
        result = apply_augmentation(waveform, np.random.default_rng(0), config)
        np.testing.assert_array_equal(result, waveform)

    def test_unknown_profile(self):
        config = AugmentConfig(profiles=("reverb",))
        with pytest.raises(ValueError, match="reverb"):
            apply_augmentation(_tone(), np.random.default_rng(0), config)

    def test_rejects_multichannel(self):
        with pytest.raises(ValueError):
            apply_augmentation(np.zeros((10, 2), dtype=np.float32), np.random.default_rng(0))
