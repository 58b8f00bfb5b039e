"""
soundset Test Configuration

Provides helpers and fixtures for writing small labeled segment datasets.
"""

import subprocess
import sys
from pathlib import Path

import numpy as np
import pytest

from soundset import audio


PROJECT_ROOT = Path(__file__).resolve().parent.parent

MANIFEST_HEADER = (
    "# Segments csv created Sun Mar  5 10:54:31 2017\n"
    "# num_ytids=4, num_segs=4, num_unique_labels=4, num_positive_labels=5\n"
    "# YTID, start_seconds, end_seconds, positive_labels\n"
)

# (segment_id, start_sec, end_sec, labels); the last row has no clip on disk
SEGMENTS = [
    ("--PJHxphWEs", 30.0, 40.0, ["/m/09x0r", "/t/dd00088"]),
    ("-0RWZT-miFs", 420.0, 430.0, ["/m/03v3yw"]),
    ("-1nilez17Dg", 30.0, 40.0, ["/m/09x0r"]),
    ("missingClip", 0.0, 10.0, ["/m/0ytgt"]),
]

# Sorted labels of the segments that have clips
VOCABULARY = ["/m/03v3yw", "/m/09x0r", "/t/dd00088"]

EXPECTED_LABELS = {
    "--PJHxphWEs": "0 1 1",
    "-0RWZT-miFs": "1 0 0",
    "-1nilez17Dg": "0 1 0",
}

CLIP_DURATION_SEC = 0.5
CLIP_SAMPLES = int(audio.IN_SAMPLE_RATE * CLIP_DURATION_SEC)  # 11025


def run_cli(*args: str) -> subprocess.CompletedProcess:
    """Run soundset CLI as subprocess."""
    return subprocess.run(
        [sys.executable, "-m", "soundset", *args],
        capture_output=True,
        text=True,
        cwd=str(PROJECT_ROOT),
    )


def create_test_wav(
    path: Path,
    duration_sec: float = CLIP_DURATION_SEC,
    frequency: float = 440.0,
    sample_rate: int = audio.IN_SAMPLE_RATE,
    channels: int = 1,
) -> None:
    """
    Write a sine tone as PCM-16 WAV.

    Args:
        path: Output path
        duration_sec: Duration in seconds
        frequency: Tone frequency in Hz
        sample_rate: File sample rate
        channels: Channel count (channels carry the same tone)
    """
    num_samples = int(sample_rate * duration_sec)
    t = np.arange(num_samples) / sample_rate
    tone = (0.5 * np.sin(2 * np.pi * frequency * t)).astype(np.float32)
    if channels > 1:
        tone = np.stack([tone] * channels, axis=1)
    audio.write_wav(path, tone, sample_rate)


def write_manifest(path: Path, segments) -> None:
    """Write an AudioSet-style segment CSV."""
    lines = [
        f'{segment_id}, {start:.3f}, {end:.3f}, "{",".join(labels)}"'
        for segment_id, start, end, labels in segments
    ]
    path.write_text(MANIFEST_HEADER + "\n".join(lines) + "\n")


def write_class_index(path: Path, rows) -> None:
    """Write a class_labels_indices.csv from (index, mid, display_name) rows."""
    lines = ["index,mid,display_name"]
    lines += [f'{index},{mid},"{name}"' for index, mid, name in rows]
    path.write_text("\n".join(lines) + "\n")


@pytest.fixture
def dataset(tmp_path) -> dict:
    """
    Create a segment CSV plus a clip directory.

    Three of the four segments have a 0.5 s clip; the fourth is missing.
    """
    wav_dir = tmp_path / "wavs"
    wav_dir.mkdir()
    for i, (segment_id, _, _, _) in enumerate(SEGMENTS[:3]):
        create_test_wav(wav_dir / f"{segment_id}.wav", frequency=220.0 * (i + 1))

    csv_path = tmp_path / "segments.csv"
    write_manifest(csv_path, SEGMENTS)

    return {"csv": csv_path, "dir": wav_dir}


@pytest.fixture
def corrupt_dataset(tmp_path) -> dict:
    """Dataset whose only clip is not decodable audio."""
    wav_dir = tmp_path / "wavs"
    wav_dir.mkdir()
    (wav_dir / "brokenClip1.wav").write_bytes(b"this is not a wav file")

    csv_path = tmp_path / "segments.csv"
    write_manifest(csv_path, [("brokenClip1", 0.0, 10.0, ["/m/09x0r"])])

    return {"csv": csv_path, "dir": wav_dir}
