"""
soundset Dataset - Segment manifest and sample set.

Responsibilities:
- Parse AudioSet-style segment CSVs
- Join manifest rows with the clips present in the audio directory
- Label vocabulary (from the set itself or a class index CSV)
- Infinite randomized resampling

Manifest format:
    # Segments csv created ...
    # YTID, start_seconds, end_seconds, positive_labels
    --PJHxphWEs, 30.000, 40.000, "/m/09x0r,/t/dd00088"

A segment's clip is the file in the audio directory whose stem is the
segment id, e.g. `--PJHxphWEs.wav`.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import numpy as np
import pandas as pd

from soundset.audio import IN_SAMPLE_RATE, SUPPORTED_EXTENSIONS, load_waveform


logger = logging.getLogger(__name__)

MANIFEST_COLUMNS = ["segment_id", "start_sec", "end_sec", "positive_labels"]


class DatasetError(Exception):
    """Raised when a manifest or audio directory cannot be used."""
    pass


@dataclass(frozen=True)
class Sample:
    """One labeled audio segment backed by a clip on disk."""

    segment_id: str
    start_sec: float
    end_sec: float
    classes: tuple[str, ...]
    path: Path

    def read(self, sample_rate: int = IN_SAMPLE_RATE) -> np.ndarray:
        """Decode the clip into a mono float32 waveform."""
        return load_waveform(self.path, sample_rate)


@dataclass(frozen=True)
class SampleSet:
    """Ordered collection of samples, in manifest order."""

    samples: tuple[Sample, ...]

    def __len__(self) -> int:
        return len(self.samples)

    def __getitem__(self, index: int) -> Sample:
        return self.samples[index]

    def __iter__(self) -> Iterator[Sample]:
        return iter(self.samples)

    def classes(self) -> list[str]:
        """Sorted list of every label that appears in the set."""
        return sorted({label for sample in self.samples for label in sample.classes})


# =============================================================================
# Manifest parsing
# =============================================================================


def read_manifest(csv_path: Path) -> pd.DataFrame:
    """
    Parse a segment CSV into a DataFrame with MANIFEST_COLUMNS.

    Raises:
        DatasetError: If the file is missing or malformed.
    """
    csv_path = Path(csv_path)
    if not csv_path.is_file():
        raise DatasetError(f"Segment CSV not found: {csv_path}")

    try:
        df = pd.read_csv(
            csv_path,
            comment="#",
            header=None,
            skipinitialspace=True,
            quotechar='"',
            dtype=str,
            keep_default_na=False,
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame(columns=MANIFEST_COLUMNS)
    except pd.errors.ParserError as e:
        raise DatasetError(f"Malformed segment CSV {csv_path}: {e}") from e

    if df.shape[1] != len(MANIFEST_COLUMNS):
        raise DatasetError(
            f"Segment CSV {csv_path} must have {len(MANIFEST_COLUMNS)} columns "
            f"(YTID, start_seconds, end_seconds, positive_labels), got {df.shape[1]}"
        )
    df.columns = MANIFEST_COLUMNS
    df["segment_id"] = df["segment_id"].str.strip()

    for column in ("start_sec", "end_sec"):
        values = pd.to_numeric(df[column], errors="coerce")
        bad = values.isna()
        if bad.any():
            row = int(np.flatnonzero(bad.to_numpy())[0])
            raise DatasetError(
                f"Segment CSV {csv_path}: non-numeric {column} "
                f"{df[column].iloc[row]!r} for segment {df['segment_id'].iloc[row]!r}"
            )
        df[column] = values.astype(float)

    return df


def _split_labels(raw: str) -> tuple[str, ...]:
    return tuple(label.strip() for label in raw.split(",") if label.strip())


def _index_clips(wav_dir: Path) -> dict[str, Path]:
    """Map clip stem -> path, preferring extensions in SUPPORTED_EXTENSIONS order."""
    candidates = [
        p for p in wav_dir.iterdir()
        if p.is_file() and p.suffix.lower() in SUPPORTED_EXTENSIONS
    ]
    candidates.sort(key=lambda p: (p.stem, SUPPORTED_EXTENSIONS.index(p.suffix.lower())))
    clips: dict[str, Path] = {}
    for path in candidates:
        clips.setdefault(path.stem, path)
    return clips


def read_set(wav_dir: Path, csv_path: Path) -> SampleSet:
    """
    Build the sample set for a manifest and an audio directory.

    Args:
        wav_dir: Directory holding downloaded clips
        csv_path: Segment CSV

    Returns:
        SampleSet in manifest order. Segments without a clip are skipped.

    Raises:
        DatasetError: If the directory or manifest cannot be used.
    """
    wav_dir = Path(wav_dir)
    if not wav_dir.is_dir():
        raise DatasetError(f"Audio directory not found: {wav_dir}")

    manifest = read_manifest(csv_path)
    clips = _index_clips(wav_dir)

    samples = []
    missing = 0
    for row in manifest.itertuples(index=False):
        path = clips.get(row.segment_id)
        if path is None:
            missing += 1
            continue
        samples.append(
            Sample(
                segment_id=row.segment_id,
                start_sec=float(row.start_sec),
                end_sec=float(row.end_sec),
                classes=_split_labels(row.positive_labels),
                path=path,
            )
        )

    if missing:
        logger.info("Skipped %d segment(s) with no clip in %s", missing, wav_dir)
    logger.info("Loaded %d sample(s) from %s", len(samples), csv_path)
    return SampleSet(tuple(samples))


def load_class_index(path: Path) -> dict[str, str]:
    """
    Read an AudioSet class_labels_indices.csv.

    Returns:
        Ordered mapping mid -> display_name, in `index` order.

    Raises:
        DatasetError: If the file is missing, empty or malformed.
    """
    path = Path(path)
    if not path.is_file():
        raise DatasetError(f"Class index CSV not found: {path}")
    try:
        df = pd.read_csv(path, dtype={"mid": str}, skipinitialspace=True, keep_default_na=False)
    except pd.errors.EmptyDataError as e:
        raise DatasetError(f"Class index CSV {path} is empty") from e
    except pd.errors.ParserError as e:
        raise DatasetError(f"Malformed class index CSV {path}: {e}") from e
    if "index" not in df.columns or "mid" not in df.columns:
        raise DatasetError(f"Class index CSV {path} must contain 'index' and 'mid'")

    df = df.sort_values("index", kind="stable")
    mids = df["mid"].str.strip()
    if mids.duplicated().any():
        dupes = sorted(set(mids[mids.duplicated()]))
        raise DatasetError(f"Class index CSV {path} repeats mid(s): {dupes}")
    if "display_name" in df.columns:
        names = df["display_name"].astype(str).str.strip()
    else:
        names = pd.Series([""] * len(df), index=df.index)
    return dict(zip(mids, names))


# =============================================================================
# Resampling
# =============================================================================


def loop_samples(samples: SampleSet, rng: np.random.Generator) -> Iterator[Sample]:
    """
    Yield samples forever, one fresh random permutation per epoch.

    Raises:
        DatasetError: If the set is empty.
    """
    if len(samples) == 0:
        raise DatasetError("Sample set is empty; no segment has a clip on disk")

    def _epochs() -> Iterator[Sample]:
        while True:
            for index in rng.permutation(len(samples)):
                yield samples[int(index)]

    return _epochs()
