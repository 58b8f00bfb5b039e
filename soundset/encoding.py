"""
soundset Encoding - Output record formatting.

Responsibilities:
- Render feature vectors as text
- Build and render multi-label class vectors

Invariants:
- Floats use the shortest decimal that round-trips through float32
- Positional notation only (no exponents), trailing zeros trimmed
- A record is exactly two lines: features, then labels
"""

from typing import Iterable, Sequence

import numpy as np


def format_float(value: float) -> str:
    """
    Render one value as its shortest float32 round-trip decimal.

    Examples: 1.0 -> "1", 0.5 -> "0.5", 0.1 -> "0.1", -2.25 -> "-2.25"
    """
    return np.format_float_positional(np.float32(value), unique=True, trim="-")


def format_floats(values: Iterable[float]) -> str:
    """Render values space-separated; empty input gives an empty string."""
    return " ".join(format_float(v) for v in values)


def class_vector(vocabulary: Sequence[str], sample_classes: Iterable[str]) -> list[int]:
    """
    Build the multi-hot label vector for a sample.

    Args:
        vocabulary: Label vocabulary, in vector order
        sample_classes: Labels attached to the sample

    Returns:
        One 0/1 flag per vocabulary entry. Labels outside the
        vocabulary are ignored.
    """
    present = set(sample_classes)
    return [1 if label in present else 0 for label in vocabulary]


def format_classes(vector: Sequence[int]) -> str:
    return " ".join(str(int(flag)) for flag in vector)


def format_example(features: Iterable[float], labels: Sequence[int]) -> str:
    """Render one training example (no trailing newline)."""
    return format_floats(features) + "\n" + format_classes(labels)
