"""
soundset: Labeled audio-segment feature extraction

Reads an AudioSet-style segment CSV plus a directory of downloaded clips and
streams training examples to stdout, one two-line record per example:

    <feature vector: PCM samples or MFCC frames>
    <class vector: one 0/1 flag per label>

Per-sample steps (fixed order):
    1. Decode (mono, 22050 Hz)
    2. Downsample by stride (PCM only)
    3. Augment (optional)
    4. MFCC, or zero-pad to the PCM alignment
    5. Format

Invariants:
    - Samples are redrawn in fresh random permutations, forever
    - First sample failure aborts the run
    - stdout carries examples only; diagnostics go to stderr
"""

__version__ = "1.0.0"
