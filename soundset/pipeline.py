"""
soundset Pipeline Orchestrator

Producer → worker pool → printer.

PER-SAMPLE STEPS (FIXED ORDER):

    1. decode       → Sample.read
    2. downsample   → soundset.audio.downsample        (PCM output only)
    3. augment      → soundset.augment.apply_augmentation  (if enabled)
    4. featurize    → soundset.features.mfcc_stream    (MFCC output)
       or align     → soundset.audio.pad_to_alignment  (PCM output)
    5. format       → soundset.encoding.format_example

INVARIANTS:
    - The producer walks the set in fresh random permutations, forever
    - At most IN_FLIGHT_PER_WORKER * workers tasks are in flight
    - Records are emitted in completion order (inline mode: draw order)
    - Pipeline stops on the first sample failure
    - Same seed + workers=0 = identical output
"""

import logging
from concurrent.futures import FIRST_COMPLETED, Future, ProcessPoolExecutor, wait
from typing import Iterator, Sequence, TextIO

import numpy as np

from soundset import audio, encoding
from soundset.augment import apply_augmentation
from soundset.dataset import Sample, SampleSet, loop_samples
from soundset.features import mfcc_stream
from soundset.options import ExtractOptions


logger = logging.getLogger(__name__)

IN_FLIGHT_PER_WORKER = 2


# =============================================================================
# Failures
# =============================================================================


class SampleError(Exception):
    """
    Raised inside a worker when a sample cannot be decoded.

    Both fields live in `args` so the exception survives pickling back
    from a worker process.
    """

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(code, message)

    def __str__(self) -> str:
        return self.message


class ExampleFailure(Exception):
    """
    Raised by the orchestrator when a sample fails.

    The CLI catches this to stop the run and report the errors.
    """

    def __init__(self, segment_id: str, errors: list[dict]):
        self.segment_id = segment_id
        self.errors = errors
        detail = errors[0]["message"] if errors else "unknown error"
        super().__init__(f"Sample '{segment_id}' failed: {detail}")


def build_error(
    code: str,
    message: str,
    segment: str,
    detail: dict | None = None,
) -> dict:
    """
    Build a structured error object.

    Args:
        code: Error code (e.g., "SAMPLE_READ_ERROR")
        message: Human-readable error message
        segment: Segment id of the failing sample
        detail: Optional additional details

    Returns:
        Structured error dictionary.
    """
    error: dict = {
        "code": code,
        "message": message,
        "segment": segment,
    }
    if detail is not None:
        error["detail"] = detail
    return error


def _to_failure(sample: Sample, exc: Exception) -> ExampleFailure:
    code = exc.code if isinstance(exc, SampleError) else "SAMPLE_PROCESSING_ERROR"
    error = build_error(
        code=code,
        message=str(exc),
        segment=sample.segment_id,
        detail={"path": str(sample.path), "error_type": type(exc).__name__},
    )
    return ExampleFailure(sample.segment_id, [error])


# =============================================================================
# Worker step
# =============================================================================


def _decode(sample: Sample, sample_rate: int) -> np.ndarray:
    try:
        return sample.read(sample_rate)
    except audio.InvalidAudioError as e:
        raise SampleError("SAMPLE_INVALID_AUDIO", str(e)) from e
    except (RuntimeError, OSError) as e:
        raise SampleError(
            "SAMPLE_READ_ERROR", f"Failed to read audio file {sample.path}: {e}"
        ) from e


def build_example(
    sample: Sample,
    labels: Sequence[int],
    options: ExtractOptions,
    seed: int | None = None,
) -> str:
    """
    Turn one sample into one output record.

    Args:
        sample: Sample to decode
        labels: Precomputed class vector for the sample
        options: Run settings
        seed: Seed for this sample's augmentation draws

    Returns:
        Two-line record: feature vector, then class vector.

    Raises:
        SampleError: If the clip cannot be decoded.
    """
    waveform = _decode(sample, options.sample_rate)

    if not options.use_mfcc:
        waveform = audio.downsample(waveform, options.stride)

    if options.augment:
        rng = np.random.default_rng(seed)
        waveform = apply_augmentation(waveform, rng, options.augment_config)

    if options.use_mfcc:
        features = mfcc_stream(waveform, options.mfcc)
    else:
        features = audio.pad_to_alignment(waveform, options.align)

    return encoding.format_example(features, labels)


# =============================================================================
# Orchestration
# =============================================================================


def _iter_tasks(
    samples: Iterator[Sample],
    vocabulary: Sequence[str],
    rng: np.random.Generator,
    limit: int | None,
) -> Iterator[tuple[Sample, tuple[int, ...], int]]:
    """Yield (sample, labels, seed) tasks; unbounded when limit is None."""
    count = 0
    while limit is None or count < limit:
        sample = next(samples)
        seed = int(rng.integers(0, 2**32))
        labels = tuple(encoding.class_vector(vocabulary, sample.classes))
        yield sample, labels, seed
        count += 1


def _iter_inline(tasks, options: ExtractOptions) -> Iterator[str]:
    for sample, labels, seed in tasks:
        try:
            record = build_example(sample, labels, options, seed)
        except Exception as e:
            raise _to_failure(sample, e) from e
        yield record


def _iter_pooled(tasks, options: ExtractOptions, workers: int) -> Iterator[str]:
    max_in_flight = workers * IN_FLIGHT_PER_WORKER
    pool = ProcessPoolExecutor(max_workers=workers)
    pending: dict[Future, Sample] = {}
    exhausted = False
    try:
        while True:
            while not exhausted and len(pending) < max_in_flight:
                task = next(tasks, None)
                if task is None:
                    exhausted = True
                    break
                sample, labels, seed = task
                future = pool.submit(build_example, sample, labels, options, seed)
                pending[future] = sample

            if not pending:
                break

            done, _ = wait(pending, return_when=FIRST_COMPLETED)
            for future in done:
                sample = pending.pop(future)
                try:
                    record = future.result()
                except Exception as e:
                    raise _to_failure(sample, e) from e
                yield record
    finally:
        pool.shutdown(wait=True, cancel_futures=True)


def iter_examples(
    sample_set: SampleSet,
    options: ExtractOptions,
    vocabulary: Sequence[str],
    workers: int,
    limit: int | None = None,
    seed: int | None = None,
) -> Iterator[str]:
    """
    Stream output records for a sample set.

    Args:
        sample_set: Samples to draw from
        options: Run settings
        vocabulary: Label vocabulary, in class-vector order
        workers: Worker processes; 0 runs every task inline
        limit: Number of records to produce; None streams forever
        seed: Seed for sample order and augmentation

    Raises:
        ValueError: On invalid options, workers, limit or seed
        DatasetError: If the sample set is empty
        ExampleFailure: On the first sample that fails
    """
    options.validate()
    if workers < 0:
        raise ValueError(f"workers must be >= 0, got {workers}")
    if limit is not None and limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")
    if seed is not None and seed < 0:
        raise ValueError(f"seed must be >= 0, got {seed}")

    if limit == 0:
        return _iter_inline(iter(()), options)

    rng = np.random.default_rng(seed)
    tasks = _iter_tasks(loop_samples(sample_set, rng), vocabulary, rng, limit)
    if workers == 0:
        return _iter_inline(tasks, options)
    return _iter_pooled(tasks, options, workers)


def run_pipeline(
    sample_set: SampleSet,
    options: ExtractOptions,
    vocabulary: Sequence[str],
    out: TextIO,
    workers: int,
    limit: int | None = None,
    seed: int | None = None,
) -> int:
    """
    Print records to `out`, one flush per record.

    Returns:
        Number of examples written.
    """
    logger.info(
        "Starting extraction (samples=%d classes=%d workers=%d limit=%s seed=%s options=%s)",
        len(sample_set),
        len(vocabulary),
        workers,
        "none" if limit is None else limit,
        seed,
        options.to_dict(),
    )
    written = 0
    records = iter_examples(sample_set, options, vocabulary, workers, limit, seed)
    try:
        for record in records:
            out.write(record + "\n")
            out.flush()
            written += 1
    finally:
        # Shuts the pool down when the writer fails (e.g. closed pipe)
        records.close()
    logger.info("Wrote %d example(s)", written)
    return written
