"""
soundset CLI - Argument parsing and dispatch.

Responsibilities:
- Argument parsing
- Logging setup (stderr only; stdout carries examples)
- Dataset loading and vocabulary resolution
- Printing errors
- Exit codes
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from soundset.audio import DEFAULT_ALIGN, DEFAULT_STRIDE


logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def _add_dataset_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--csv",
        metavar="PATH",
        required=True,
        help="Path to segment CSV file.",
    )
    parser.add_argument(
        "--dir",
        metavar="PATH",
        required=True,
        help="Path to sample download directory.",
    )
    parser.add_argument(
        "--classes",
        metavar="PATH",
        help="Class index CSV (index,mid,display_name) fixing the label vocabulary "
             "(default: sorted labels found in the dataset).",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="WARNING",
        help="Diagnostics level on stderr (default: WARNING).",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="soundset",
        description="soundset command-line interface.",
    )

    subparsers = parser.add_subparsers(dest="command")

    samples_parser = subparsers.add_parser(
        "samples",
        help="Stream training examples from a labeled segment dataset.",
        description=(
            "Stream training examples from a labeled segment dataset.\n\n"
            "Samples are drawn in random order, forever (or until --limit), and\n"
            "each example is printed to stdout as two lines: the feature vector\n"
            "(PCM samples or MFCC frames) and the 0/1 class vector."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_dataset_arguments(samples_parser)
    samples_parser.add_argument(
        "--align",
        metavar="N",
        type=_positive_int,
        default=DEFAULT_ALIGN,
        help=f"PCM sample count alignment (default: {DEFAULT_ALIGN}).",
    )
    samples_parser.add_argument(
        "--stride",
        metavar="N",
        type=_positive_int,
        default=DEFAULT_STRIDE,
        help=f"PCM sample stride for downsampling (default: {DEFAULT_STRIDE}).",
    )
    samples_parser.add_argument(
        "--augment",
        action="store_true",
        help="Perform data augmentation.",
    )
    samples_parser.add_argument(
        "--mfcc",
        action="store_true",
        help="Use MFCC output instead of PCM.",
    )
    samples_parser.add_argument(
        "--sample-rate",
        metavar="HZ",
        type=_positive_int,
        default=None,
        help="Rate every clip is decoded at (default: 22050).",
    )
    samples_parser.add_argument(
        "--workers",
        metavar="N",
        type=_non_negative_int,
        default=os.cpu_count() or 1,
        help="Worker processes; 0 runs in-process (default: CPU count).",
    )
    samples_parser.add_argument(
        "--limit",
        metavar="N",
        type=_non_negative_int,
        default=None,
        help="Stop after N examples (default: run forever).",
    )
    samples_parser.add_argument(
        "--seed",
        metavar="N",
        type=_non_negative_int,
        default=None,
        help="Seed (>= 0) for sample order and augmentation.",
    )

    classes_parser = subparsers.add_parser(
        "classes",
        help="Print the label vocabulary in class-vector order.",
        description="Print the label vocabulary, one class per line, in the order used by class vectors.",
    )
    _add_dataset_arguments(classes_parser)

    return parser


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, level),
        format="[soundset] %(levelname)s %(message)s",
    )


def _load_dataset(args: argparse.Namespace):
    """
    Load the sample set and its vocabulary.

    Returns:
        Tuple of (sample_set, vocabulary, class_index or None).

    Raises:
        DatasetError: If the manifest, directory or class index is unusable.
    """
    from soundset.dataset import load_class_index, read_set

    sample_set = read_set(Path(args.dir), Path(args.csv))
    if args.classes is None:
        return sample_set, sample_set.classes(), None

    class_index = load_class_index(Path(args.classes))
    vocabulary = list(class_index)
    unknown = set(sample_set.classes()) - set(class_index)
    if unknown:
        logger.warning(
            "%d label(s) in %s are not in %s and will be ignored: %s",
            len(unknown), args.csv, args.classes, sorted(unknown)[:10],
        )
    return sample_set, vocabulary, class_index


def _silence_stdout() -> None:
    """Point stdout at devnull so interpreter shutdown does not hit the closed pipe."""
    devnull = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull, sys.stdout.fileno())


def cmd_samples(args: argparse.Namespace) -> int:
    """
    Handle the 'samples' subcommand.

    Returns exit code.
    """
    from soundset.audio import IN_SAMPLE_RATE
    from soundset.dataset import DatasetError
    from soundset.features import MfccConfig
    from soundset.options import ExtractOptions
    from soundset.pipeline import ExampleFailure, run_pipeline

    try:
        sample_set, vocabulary, _ = _load_dataset(args)
    except DatasetError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if len(sample_set) == 0:
        print(
            f"Error: No segment in {args.csv} has a clip in {args.dir}",
            file=sys.stderr,
        )
        return 1

    sample_rate = args.sample_rate or IN_SAMPLE_RATE
    options = ExtractOptions(
        align=args.align,
        stride=args.stride,
        augment=args.augment,
        use_mfcc=args.mfcc,
        sample_rate=sample_rate,
        mfcc=MfccConfig(sample_rate_hz=sample_rate),
    )

    try:
        run_pipeline(
            sample_set,
            options,
            vocabulary,
            sys.stdout,
            workers=args.workers,
            limit=args.limit,
            seed=args.seed,
        )
    except ExampleFailure as e:
        print(f"Error: {e}", file=sys.stderr)
        for error in e.errors:
            print(f"  - {error['code']}: {error['message']}", file=sys.stderr)
        return 1
    except BrokenPipeError:
        # Downstream reader went away (e.g. `| head`)
        _silence_stdout()
        return 0

    return 0


def cmd_classes(args: argparse.Namespace) -> int:
    """
    Handle the 'classes' subcommand.

    Returns exit code.
    """
    from soundset.dataset import DatasetError

    try:
        _, vocabulary, class_index = _load_dataset(args)
    except DatasetError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        for label in vocabulary:
            if class_index is None:
                print(label)
            else:
                print(f"{label}\t{class_index[label]}")
        sys.stdout.flush()
    except BrokenPipeError:
        _silence_stdout()
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    _configure_logging(args.log_level)

    if args.command == "samples":
        sys.exit(cmd_samples(args))

    if args.command == "classes":
        sys.exit(cmd_classes(args))
