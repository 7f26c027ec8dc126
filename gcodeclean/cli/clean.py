"""
CLI entry point for the gcodeclean command.

Cleans one G-code file and writes the result next to it with ``-gcc``
inserted before the extension.
"""

import argparse
import logging
import sys
from decimal import Decimal, InvalidOperation

from gcodeclean import config
from gcodeclean.config import TRACE
from gcodeclean.lineio import clean_file, derive_output_path
from gcodeclean.processing.clip import Envelope
from gcodeclean.processing.pipeline import PipelineOptions

logger = logging.getLogger("gcodeclean")


def _decimal(text: str) -> Decimal:
    try:
        return Decimal(text)
    except InvalidOperation as e:
        raise argparse.ArgumentTypeError(f"not a number: {text!r}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gcodeclean",
        description="Shorten a G-code program without changing its toolpath",
    )
    parser.add_argument("--filename", help="G-code file to clean")
    parser.add_argument("--output", help="Output file (default: input name with -gcc before the extension)")

    parser.add_argument("--arc-tolerance", type=_decimal, help=f"Linear-to-arc tolerance (default {config.ARC_TOLERANCE})")
    parser.add_argument(
        "--linear-tolerance", type=_decimal, help=f"Collinear point tolerance (default {config.LINEAR_TOLERANCE})"
    )
    parser.add_argument("--select-tokens", help=f"Letters whose restatements are dropped (default {config.SELECT_TOKENS})")
    for axis in ("x", "y", "z"):
        for bound in ("min", "max"):
            parser.add_argument(
                f"--clip-{axis}-{bound}", type=_decimal, help=f"Working envelope {bound}imum on {axis.upper()}"
            )

    # Verbosity controls
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Increase verbosity; -v=INFO, -vv=DEBUG, -vvv=TRACE"
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="Enable quiet logging (WARNING level)")
    parser.add_argument(
        "--log-level",
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set specific log level",
    )
    return parser


def _log_level(args) -> int:
    if args.log_level:
        return TRACE if args.log_level == "TRACE" else getattr(logging, args.log_level)
    if args.verbose >= 3 or config.TRACE_ENABLED:
        return TRACE
    if args.verbose == 2:
        return logging.DEBUG
    if args.verbose == 1:
        return logging.INFO
    if args.quiet:
        return logging.WARNING
    return getattr(logging, config.LOG_LEVEL_DEFAULT, logging.INFO)


def _options(args) -> PipelineOptions:
    options = PipelineOptions()
    if args.arc_tolerance is not None:
        options.arc_tolerance = args.arc_tolerance
    if args.linear_tolerance is not None:
        options.linear_tolerance = args.linear_tolerance
    if args.select_tokens is not None:
        options.select_tokens = args.select_tokens.upper()

    bounds = dict(options.envelope.bounds)
    for axis in ("x", "y", "z"):
        low, high = bounds.get(axis.upper(), (None, None))
        # Command line bounds win over the environment
        arg_low = getattr(args, f"clip_{axis}_min")
        arg_high = getattr(args, f"clip_{axis}_max")
        if arg_low is not None:
            low = arg_low
        if arg_high is not None:
            high = arg_high
        if low is not None or high is not None:
            bounds[axis.upper()] = (low, high)
    options.envelope = Envelope(bounds)
    return options


def main(argv: list[str] | None = None) -> int:
    """Main entry point; returns the process exit status"""
    parser = build_parser()
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        parser.print_help()
        return 0
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=_log_level(args),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if not args.filename:
        parser.print_help()
        return 0

    output = args.output or derive_output_path(args.filename)
    try:
        clean_file(args.filename, output, _options(args))
        status = 0
    except OSError as e:
        logger.error(f"Failed to clean {args.filename}: {e}")
        status = 1

    logger.info(f"Exit code={status}")
    return status


def main_entry():
    """Entry point for the gcodeclean command."""
    sys.exit(main())


if __name__ == "__main__":
    main_entry()
