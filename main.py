import argparse
import logging
import sys
from typing import List, Optional

import orjson

from analytics import generate_replay_report
from book_analyzer import BookAnalyzer
from config import load_config
from emission_gate import Emission
from events import read_events

logger = logging.getLogger(__name__)


def write_emission(emission: Emission, output_format: str, stream=None):
    """Writes one output record to the sink (stdout by default) and flushes it."""
    stream = stream if stream is not None else sys.stdout
    if output_format == "jsonl":
        stream.write(orjson.dumps(emission.to_dict()).decode() + "\n")
    else:
        stream.write(emission.format() + "\n")
    stream.flush()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Replays an order book log and reports the notional of trading a fixed target size."
    )
    parser.add_argument("input", help="Event log path (.gz accepted), or '-' for stdin")
    parser.add_argument("--target", type=int, help="Hypothetical trade size (overrides config)")
    parser.add_argument("--format", dest="input_format", choices=["text", "jsonl"],
                        help="Input record format (overrides config)")
    parser.add_argument("--output-format", choices=["text", "jsonl"],
                        help="Output record format (overrides config)")
    parser.add_argument("--strict-reductions", action="store_true",
                        help="Decrement side totals by the full requested reduction, even past the order's size")
    parser.add_argument("--report-dir", help="Write a replay report (CSV + JSON summary) to this directory")
    parser.add_argument("--config", help="Path to a JSON config file")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    return parser


def main(argv: Optional[List[str]] = None, stdout=None) -> int:
    """
    Configures and runs the book analyzer.
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format='%(asctime)s - %(name)-16s - %(levelname)-8s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stderr,
    )

    settings = load_config(args.config)['analyzer']
    target = args.target if args.target is not None else settings['target']
    input_format = args.input_format or settings['input_format']
    output_format = args.output_format or settings['output_format']
    clamp = False if args.strict_reductions else settings['clamp_reductions']

    if target <= 0:
        logger.error("Target size must be positive, got %d", target)
        return 2

    analyzer = BookAnalyzer(target, clamp_reductions=clamp)
    source = sys.stdin.buffer if args.input == "-" else args.input
    emitted: List[Emission] = []

    logger.info("Starting replay (target=%d, clamp_reductions=%s)", target, clamp)
    try:
        for emission in analyzer.run(read_events(source, input_format)):
            write_emission(emission, output_format, stdout)
            if args.report_dir:
                emitted.append(emission)
    except FileNotFoundError:
        logger.critical("Input file not found at %s", args.input)
        return 1

    if args.report_dir:
        generate_replay_report(emitted, target, output_dir=args.report_dir, stream=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
