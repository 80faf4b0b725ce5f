"""Command line interface for card forensics.

Usage:
    card-forensics analyze card.jpg
    card-forensics analyze card.jpg --tier expert --canny-mode non_max_suppression
    card-forensics compare card.jpg ref1.jpg ref2.jpg
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from card_forensics.analyzer import ForensicsAnalyzer
from card_forensics.authenticity import AuthenticityChecker
from card_forensics.config import TIERS, CannyConfig, ScoringConfig
from card_forensics.constants import STANDARD_HEIGHT, STANDARD_WIDTH
from card_forensics.errors import CardForensicsError
from card_forensics.imaging import ImageStandardizer, decode_image
from card_forensics.types import Verdict

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_LIKELY_FAKE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="card-forensics",
        description="Score trading-card scans for print authenticity",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  card-forensics analyze card.jpg
  card-forensics analyze card.jpg --tier pro --workers 4
  card-forensics compare card.jpg reference.jpg --width 600 --height 800
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Run the pixel analysis battery on an image")
    analyze.add_argument("image_path", type=str, help="Path to the card image")
    analyze.add_argument(
        "--tier", default="pro", help=f"Analysis tier ({', '.join(TIERS)}; default: pro)"
    )
    analyze.add_argument(
        "--canny-mode",
        choices=["simple", "non_max_suppression"],
        default="simple",
        help="Edge counting variant (default: simple)",
    )
    analyze.add_argument(
        "--workers", type=int, default=1, help="Threads used to run the algorithms (default: 1)"
    )

    compare = subparsers.add_parser("compare", help="Compare an image against reference images")
    compare.add_argument("image_path", type=str, help="Path to the user image")
    compare.add_argument("reference_paths", nargs="+", help="Paths to reference images")
    compare.add_argument("--width", type=int, default=STANDARD_WIDTH, help="Canvas width")
    compare.add_argument("--height", type=int, default=STANDARD_HEIGHT, help="Canvas height")

    return parser


def _run_analyze(args: argparse.Namespace) -> int:
    analyzer = ForensicsAnalyzer(
        tier=args.tier,
        scoring=ScoringConfig(canny=CannyConfig(mode=args.canny_mode)),
        max_workers=args.workers,
    )
    report = analyzer.report(decode_image(args.image_path))
    print(json.dumps(report.to_dict(), indent=2))
    return EXIT_OK


def _run_compare(args: argparse.Namespace) -> int:
    standardizer = ImageStandardizer(width=args.width, height=args.height)
    user_image = standardizer.load(args.image_path)
    references = [standardizer.load(path) for path in args.reference_paths]

    verdict = AuthenticityChecker().compare(user_image, references, list(args.reference_paths))
    print(json.dumps(verdict.to_dict(), indent=2))

    if verdict.verdict is Verdict.LIKELY_FAKE:
        return EXIT_LIKELY_FAKE
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        if args.command == "analyze":
            return _run_analyze(args)
        return _run_compare(args)
    except (CardForensicsError, FileNotFoundError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
