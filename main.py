"""WoundScan: offline wound photo assessment.

Command-line entry point: analyzes one photo and prints the result as JSON.
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime
from typing import List

import i18n
from core.logging_config import configure_logging
from core.utils import AnalysisConfig, InputError, PhotoRecord, SymptomLog


def load_history(path: str) -> List[PhotoRecord]:
    """Read photo history from a JSON list of {date_taken, wound_area_cm2, ...}."""
    with open(path, "r", encoding="utf-8") as f:
        entries = json.load(f)
    return [
        PhotoRecord(
            date_taken=datetime.fromisoformat(e["date_taken"]),
            wound_area_cm2=e.get("wound_area_cm2"),
            infection_risk_score=e.get("infection_risk_score"),
            photo_path=e.get("photo_path", ""),
        )
        for e in entries
    ]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Analyze a wound photo.")
    parser.add_argument("image", help="Path to the wound photo")
    parser.add_argument("--wound-id", type=int, default=0)
    parser.add_argument("--history", help="JSON file with previous photo records")
    parser.add_argument("--redness", action="store_true", help="Latest log reports redness")
    parser.add_argument("--swelling", action="store_true", help="Latest log reports swelling")
    parser.add_argument("--drainage", choices=["Clear", "Bloody", "Pus"],
                        help="Latest log reports drainage of this type")
    parser.add_argument("--lang", help="Language for messages (en, es)")
    parser.add_argument("--log-level", default=None)
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed for the area fallback estimate")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    # stdout carries the JSON result
    configure_logging(args.log_level, stream=sys.stderr)
    i18n.init(args.lang)

    from core.wound_analyzer import WoundAnalyzer

    history = load_history(args.history) if args.history else []
    latest_log = None
    if args.redness or args.swelling or args.drainage:
        latest_log = SymptomLog(
            date=datetime.now(),
            has_redness=args.redness,
            has_swelling=args.swelling,
            has_drainage=bool(args.drainage),
            drainage_type=args.drainage or "",
        )

    analyzer = WoundAnalyzer(AnalysisConfig(random_seed=args.seed))
    try:
        result = asyncio.run(
            analyzer.analyze(args.wound_id, history, args.image, latest_log=latest_log)
        )
    except InputError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    json.dump(result.to_dict(), sys.stdout, indent=2, ensure_ascii=False)
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
