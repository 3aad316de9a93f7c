from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from result_parser.parse_results import (
    NO_PARSEABLE_DATA,
    DocumentText,
    Dropout,
    Found,
    ParserConfig,
    ResultOutcome,
    extract_result,
    outcome_to_dict,
)
from result_parser.pdf_text import READ_ERRORS, load_document

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    debug = verbose or os.environ.get("RESULT_PARSER_DEBUG", "").strip() == "1"
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _roll_arg(value: str) -> str:
    if not value.isdecimal():
        raise argparse.ArgumentTypeError(f"roll number must be digits only: {value!r}")
    return value


def format_outcome(
    outcome: ResultOutcome, source: str, dropout_threshold: int = ParserConfig().dropout_threshold
) -> list[str]:
    """Human-readable lines for one outcome, indented under its document."""
    if isinstance(outcome, Dropout):
        return [
            f"  Roll Number: {outcome.roll}",
            "  DROP OUT",
            "  This student is marked as a drop out due to having"
            f" {dropout_threshold} or more referred subjects.",
        ]
    if not isinstance(outcome, Found):
        if outcome.reason == NO_PARSEABLE_DATA:
            return [
                f"  Roll number {outcome.roll} was found, but no result data could be parsed."
                " The document format might be unexpected."
            ]
        return [f"  Roll number {outcome.roll} was not found in the results document {source}."]

    lines = [f"  Roll Number: {outcome.roll}"]
    for entry in outcome.gpas:
        lines.append(f"    {entry.label}: {entry.display_value}")
    if outcome.referred:
        lines.append(f"  Total Referred Subjects ({len(outcome.referred)})")
        for idx, subject in enumerate(outcome.referred, start=1):
            lines.append(f"    {idx}. {subject}")
    return lines


def run_file(
    path: Path, rolls: list[str], config: ParserConfig | None = None
) -> list[ResultOutcome]:
    document: DocumentText = load_document(path)
    return [extract_result(document, roll, config) for roll in rolls]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="result-parser", description="Look up roll numbers in exported results documents"
    )
    parser.add_argument("inputs", nargs="+", help="Results PDF or extracted .txt file(s)")
    parser.add_argument(
        "--roll", nargs="+", required=True, type=_roll_arg, help="Roll number(s) to look up"
    )
    parser.add_argument("--json", action="store_true", help="Print outcomes as JSON")
    parser.add_argument(
        "--dropout-threshold",
        type=int,
        default=ParserConfig().dropout_threshold,
        help="Referred subjects (with no GPA data) that mark a drop out",
    )
    parser.add_argument("--verbose", action="store_true", help="Log span and match details")
    args = parser.parse_args(argv if argv is not None else sys.argv[1:])
    if args.dropout_threshold < 1:
        parser.error("--dropout-threshold must be at least 1")

    _configure_logging(args.verbose)
    config = ParserConfig(dropout_threshold=args.dropout_threshold)

    failed = False
    records: list[dict[str, object]] = []
    for inp in args.inputs:
        p = Path(inp)
        if not p.exists():
            print(f"File not found: {p}", file=sys.stderr)
            failed = True
            continue

        logger.debug("loading %s", p)
        try:
            outcomes = run_file(p, args.roll, config)
        except READ_ERRORS as e:
            print(f"Could not read {p.name}: {e}", file=sys.stderr)
            failed = True
            continue
        if args.json:
            for outcome in outcomes:
                records.append({"file": p.name, **outcome_to_dict(outcome)})
            continue

        print(f"Results for {p.name}")
        for outcome in outcomes:
            for line in format_outcome(outcome, p.name, config.dropout_threshold):
                print(line)

    if args.json:
        print(json.dumps(records, indent=2))
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
