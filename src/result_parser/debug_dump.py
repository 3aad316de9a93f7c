from __future__ import annotations

import argparse
import re
from pathlib import Path
from typing import List, Optional, Pattern, Set

from result_parser.parse_results import (
    DEFAULT_CONFIG,
    DocumentText,
    locate_record,
    normalize_text,
    roll_token_pattern,
)
from result_parser.pdf_text import extract_pages


def parse_pages_arg(p: Optional[str]) -> Optional[Set[int]]:
    if not p:
        return None
    parts: List[int] = []
    for chunk in p.split(","):
        chunk_s = chunk.strip()
        if not chunk_s:
            continue
        if "-" in chunk_s:
            a, b = chunk_s.split("-", 1)
            try:
                a_i, b_i = int(a), int(b)
            except ValueError:
                continue
            start, end = (a_i, b_i) if a_i <= b_i else (b_i, a_i)
            parts.extend(range(start, end + 1))
        else:
            try:
                parts.append(int(chunk_s))
            except ValueError:
                continue
    return set(parts)


def iter_spans(
    text: str, min_digits: int = DEFAULT_CONFIG.roll_token_min_digits
) -> List[tuple[str, str]]:
    """(roll, record text) for every roll-like token, in document order."""
    out: List[tuple[str, str]] = []
    for m in roll_token_pattern(min_digits).finditer(text):
        span = locate_record(text[m.start() :], m.group(0), min_digits)
        if span is not None:
            out.append((m.group(0), span.text))
    return out


def main(argv: Optional[List[str]] = None) -> None:
    ap = argparse.ArgumentParser(
        prog="result-parser-debug", description="Dump extracted text and inferred record spans"
    )
    ap.add_argument("pdf", help="Path to results PDF")
    ap.add_argument("--pages", help="Pages to include, e.g. 1-2,4", default=None)
    ap.add_argument("--grep", help="Regex to filter output lines", default=None)
    ap.add_argument(
        "--spans",
        action="store_true",
        help="List inferred record spans across the selected pages instead of page text",
    )
    ap.add_argument(
        "--min-digits",
        type=int,
        default=DEFAULT_CONFIG.roll_token_min_digits,
        help="Digit-run length treated as a roll number",
    )
    args = ap.parse_args(argv)

    path = Path(args.pdf)
    if not path.exists():
        print("File not found:", path)
        return

    page_set = parse_pages_arg(args.pages)
    rx: Optional[Pattern[str]] = re.compile(args.grep, re.I) if args.grep else None

    pages = [
        (pidx, raw)
        for pidx, raw in enumerate(extract_pages(path), start=1)
        if not page_set or pidx in page_set
    ]

    if args.spans:
        # Pages are joined first so a record broken across pages stays whole
        doc = DocumentText.from_pages(raw for _pidx, raw in pages)
        for roll, record in iter_spans(doc.normalized, args.min_digits):
            if rx and not rx.search(record):
                continue
            print(f"[roll={roll}] {record}")
        return

    for pidx, raw in pages:
        text = normalize_text(raw)
        if rx and not rx.search(text):
            continue
        print(f"[page {pidx} chars={len(text)}] {text}")
        print("-" * 60)


if __name__ == "__main__":
    main()
