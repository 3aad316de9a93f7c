from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache

logger = logging.getLogger(__name__)

# ---------- Outcome reasons ----------
ROLL_NOT_PRESENT = "roll not present"
NO_PARSEABLE_DATA = "no parseable data"

# ---------- Regexes ----------
WHITESPACE_RUN = re.compile(r"\s+")
ROLL_PAT = re.compile(r"^\d+$")

# "gpa3: 3.45" or "gpa2:Ref"
GPA_TAG_PAT = re.compile(r"gpa([1-8]):\s*(\d+(?:\.\d+)?|(?i:ref)\b)")

# Newer sheets wrap the referred list in braces, older ones append "ref_sub:..."
REF_BRACKET_PAT = re.compile(r"\{([^{}]+)\}")
REF_LEGACY_MARKER = "ref_sub:"
SUBJECT_PAT = re.compile(r"\b(\d+)\s*\(([^)]+)\)")

# Single-semester sheets print only "( 3.47 )"
COMPACT_GPA_PAT = re.compile(r"\(\s*(\d+(?:\.\d+)?)\s*\)")


@dataclass(frozen=True)
class ParserConfig:
    """
    Tunables for record location and classification.

    Attributes:
        dropout_threshold: Referred-subject count (with no GPA data) at which
            a record is classified as a drop out.
        roll_token_min_digits: Digit-run length treated as the start of the
            next student's record.
    """

    dropout_threshold: int = 4
    roll_token_min_digits: int = 6


DEFAULT_CONFIG = ParserConfig()


@dataclass(frozen=True)
class DocumentText:
    raw: str
    normalized: str

    @classmethod
    def from_raw(cls, raw: str) -> DocumentText:
        return cls(raw, normalize_text(raw))

    @classmethod
    def from_pages(cls, pages: Iterable[str]) -> DocumentText:
        return cls.from_raw(join_pages(pages))


@dataclass(frozen=True)
class RecordSpan:
    roll: str
    start: int
    end: int
    source: str

    @property
    def text(self) -> str:
        return self.source[self.start : self.end]


@dataclass(frozen=True)
class GpaEntry:
    semester: int
    value: Decimal | None  # None means the semester was referred

    @property
    def is_referred(self) -> bool:
        return self.value is None

    @property
    def ordinal(self) -> str:
        return semester_ordinal(self.semester)

    @property
    def label(self) -> str:
        return f"{self.ordinal} Semester"

    @property
    def display_value(self) -> str:
        return "Ref." if self.value is None else str(self.value)


@dataclass(frozen=True)
class ReferredSubject:
    code: str
    name: str

    def __str__(self) -> str:
        return f"{self.code}({self.name})"


@dataclass(frozen=True)
class Found:
    roll: str
    gpas: tuple[GpaEntry, ...]
    referred: tuple[ReferredSubject, ...]


@dataclass(frozen=True)
class Dropout:
    roll: str


@dataclass(frozen=True)
class NotFound:
    roll: str
    reason: str


ResultOutcome = Found | Dropout | NotFound


def semester_ordinal(n: int) -> str:
    return {1: "1st", 2: "2nd", 3: "3rd"}.get(n, f"{n}th")


def normalize_text(raw: str) -> str:
    """Collapse every whitespace run into a single space."""
    return WHITESPACE_RUN.sub(" ", raw)


def join_pages(pages: Iterable[str]) -> str:
    return " ".join(pages)


@lru_cache(maxsize=None)
def roll_token_pattern(min_digits: int = DEFAULT_CONFIG.roll_token_min_digits) -> re.Pattern[str]:
    """Digit run long enough to be the start of another student's record."""
    return re.compile(rf"\b\d{{{min_digits},}}\b")


def locate_record(
    text: str, roll: str, min_digits: int = DEFAULT_CONFIG.roll_token_min_digits
) -> RecordSpan | None:
    """
    Find the slice of ``text`` that belongs to ``roll``.

    The record starts at the first exact occurrence of the roll number and
    runs up to the next digit run long enough to be another roll number, or
    to the end of the text. A referred-subject code of that length will cut
    the record short.
    """
    start = text.find(roll)
    if start == -1:
        return None
    after = start + len(roll)
    # The remainder is matched on its own, so its first character always sits on a boundary
    next_roll = roll_token_pattern(min_digits).search(text[after:])
    end = after + next_roll.start() if next_roll else len(text)
    logger.debug("roll %s spans [%d, %d)", roll, start, end)
    return RecordSpan(roll, start, end, text)


def extract_gpa_tags(record: str) -> list[GpaEntry]:
    out: list[GpaEntry] = []
    for m in GPA_TAG_PAT.finditer(record):
        raw = m.group(2)
        value = None if raw.lower() == "ref" else Decimal(raw)
        out.append(GpaEntry(int(m.group(1)), value))
    return out


def _subject_list_text(record: str) -> str:
    m = REF_BRACKET_PAT.search(record)
    if m:
        return m.group(1)
    idx = record.find(REF_LEGACY_MARKER)
    if idx != -1:
        return record[idx + len(REF_LEGACY_MARKER) :]
    return ""


def extract_referred_subjects(record: str) -> list[ReferredSubject]:
    subjects: list[ReferredSubject] = []
    for m in SUBJECT_PAT.finditer(_subject_list_text(record)):
        subjects.append(ReferredSubject(m.group(1), WHITESPACE_RUN.sub("", m.group(2))))
    return subjects


def extract_compact_gpa(record: str) -> Decimal | None:
    m = COMPACT_GPA_PAT.search(record)
    return Decimal(m.group(1)) if m else None


def _dedupe(subjects: Iterable[ReferredSubject]) -> tuple[ReferredSubject, ...]:
    seen: set[ReferredSubject] = set()
    out: list[ReferredSubject] = []
    for s in subjects:
        if s in seen:
            continue
        seen.add(s)
        out.append(s)
    return tuple(out)


def classify(
    roll: str,
    tags: list[GpaEntry],
    referred: list[ReferredSubject],
    compact: Decimal | None,
    config: ParserConfig = DEFAULT_CONFIG,
) -> ResultOutcome:
    """
    Turn the raw extractions for one record into a final outcome.

    A record with no GPA data of any kind and at least
    ``config.dropout_threshold`` referred subjects is a drop out. Otherwise,
    when no semester tags exist, a single 1st-semester entry is synthesized
    from the compact value or, failing that, from the referred list.
    """
    if not tags and compact is None and len(referred) >= config.dropout_threshold:
        logger.debug("roll %s: %d referred subjects and no GPA data -> dropout", roll, len(referred))
        return Dropout(roll)

    gpas = list(tags)
    if not gpas:
        if compact is not None:
            gpas.append(GpaEntry(1, compact))
        elif referred:
            gpas.append(GpaEntry(1, None))

    by_semester: dict[int, GpaEntry] = {}
    for entry in gpas:
        by_semester[entry.semester] = entry
    ordered = tuple(by_semester[k] for k in sorted(by_semester))

    if not ordered and not referred:
        return NotFound(roll, NO_PARSEABLE_DATA)
    return Found(roll, ordered, _dedupe(referred))


def extract_result(
    document_text: str | DocumentText,
    roll_number: str,
    config: ParserConfig | None = None,
) -> ResultOutcome:
    if not isinstance(roll_number, str) or not ROLL_PAT.fullmatch(roll_number):
        raise ValueError(f"roll number must be a non-empty digit string, got {roll_number!r}")
    config = config or DEFAULT_CONFIG
    if isinstance(document_text, DocumentText):
        text = document_text.normalized
    else:
        text = normalize_text(document_text)

    span = locate_record(text, roll_number, config.roll_token_min_digits)
    if span is None:
        return NotFound(roll_number, ROLL_NOT_PRESENT)

    record = span.text
    tags = extract_gpa_tags(record)
    referred = extract_referred_subjects(record)
    compact = extract_compact_gpa(record)
    logger.debug(
        "roll %s: %d gpa tags, %d referred, compact=%s", roll_number, len(tags), len(referred), compact
    )
    return classify(roll_number, tags, referred, compact, config)


def outcome_to_dict(outcome: ResultOutcome) -> dict[str, object]:
    if isinstance(outcome, Dropout):
        return {"roll": outcome.roll, "status": "dropout"}
    if isinstance(outcome, NotFound):
        return {"roll": outcome.roll, "status": "not_found", "reason": outcome.reason}
    return {
        "roll": outcome.roll,
        "status": "found",
        "gpas": [{"semester": g.label, "gpa": g.display_value} for g in outcome.gpas],
        "referred_subjects": [str(s) for s in outcome.referred],
    }
