"""Text helpers shared across the catalog, search and ranking layers.

``make_model_key`` is the join key between the catalog, the chunk store's
identity text and the sales lookup table, so every caller must go through
it rather than building keys by hand.
"""

import math
import re
import unicodedata

_WHITESPACE_RE = re.compile(r"[ \t\f\v]+")
_BLANK_LINES_RE = re.compile(r"\n{3,}")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_TRIM_SPLIT_RE = re.compile(r"[\s\-.]+")
_NUMERIC_TOKEN_RE = re.compile(r"^\d+(?:\.\d+)?$")

SEAT_WORDS = {
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
}
DEFAULT_SEAT_COUNT = 5
_SPLIT_SEATING_RE = re.compile(r"(\d+)\+(\d+)")
_DIRECT_SEATING_RE = re.compile(r"(\d+)\s*seats?", re.IGNORECASE)


def normalize_text(text: str) -> str:
    """Strip BOM markers, apply NFKC and collapse runs of whitespace.

    Newlines are kept (CRLF folded to LF) but more than one blank line is
    collapsed, and every line is stripped.
    """
    if not text:
        return ""

    cleaned = text.replace("\ufeff", "").replace("\ufffd", "")
    cleaned = unicodedata.normalize("NFKC", cleaned)
    cleaned = cleaned.replace("\r\n", "\n").replace("\r", "\n")
    lines = [_WHITESPACE_RE.sub(" ", line).strip() for line in cleaned.split("\n")]
    cleaned = "\n".join(lines)
    cleaned = _BLANK_LINES_RE.sub("\n\n", cleaned)
    return cleaned.strip()


def make_model_key(make: str | None, model: str | None) -> str | None:
    """Build the canonical make/model key.

    Rules: lower-case ``"{make}_{model}"``, collapse every run of
    non-alphanumeric characters to a single underscore, trim leading and
    trailing underscores. Returns None when either part is missing.

    >>> make_model_key("Mercedes-Benz", "GLC 300")
    'mercedes_benz_glc_300'
    """
    if not make or not model or not make.strip() or not model.strip():
        return None
    return canonicalize_key(f"{make.strip()}_{model.strip()}")


def canonicalize_key(raw: str) -> str | None:
    """Apply the make/model key rules to an already-joined key."""
    key = _NON_ALNUM_RE.sub("_", raw.lower()).strip("_")
    return key or None


def parse_identity(content: str) -> tuple[str, str] | None:
    """Extract (make, model) from identity chunk text.

    Identity text is comma separated with make and model as the first two
    fields, e.g. ``"Toyota, RAV4, GX 2WD, 2024, suv, hybrid"``.
    """
    if not content:
        return None
    fields = [part.strip() for part in content.split(",")]
    if len(fields) < 3 or not fields[0] or not fields[1]:
        return None
    return fields[0], fields[1]


def trim_keywords(trim: str | None) -> frozenset[str]:
    """Tokenize a trim label into upper-case keywords.

    Tokens split on whitespace, hyphens and periods; pure numeric and decimal
    tokens are dropped.
    """
    if not trim:
        return frozenset()
    tokens = (token.strip().upper() for token in _TRIM_SPLIT_RE.split(trim))
    return frozenset(
        token for token in tokens if token and not _NUMERIC_TOKEN_RE.match(token)
    )


def extract_seat_count(seating: str | None) -> int:
    """Derive a seat count from a free-text seating description.

    Checked in order: an English number word (two to nine), a split-row
    pattern such as ``2+3`` (summed), a direct ``N seats`` pattern. Falls
    back to five seats.
    """
    if not seating:
        return DEFAULT_SEAT_COUNT

    lowered = seating.lower()
    for word, number in SEAT_WORDS.items():
        if re.search(rf"\b{word}\b", lowered):
            return number

    split_match = _SPLIT_SEATING_RE.search(seating)
    if split_match:
        return int(split_match.group(1)) + int(split_match.group(2))

    direct_match = _DIRECT_SEATING_RE.search(seating)
    if direct_match:
        return int(direct_match.group(1))

    return DEFAULT_SEAT_COUNT


def parse_price(value: object) -> float | None:
    """Parse a retail price; anything missing, non-positive or non-finite is None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.replace(",", "").replace("$", "").strip()
        if not value or value.lower() == "unknown":
            return None
    try:
        price = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(price) or price <= 0:
        return None
    return price
