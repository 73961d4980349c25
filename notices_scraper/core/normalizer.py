"""
Normalization utilities for Korean announcement data.

Handles:
- Korean date formats (2026.02.25, 2026-3-24, 2026년 3월 24일)
- Application-period ranges ("2026.02.25 ~ 2026.03.24") to a single deadline
- Title and text cleanup
"""

import re
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)


# year, month, day separated by . - / or the Korean 년/월(/일) markers
DATE_PATTERN = re.compile(
    r"(\d{4})\s*(?:[.\-/]|년)\s*(\d{1,2})\s*(?:[.\-/]|월)\s*(\d{1,2})\s*일?"
)

# Two dates joined by a range marker, used when scanning whole pages
DATE_RANGE_PATTERN = re.compile(
    r"\d{4}\s*(?:[.\-/]|년)\s*\d{1,2}\s*(?:[.\-/]|월)\s*\d{1,2}\s*일?\.?"
    r"(?:\s*\([^)]{1,6}\))?(?:\s*\d{1,2}:\d{2})?"
    r"\s*[~∼～\-–]\s*"
    r"\d{4}\s*(?:[.\-/]|년)\s*\d{1,2}\s*(?:[.\-/]|월)\s*\d{1,2}\s*일?\.?"
    r"(?:\s*\([^)]{1,6}\))?(?:\s*\d{1,2}:\d{2})?"
)

LEADING_TAG_PATTERN = re.compile(r"^\s*\[[^\]]*\]\s*")


def extract_all_dates(text: str) -> list[str]:
    """
    Find every date-like substring and return them as YYYY-MM-DD.

    Month and day are zero-padded. Matches with an impossible month or
    day (e.g. 2026.13.40) are skipped.

    Args:
        text: Free text containing zero or more dates

    Returns:
        List of ISO date strings in order of appearance
    """
    if not text:
        return []

    dates = []
    for match in DATE_PATTERN.finditer(text):
        year, month, day = match.groups()
        if not (1 <= int(month) <= 12 and 1 <= int(day) <= 31):
            logger.debug("invalid_date_skipped", text=match.group(0))
            continue
        dates.append(f"{year}-{int(month):02d}-{int(day):02d}")
    return dates


def normalize_deadline(text: str) -> str:
    """
    Turn a free-text period into a canonical deadline.

    Multi-date strings are read as start~end ranges, so the last date
    found wins.

    Examples:
        "2026.02.25 ~ 2026.03.24" -> "2026-03-24"
        "2026년 3월 24일"          -> "2026-03-24"
        "no dates here"           -> ""

    Args:
        text: Period string from a detail page or listing row

    Returns:
        YYYY-MM-DD string, or "" if no date was found
    """
    dates = extract_all_dates(text)
    return dates[-1] if dates else ""


def resolve_deadline(period: Optional[str], raw_date: str = "") -> str:
    """
    Resolve the deadline for a record.

    The extracted period is tried first, then the raw listing-page date.
    When neither contains a date the raw listing date is kept as is.

    Args:
        period: Period string from the detail page (may be None)
        raw_date: Date text from the listing row

    Returns:
        Deadline string
    """
    deadline = normalize_deadline(period or "")
    if deadline:
        return deadline

    deadline = normalize_deadline(raw_date)
    if deadline:
        return deadline

    return (raw_date or "").strip()


def find_date_range(text: str) -> Optional[str]:
    """
    Find the first "date ~ date" range in text.

    Args:
        text: Text to scan (usually a page's visible text)

    Returns:
        The matched range string or None
    """
    if not text:
        return None

    match = DATE_RANGE_PATTERN.search(text)
    return collapse_whitespace(match.group(0)) if match else None


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace (including NBSP) to single spaces."""
    if not text:
        return ""
    return re.sub(r"\s+", " ", text.replace("\u00a0", " ")).strip()


def normalize_title(title: str) -> str:
    """
    Normalize announcement title for deduplication and display.

    - Strips a leading bracketed tag ("[서울] ...", "[경기도] ...")
    - Collapses whitespace

    Args:
        title: Raw title string

    Returns:
        Normalized title
    """
    if not title:
        return ""

    return collapse_whitespace(LEADING_TAG_PATTERN.sub("", title, count=1))


def cleanup_html_text(text: str) -> str:
    """
    Clean up text extracted from HTML.

    - Removes leftover entities
    - Collapses blank-line runs and inline whitespace

    Args:
        text: Raw text from HTML

    Returns:
        Cleaned text
    """
    if not text:
        return ""

    cleaned = re.sub(r"&nbsp;", " ", text)
    cleaned = re.sub(r"&amp;", "&", cleaned)
    cleaned = re.sub(r"&lt;", "<", cleaned)
    cleaned = re.sub(r"&gt;", ">", cleaned)
    cleaned = cleaned.replace("\u00a0", " ")

    cleaned = re.sub(r"[ \t]+", " ", cleaned)
    cleaned = re.sub(r"\n\s*\n", "\n\n", cleaned)
    return cleaned.strip()
