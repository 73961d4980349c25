"""
Selector helpers shared by the listing walker and the detail extractor.

Korean public portals mark up detail pages in a handful of recurring
shapes; the constants here name the containers and label hints they use.
"""

import re
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

import structlog

from .normalizer import cleanup_html_text, collapse_whitespace

logger = structlog.get_logger(__name__)


# Main body containers on detail pages, most specific first
MAIN_SELECTORS = [
    ".view_cont",
    ".board_view",
    ".bbs_view",
    ".view_con",
    ".cont_box",
    ".board-view",
    "#contents",
    "#content",
    ".content",
    "main",
    "article",
]

# Class name tokens ("s_title" -> "s", "title") that mark a field label
LABEL_CLASS_HINTS = frozenset({"title", "tit", "stit", "label", "th", "head", "subject", "key"})

# Tags treated as labels regardless of class
LABEL_TAGS = ("th", "dt", "label", "strong", "b", "h3", "h4", "h5")

CLASS_TOKEN_PATTERN = re.compile(r"[-_\s]+")

# Values that carry no information
JUNK_VALUES = frozenset({"-", "--", "없음", "해당없음", "해당 없음", "미정", "n/a", "N/A"})


def element_text(element: Optional[Tag]) -> str:
    """
    Visible text of an element with whitespace collapsed.

    Entities escaped twice in the source markup ("R&amp;amp;D") are decoded.
    """
    if element is None:
        return ""
    return collapse_whitespace(cleanup_html_text(element.get_text(" ", strip=True)))


def cleanup_navigation(soup: BeautifulSoup) -> None:
    """
    Remove navigation, footer and scripts from soup.

    Modifies soup in place.
    """
    for elem in soup.select("nav, footer, script, style, header, aside, .gnb, .lnb, .snb, .sidebar, .skip"):
        elem.decompose()


def get_main_container(soup: BeautifulSoup, min_length: int = 1) -> Optional[Tag]:
    """
    Find the main content container in the page.

    Tries selectors from MAIN_SELECTORS in order; the first container with
    at least min_length characters of text wins.

    Args:
        soup: Parsed HTML
        min_length: Minimum visible text length

    Returns:
        Main container element, or None if no known container qualifies
    """
    for selector in MAIN_SELECTORS:
        container = soup.select_one(selector)
        if container is not None and len(element_text(container)) >= min_length:
            return container
    return None


def has_label_hint(element: Tag) -> bool:
    """True if the element looks like a field label by tag or class."""
    if element.name in LABEL_TAGS:
        return True
    for class_name in element.get("class") or []:
        tokens = CLASS_TOKEN_PATTERN.split(class_name.lower())
        if LABEL_CLASS_HINTS.intersection(tokens):
            return True
    return False


def label_matches(text: str, synonyms: list[str]) -> bool:
    """True if label text contains any synonym (whitespace-insensitive)."""
    if not text:
        return False
    compact = text.replace(" ", "")
    return any(synonym.replace(" ", "") in compact for synonym in synonyms)


def is_junk_value(value: str, label: str = "") -> bool:
    """
    Check whether an extracted value is empty, a placeholder dash, a
    "none" marker, or just the label echoed back.
    """
    value = collapse_whitespace(value)
    if not value:
        return True
    if value in JUNK_VALUES:
        return True
    if label and value.replace(" ", "") == collapse_whitespace(label).replace(" ", ""):
        return True
    return False


def absolute_url(base_url: str, href: str) -> str:
    """Resolve a possibly relative href against the source base URL."""
    return urljoin(base_url, href.strip())
