"""
Field extraction strategies for announcement detail pages.

Each strategy is a plain function `(soup, synonyms) -> Optional[str]`
returning the first accepted value it can find for a label. A field is
extracted by running its strategy list in order; the first strategy that
produces a value wins. Sources with unusual markup can append their own
strategies to a FieldSpec without touching the existing ones.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from bs4 import Tag

from notices_scraper.core.normalizer import collapse_whitespace, find_date_range
from notices_scraper.core.selectors import (
    element_text,
    get_main_container,
    has_label_hint,
    is_junk_value,
    label_matches,
)

Strategy = Callable[[Tag, list[str]], Optional[str]]

# Shortest value that still carries information ("청년" is enough)
MIN_VALUE_LENGTH = 2

# Longest plausible value read from a label's sibling element; the
# lower bound is MIN_VALUE_LENGTH, applied by accept_value
MAX_SIBLING_LENGTH = 500

# Label elements longer than this are containers, not labels
MAX_LABEL_LENGTH = 30

# Content scraped from a body container
MIN_CONTENT_LENGTH = 20
MAX_CONTENT_LENGTH = 1000

PERIOD_START_LABELS = ["접수시작", "신청시작", "시작일", "접수개시"]
PERIOD_END_LABELS = ["접수마감", "신청마감", "마감일", "종료일", "마감일자"]


def accept_value(value: Optional[str], label: str = "") -> Optional[str]:
    """
    Clean a candidate value, or reject it.

    Returns:
        The cleaned value, or None for junk and too-short candidates
    """
    if value is None:
        return None
    value = collapse_whitespace(value)
    if is_junk_value(value, label):
        return None
    if len(value) < MIN_VALUE_LENGTH:
        return None
    return value


def _row_cells(row: Tag) -> list[Tag]:
    return row.find_all(["th", "td"], recursive=False)


def header_value_row(soup: Tag, synonyms: list[str]) -> Optional[str]:
    """
    Header cell containing a synonym, value from the next data cell in the
    same row. Adjacent header cells are skipped, so both
    `th | td | th | td` and `th | th | td` rows work.
    """
    for row in soup.find_all("tr"):
        cells = _row_cells(row)
        for index, cell in enumerate(cells):
            if cell.name != "th" and not has_label_hint(cell):
                continue
            label = element_text(cell)
            if not label_matches(label, synonyms):
                continue

            for candidate in cells[index + 1:]:
                if candidate.name == "th":
                    continue
                value = accept_value(element_text(candidate), label)
                if value:
                    return value
                break
    return None


def plain_rows(soup: Tag, synonyms: list[str]) -> Optional[str]:
    """
    Two-column (label, value) or four-column (label, value, label, value)
    rows without header markup.
    """
    for row in soup.find_all("tr"):
        cells = _row_cells(row)
        if len(cells) == 2:
            pairs = [(cells[0], cells[1])]
        elif len(cells) == 4:
            pairs = [(cells[0], cells[1]), (cells[2], cells[3])]
        else:
            continue

        for label_cell, value_cell in pairs:
            label = element_text(label_cell)
            if len(label) > MAX_LABEL_LENGTH or not label_matches(label, synonyms):
                continue
            value = accept_value(element_text(value_cell), label)
            if value:
                return value
    return None


def definition_pairs(soup: Tag, synonyms: list[str]) -> Optional[str]:
    """`<dt>` containing a synonym, value from the following `<dd>`."""
    for term in soup.find_all("dt"):
        label = element_text(term)
        if not label_matches(label, synonyms):
            continue
        definition = term.find_next_sibling()
        if definition is None or definition.name != "dd":
            continue
        value = accept_value(element_text(definition), label)
        if value:
            return value
    return None


def label_sibling(soup: Tag, synonyms: list[str]) -> Optional[str]:
    """
    Label-like element (by tag or class) followed by a sibling holding the
    value, e.g. `<li><span class="s_title">지원대상</span><div class="txt">...</div></li>`.
    """
    for element in soup.find_all(True):
        if not has_label_hint(element):
            continue
        label = element_text(element)
        if len(label) > MAX_LABEL_LENGTH or not label_matches(label, synonyms):
            continue

        sibling = element.find_next_sibling()
        if sibling is None:
            continue
        text = element_text(sibling)
        if len(text) > MAX_SIBLING_LENGTH:
            continue
        value = accept_value(text, label)
        if value:
            return value
    return None


# Label-driven strategies, reused when composing a period from parts
LABELED_STRATEGIES: list[Strategy] = [
    header_value_row,
    plain_rows,
    definition_pairs,
    label_sibling,
]


def labeled_value(soup: Tag, synonyms: list[str]) -> Optional[str]:
    """First value any label-driven strategy finds."""
    for strategy in LABELED_STRATEGIES:
        value = strategy(soup, synonyms)
        if value:
            return value
    return None


def compose_period(soup: Tag, synonyms: list[str]) -> Optional[str]:
    """Period assembled from separate start and end date fields."""
    start = labeled_value(soup, PERIOD_START_LABELS)
    end = labeled_value(soup, PERIOD_END_LABELS)
    if start and end:
        return f"{start} ~ {end}"
    return end


def scan_period_text(soup: Tag, synonyms: list[str]) -> Optional[str]:
    """First date range anywhere in the page's visible text."""
    return accept_value(find_date_range(element_text(soup)))


def scan_content_containers(soup: Tag, synonyms: list[str]) -> Optional[str]:
    """Text of the first known body container with enough content."""
    container = get_main_container(soup, min_length=MIN_CONTENT_LENGTH)
    if container is None:
        return None
    return accept_value(element_text(container)[:MAX_CONTENT_LENGTH])


@dataclass
class FieldSpec:
    """One semantic field: its label synonyms and ordered strategies."""

    name: str
    synonyms: list[str]
    strategies: list[Strategy] = field(default_factory=lambda: list(LABELED_STRATEGIES))

    def extract(self, soup: Tag) -> Optional[str]:
        for strategy in self.strategies:
            value = strategy(soup, self.synonyms)
            if value:
                return value
        return None


def default_field_specs() -> list[FieldSpec]:
    """Field specs for all detail fields, fresh lists per call."""
    return [
        FieldSpec(
            name="eligibility",
            synonyms=["지원대상", "신청자격", "신청대상", "지원자격", "모집대상", "참여대상"],
        ),
        FieldSpec(
            name="content",
            synonyms=["사업개요", "사업내용", "지원내용", "사업목적", "공고내용"],
            strategies=[*LABELED_STRATEGIES, scan_content_containers],
        ),
        FieldSpec(
            name="period",
            synonyms=["신청기간", "접수기간", "모집기간", "공고기간", "신청·접수기간"],
            strategies=[*LABELED_STRATEGIES, compose_period, scan_period_text],
        ),
        FieldSpec(
            name="amount",
            synonyms=["지원금액", "지원규모", "지원한도", "지원금", "사업예산"],
        ),
        FieldSpec(
            name="organ",
            synonyms=["주관기관", "소관부처", "수행기관", "지자체", "주관"],
        ),
        FieldSpec(
            name="contact",
            synonyms=["문의처", "담당부서", "담당자", "연락처", "문의"],
        ),
        FieldSpec(
            name="method",
            synonyms=["신청방법", "접수방법", "제출방법", "사업신청"],
        ),
    ]
