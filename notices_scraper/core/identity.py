"""
Stable item identity from announcement URLs.

Portals embed their identifiers in different URL shapes
(`?pblancId=PBLN_000000000012345`, `?pbancSn=171234`, `/view/9876`).
An ordered table of patterns is tried first; anything else falls back
to a deterministic rolling hash of the full URL so every item still
gets a stable id.
"""

import re
import string
from dataclasses import dataclass
from typing import Iterable, Optional

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class IdPattern:
    """A labeled URL pattern with the capture group holding the id."""
    label: str
    pattern: re.Pattern
    group: int = 1

    @classmethod
    def compile(cls, label: str, regex: str, group: int = 1) -> "IdPattern":
        return cls(label=label, pattern=re.compile(regex), group=group)

    def match(self, url: str) -> Optional[str]:
        found = self.pattern.search(url)
        if not found:
            return None
        return found.group(self.group) or None


# Order matters: source-specific parameters before generic board ones
DEFAULT_ID_PATTERNS: tuple[IdPattern, ...] = (
    IdPattern.compile("bizinfo", r"[?&]pblancId=([A-Za-z0-9_]+)"),
    IdPattern.compile("kstartup", r"[?&]pbancSn=(\d+)"),
    IdPattern.compile("board_ntt_sn", r"[?&]nttSn=(\d+)"),
    IdPattern.compile("board_ntt_id", r"[?&]nttId=(\d+)"),
    IdPattern.compile("board_bbs_sn", r"[?&]bbsSn=(\d+)"),
    IdPattern.compile("board_seq", r"[?&](?:seq|seqNo|boardSeq)=(\d+)"),
    IdPattern.compile("board_idx", r"[?&]idx=(\d+)"),
    IdPattern.compile("board_no", r"[?&](?:no|articleNo|bno)=(\d+)"),
    IdPattern.compile("path_view", r"/(?:view|detail|read)/([A-Za-z0-9_-]+)/?(?:[?#]|$)"),
)

_BASE36_DIGITS = string.digits + string.ascii_lowercase


def to_base36(number: int) -> str:
    """Encode a non-negative integer in base 36 (0-9a-z)."""
    if number < 0:
        raise ValueError("number must be non-negative")
    if number == 0:
        return "0"

    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def rolling_hash(text: str) -> str:
    """
    Deterministic non-cryptographic hash of a string, base-36 encoded.

    h = h * 31 + code point, wrapped to a signed 32-bit integer; the
    absolute value is encoded.
    """
    value = 0
    for char in text:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return to_base36(abs(value))


class IdentityResolver:
    """
    Resolves URLs to stable identifiers.

    Patterns are tried in order; the first non-empty capture wins.
    Sources can prepend their own patterns ahead of the defaults.
    """

    def __init__(self, patterns: Optional[Iterable[IdPattern]] = None):
        self.patterns: list[IdPattern] = list(
            patterns if patterns is not None else DEFAULT_ID_PATTERNS
        )

    def with_patterns(self, extra: Iterable[IdPattern]) -> "IdentityResolver":
        """Return a resolver trying `extra` before the current patterns."""
        return IdentityResolver([*extra, *self.patterns])

    def resolve(self, url: str) -> str:
        """
        Derive a stable id from an item URL.

        Args:
            url: Absolute item URL

        Returns:
            The captured identifier, or the base-36 hash of the URL
        """
        for id_pattern in self.patterns:
            value = id_pattern.match(url)
            if value:
                return value

        fallback = rolling_hash(url)
        logger.debug("id_fallback_hash", url=url, id=fallback)
        return fallback

    def record_id(self, source_id: str, url: str) -> str:
        """Composite id unique across sources."""
        return f"{source_id}_{self.resolve(url)}"


_default_resolver = IdentityResolver()


def resolve_id(url: str) -> str:
    """Resolve an id with the default pattern table."""
    return _default_resolver.resolve(url)
