"""
Parser strategies for announcement detail pages.

Parsers handle the extraction phase - turning a detail page into
eligibility / content / period / amount fields.

Strategies:
- HtmlDetailParser: field-spec cascade over HTML detail pages
- DetailFetcher: cache-aware fetch + parse per record id
"""

from .base import ParserStrategy
from .html_detail import HtmlDetailParser, DetailFetcher
from .strategies import FieldSpec, default_field_specs

__all__ = [
    "ParserStrategy",
    "HtmlDetailParser",
    "DetailFetcher",
    "FieldSpec",
    "default_field_specs",
]
