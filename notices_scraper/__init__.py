"""
Notices Scraper - incremental collector for Korean public support-program announcements.

Architecture:
- core/: Stable foundation (models, stores, fetchers, normalizers, classifier)
- navigators/: Paginated listing discovery with early stop
- parsers/: Detail-page field extraction strategies
- config/: YAML-driven source definitions
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
