"""
Base class for parser strategies.

Parsers implement the extraction phase - turning a fetched detail page
into the semantic DetailFields.
"""

from abc import ABC, abstractmethod

import structlog
from bs4 import BeautifulSoup

from notices_scraper.core.models import DetailFields

logger = structlog.get_logger(__name__)


class ParserStrategy(ABC):
    """
    Abstract base class for parser strategies.

    A parser is pure: it receives an already fetched document and never
    performs I/O, so it can be tested against HTML fixtures.
    """

    def __init__(self):
        self.logger = logger.bind(parser=self.__class__.__name__)

    @abstractmethod
    def parse(self, soup: BeautifulSoup) -> DetailFields:
        """
        Extract detail fields from a document.

        Args:
            soup: Parsed detail page

        Returns:
            DetailFields (fields that could not be resolved stay None)
        """
        pass
