"""
Navigator strategies for announcement discovery.

Navigators handle the discovery phase - walking a source's paginated
listing and collecting items until nothing new is left.

Strategies:
- ListingWalker: page 1..N with early stop on already-seen items
"""

from .base import NavigatorStrategy, SourceConfig
from .paginated import ListingWalker, WalkResult

__all__ = [
    "NavigatorStrategy",
    "SourceConfig",
    "ListingWalker",
    "WalkResult",
]
