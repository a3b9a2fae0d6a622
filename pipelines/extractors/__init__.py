"""
Data Extractors

Reusable components for fetching data from external sources.
"""

from pipelines.extractors.base import BaseExtractor
from pipelines.extractors.espn import ESPNScoreboardExtractor

__all__ = [
    "BaseExtractor",
    "ESPNScoreboardExtractor",
]
