"""Historical customer data sources."""

from .base import HistoricalSource
from .files import CsvFormSource, CsvSheetSource, DocumentDirectorySource
from .mock import StaticSource

__all__ = [
    "HistoricalSource",
    "StaticSource",
    "CsvSheetSource",
    "CsvFormSource",
    "DocumentDirectorySource",
]
