"""Abstract base class for historical data sources."""

from abc import ABC, abstractmethod

from fitscore.models import SourceRecord


class HistoricalSource(ABC):
    """Abstract interface for anything that yields historical customer records."""

    name: str = "base"

    @abstractmethod
    async def fetch(self) -> list[SourceRecord]:
        """
        Fetch raw records from the source.

        Returns:
            Tabular, form or document records, not yet normalized
        """
        pass

    @staticmethod
    def clean_headers(headers: list) -> list[str]:
        """Strip header cells; blank headers become empty strings."""
        return [str(h).strip() if h is not None else "" for h in headers]
