"""Local file sources: CSV exports of sheets/forms and a folder of documents."""

import asyncio
import csv
import logging
from pathlib import Path
from typing import Optional

from fitscore.config import settings
from fitscore.models import DocumentRecord, FormRecord, SourceRecord, TabularRecord
from .base import HistoricalSource

logger = logging.getLogger(__name__)


class CsvSheetSource(HistoricalSource):
    """A CSV export of a customer spreadsheet; the first row is the header."""

    name = "sheet"
    record_type = TabularRecord

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self.name = f"{self.name}:{self.path.name}"

    async def fetch(self) -> list[SourceRecord]:
        return await asyncio.to_thread(self._read)

    def _read(self) -> list[SourceRecord]:
        with self.path.open(newline="", encoding="utf-8-sig") as f:
            rows = [row for row in csv.reader(f) if any(cell.strip() for cell in row)]

        if not rows:
            logger.warning(f"{self.path} is empty")
            return []

        headers = self.clean_headers(rows[0])
        records = [
            self.record_type(source=self.name, headers=headers, row=row)
            for row in rows[1:]
        ]
        logger.info(f"Read {len(records)} rows from {self.path}")
        return records


class CsvFormSource(CsvSheetSource):
    """A CSV export of questionnaire responses; headers are the questions."""

    name = "form"
    record_type = FormRecord


class DocumentDirectorySource(HistoricalSource):
    """Text or markdown analysis write-ups stored in a directory."""

    name = "docs"
    PATTERNS = ("*.txt", "*.md")

    def __init__(self, directory: Path | str, limit: Optional[int] = None):
        self.directory = Path(directory)
        self.limit = limit or settings.max_documents_per_source
        self.name = f"{self.name}:{self.directory.name}"

    async def fetch(self) -> list[SourceRecord]:
        return await asyncio.to_thread(self._read)

    def _read(self) -> list[SourceRecord]:
        if not self.directory.is_dir():
            raise FileNotFoundError(f"Document directory not found: {self.directory}")

        paths = sorted(p for pattern in self.PATTERNS for p in self.directory.glob(pattern))
        records: list[SourceRecord] = []
        for path in paths[:self.limit]:
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Skipping unreadable document {path}: {e}")
                continue
            records.append(DocumentRecord(source=self.name, name=path.stem, content=content))

        logger.info(f"Read {len(records)} documents from {self.directory}")
        return records
