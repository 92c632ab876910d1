"""
Bulk import of delimited-text student files.

The uploaded file is spooled to disk, parsed completely, then written one
record at a time. A failure while reading the file aborts the import before
anything is written. Rows without ``studentId`` or ``fullName`` are skipped.
Existing ids are overwritten, unlike the single create endpoint which
rejects duplicates.
"""

from __future__ import annotations

import csv
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Dict, List

from ..errors import BulkImportError
from ..schemas import STUDENT_FIELDS
from .record_store import RecordStore

logger = logging.getLogger(__name__)

BOM = "\ufeff"


@dataclass
class ImportSummary:
    imported: int = 0
    skipped: int = 0


def clean_column(name: str) -> str:
    if name.startswith(BOM):
        name = name[len(BOM):]
    return name.strip()


def spool_upload(source: BinaryIO, upload_dir: str | os.PathLike) -> Path:
    """Copy an upload stream into a temporary file under ``upload_dir``."""
    directory = Path(upload_dir)
    directory.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(dir=directory, suffix=".csv", delete=False) as tmp:
        path = Path(tmp.name)
        try:
            shutil.copyfileobj(source, tmp)
        except OSError as e:
            logger.error(f"Error reading upload stream: {type(e).__name__}: {str(e)}")
            tmp.close()
            path.unlink(missing_ok=True)
            raise BulkImportError() from e
    logger.debug(f"Spooled upload to {path}")
    return path


class BulkImporter:
    def __init__(self, store: RecordStore, delimiter: str = ",") -> None:
        self.store = store
        self.delimiter = delimiter

    def read_rows(self, path: Path) -> List[Dict[str, str]]:
        rows: List[Dict[str, str]] = []
        try:
            with open(path, "r", encoding="utf-8", newline="") as handle:
                reader = csv.DictReader(handle, delimiter=self.delimiter)
                for raw in reader:
                    row = {
                        clean_column(key): value
                        for key, value in raw.items()
                        if key is not None and value is not None
                    }
                    logger.debug(f"Parsed record: {row}")
                    rows.append(row)
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            logger.error(f"Error reading CSV file: {type(e).__name__}: {str(e)}")
            raise BulkImportError() from e
        return rows

    def import_rows(self, rows: List[Dict[str, str]]) -> ImportSummary:
        summary = ImportSummary()
        for row in rows:
            student_id = row.get("studentId")
            if not student_id or not row.get("fullName"):
                logger.warning(f"CSV record is missing required fields: {row}")
                summary.skipped += 1
                continue
            fields = {name: row.get(name) or "" for name in STUDENT_FIELDS}
            self.store.put(student_id, fields)
            summary.imported += 1
        return summary

    def import_file(self, path: Path) -> ImportSummary:
        """Import ``path`` and remove it afterwards, whatever the outcome."""
        try:
            rows = self.read_rows(path)
            summary = self.import_rows(rows)
        finally:
            try:
                os.unlink(path)
            except FileNotFoundError:
                pass
        logger.info(
            f"CSV import finished: {summary.imported} imported, {summary.skipped} skipped"
        )
        return summary
