"""Record sources: one atomic snapshot read per build.

The builder never talks to storage itself. A source's :meth:`load` is called
once before the pipeline starts; any failure is raised as
:class:`~refnet_cli.errors.RecordSourceError` and no partial forest is built.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Protocol

from .errors import RecordSourceError

logger = logging.getLogger(__name__)


class RecordSource(Protocol):
    def load(self) -> List[Dict[str, Any]]:
        ...


class JsonRecordSource:
    """A JSON array of records, or an object with a ``records`` array."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> List[Dict[str, Any]]:
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Cannot read records from %s: %s", self.path, exc)
            raise RecordSourceError(f"Cannot read records from {self.path}: {exc}") from exc

        if isinstance(payload, dict):
            payload = payload.get("records")
        if not isinstance(payload, list):
            raise RecordSourceError(f"{self.path} does not contain a list of records")
        return [item for item in payload if isinstance(item, dict)]


class JsonLinesRecordSource:
    """One JSON object per line; blank lines are skipped."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> List[Dict[str, Any]]:
        try:
            lines = self.path.read_text(encoding="utf-8").splitlines()
        except OSError as exc:
            logger.error("Cannot read records from %s: %s", self.path, exc)
            raise RecordSourceError(f"Cannot read records from {self.path}: {exc}") from exc

        records = []
        for lineno, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                item = json.loads(line)
            except json.JSONDecodeError as exc:
                raise RecordSourceError(f"{self.path}:{lineno}: invalid JSON: {exc}") from exc
            if isinstance(item, dict):
                records.append(item)
        return records


class SqliteRecordSource:
    """Rows of a SQLite table; a ``payload`` TEXT column holding JSON is
    unpacked so its keys are visible to the normalizer.
    """

    def __init__(self, db_path: Path, table: str = "records") -> None:
        if not table.isidentifier():
            raise ValueError(f"Invalid table name: {table!r}")
        self.db_path = db_path
        self.table = table

    def load(self) -> List[Dict[str, Any]]:
        if not self.db_path.exists():
            raise RecordSourceError(f"Database {self.db_path} does not exist")
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as exc:
            raise RecordSourceError(f"Cannot open {self.db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            rows = conn.execute(f"SELECT * FROM {self.table}").fetchall()
        except sqlite3.Error as exc:
            logger.error("Query on %s failed: %s", self.db_path, exc)
            raise RecordSourceError(f"Cannot read table '{self.table}' from {self.db_path}: {exc}") from exc
        finally:
            conn.close()

        records = []
        for row in rows:
            item = dict(row)
            payload = item.get("payload")
            if isinstance(payload, str):
                try:
                    item["payload"] = json.loads(payload)
                except json.JSONDecodeError:
                    logger.warning("Row %s has an unreadable payload column", item.get("id"))
                    item["payload"] = {}
            records.append(item)
        return records


def open_source(path: Path, table: str = "records") -> RecordSource:
    """Pick a source implementation from the file extension."""
    suffix = path.suffix.lower()
    if suffix in {".jsonl", ".ndjson"}:
        return JsonLinesRecordSource(path)
    if suffix in {".db", ".sqlite", ".sqlite3"}:
        return SqliteRecordSource(path, table=table)
    return JsonRecordSource(path)


def load_records(source: RecordSource) -> List[Dict[str, Any]]:
    """Take the snapshot. Anything other than a RecordSourceError is wrapped."""
    try:
        records = source.load()
    except RecordSourceError:
        raise
    except Exception as exc:
        logger.error("Record source %r failed: %s", source, exc)
        raise RecordSourceError(f"Record source failed: {exc}") from exc
    logger.debug("Loaded %d records", len(records))
    return records
