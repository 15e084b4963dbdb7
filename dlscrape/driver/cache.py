"""File-backed memoization cache for extracted records.

The cache is one pretty-printed JSON object mapping reference numbers to
records. It is read in full at the start of every extraction and rewritten
in full after every new successful extraction. Entries never expire.

Cache problems never fail an extraction: a bad file reads as empty and a
failed write is logged and skipped.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from dlscrape.common.data_models import LicenseRecord
from dlscrape.common.exceptions import (
    CacheReadError,
    CacheWriteError,
)

logger = logging.getLogger(__name__)


class RecordCache:
    """JSON-file cache of LicenseRecords keyed by reference number.

    Args:
        path: Location of the cache file. Created on first save.

    Example:
        cache = RecordCache(Path("cache.json"))
        records = cache.load()
        if "12345" not in records:
            await cache.put("12345", record)
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        # Serializes read-merge-write cycles within this process
        self._write_lock = asyncio.Lock()

    def load(self) -> dict[str, LicenseRecord]:
        """Load the full cache map.

        Returns:
            Reference number to record. Empty if the file is missing,
            unreadable or malformed.
        """
        try:
            return self._read()
        except CacheReadError as e:
            logger.warning(f"Error loading cache, starting empty: {e}")
            return {}

    def save(self, records: dict[str, LicenseRecord]) -> None:
        """Overwrite the cache file with ``records``.

        Best-effort: a write failure is logged, not raised.
        """
        try:
            self._write(records)
        except CacheWriteError as e:
            logger.error(f"Error saving cache: {e}")

    async def put(self, reference_no: str, record: LicenseRecord) -> None:
        """Insert one record and persist the whole map.

        The latest file contents are re-read under the write lock so that
        concurrent puts for different keys do not drop each other's entries.
        """
        async with self._write_lock:
            records = self.load()
            records[reference_no] = record
            self.save(records)

    async def remove(self, reference_no: str) -> bool:
        """Drop one entry. Returns True if it was present."""
        async with self._write_lock:
            records = self.load()
            if records.pop(reference_no, None) is None:
                return False
            self.save(records)
            return True

    def clear(self) -> None:
        """Delete the backing file."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass

    def _read(self) -> dict[str, LicenseRecord]:
        if not self.path.exists():
            logger.debug(f"No cache file at {self.path}, starting empty")
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CacheReadError(self.path, str(e)) from e

        if not isinstance(raw, dict):
            raise CacheReadError(
                self.path, f"expected a JSON object, got {type(raw).__name__}"
            )

        try:
            return {
                key: LicenseRecord.model_validate(value)
                for key, value in raw.items()
            }
        except ValidationError as e:
            raise CacheReadError(self.path, str(e)) from e

    def _write(self, records: dict[str, LicenseRecord]) -> None:
        payload = {
            key: record.to_json_dict() for key, record in records.items()
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Write next to the target and swap in, so readers never see a
            # partial file
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2, ensure_ascii=False)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise CacheWriteError(self.path, str(e)) from e
