"""Persistent cache of registered functions shared across processes."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterator, Optional

from ..logging import get_logger
from ..models import FunctionRecord

CACHE_DIRNAME = "nghelpers-runtime"
CACHE_FILENAME = "functions.json"

logger = get_logger("stores.function_cache")


def default_cache_path(cache_dir: Optional[Path] = None) -> Path:
    """Return the cache document path, defaulting to the system temp directory."""
    base = cache_dir if cache_dir is not None else Path(tempfile.gettempdir()) / CACHE_DIRNAME
    return base / CACHE_FILENAME


class FunctionCache:
    """Maps function identifiers to their registered records.

    The backing document is read whole and replaced whole. There is no
    locking: concurrent writers race and the last one to persist wins.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._entries: Dict[str, FunctionRecord] = {}
        self.reload()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, function_id: str) -> Optional[FunctionRecord]:
        return self._entries.get(function_id)

    def store(self, record: FunctionRecord) -> None:
        self._entries[record.function_id] = record

    def __contains__(self, function_id: object) -> bool:
        return function_id in self._entries

    def __iter__(self) -> Iterator[FunctionRecord]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def reload(self) -> None:
        """Replace in-memory entries with the current on-disk document."""
        self._entries = self._load(self._path)

    def persist(self) -> None:
        """Write every entry back, replacing the previous document."""
        payload = {function_id: record.to_entry() for function_id, record in self._entries.items()}
        self._path.parent.mkdir(parents=True, exist_ok=True)
        staging = self._path.with_name(f"{self._path.name}.{os.getpid()}.tmp")
        staging.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        os.replace(staging, self._path)
        logger.debug("Wrote %d function(s) to %s", len(payload), self._path)

    # ------------------------------------------------------------------
    # Internal helpers

    @staticmethod
    def _load(path: Path) -> Dict[str, FunctionRecord]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.debug("Ignoring unreadable function cache %s: %s", path, exc)
            return {}
        if not isinstance(data, dict):
            return {}
        entries: Dict[str, FunctionRecord] = {}
        for function_id, raw in data.items():
            record = FunctionRecord.from_entry(function_id, raw)
            if record is not None:
                entries[function_id] = record
        return entries


__all__ = ["CACHE_DIRNAME", "CACHE_FILENAME", "FunctionCache", "default_cache_path"]
