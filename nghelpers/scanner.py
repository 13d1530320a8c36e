"""Project scanning for component metadata."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Collection, Iterable, Optional, Set

from .analyzers import ComponentExtractor
from .config import CONFIG_FILENAME, ConfigError, load_config
from .logging import get_logger
from .models import ScanResult

_EXCLUDED_DIRS = {
    "node_modules",
    "dist",
}

_SOURCE_SUFFIX = ".ts"
_TEST_SUFFIX = ".spec.ts"

logger = get_logger("scanner")


def is_excluded_dir(name: str, extra: Collection[str] = ()) -> bool:
    """Return True for hidden directories and build/vendor output."""
    return name.startswith(".") or name in _EXCLUDED_DIRS or name in extra


def is_source_file(name: str) -> bool:
    return name.endswith(_SOURCE_SUFFIX) and not name.endswith(_TEST_SUFFIX)


class ProjectScanner:
    """Walks a project tree and extracts component metadata file by file."""

    def __init__(
        self,
        extractor: Optional[ComponentExtractor] = None,
        exclude_dirs: Iterable[str] = (),
    ) -> None:
        self._extractor = extractor or ComponentExtractor()
        self._exclude_dirs = set(exclude_dirs)

    def scan(self, root: str) -> ScanResult:
        """Return every component found under ``root`` plus per-path errors.

        Failures reading a directory or processing a file are recorded in
        ``ScanResult.errors`` and the walk continues.
        """
        result = ScanResult()
        root_path = Path(root)

        exclude_dirs = set(self._exclude_dirs)
        try:
            config = load_config(root_path / CONFIG_FILENAME)
        except ConfigError as exc:
            result.errors.append(f"Error in {root_path}: {exc}")
        else:
            exclude_dirs.update(config.scan.exclude_dirs)

        self._walk_dir(root_path, result, exclude_dirs, set())
        logger.info(
            "Scanned %s: %d component(s), %d error(s)",
            root_path,
            len(result.components),
            len(result.errors),
        )
        return result

    def _walk_dir(
        self,
        dir_path: Path,
        result: ScanResult,
        exclude_dirs: Set[str],
        visited: Set[str],
    ) -> None:
        try:
            real_path = os.path.realpath(dir_path)
            if real_path in visited:
                logger.debug("Skipping already visited directory %s", dir_path)
                return
            visited.add(real_path)
            names = sorted(os.listdir(dir_path))
        except OSError as exc:
            logger.debug("Failed to list %s: %s", dir_path, exc)
            result.errors.append(f"Error walking {dir_path}: {exc}")
            return

        for name in names:
            full_path = dir_path / name
            if full_path.is_dir():
                if not is_excluded_dir(name, exclude_dirs):
                    self._walk_dir(full_path, result, exclude_dirs, visited)
            elif is_source_file(name) and full_path.is_file():
                self._process_file(full_path, result)

    def _process_file(self, path: Path, result: ScanResult) -> None:
        try:
            found = self._extractor.extract_file(path)
        except Exception as exc:  # one bad file must not abort the scan
            logger.debug("Failed to process %s: %s", path, exc)
            result.errors.append(f"Error in {path}: {exc}")
            return
        result.components.extend(found)


__all__ = ["ProjectScanner", "is_excluded_dir", "is_source_file"]
