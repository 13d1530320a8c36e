from __future__ import annotations

from pathlib import Path

import pytest

from nghelpers.config import CACHE_DIR_ENV, SCRIPT_POLICY_ENV
from tests._fixtures.project_builder import ProjectBuilder


@pytest.fixture
def project_builder(tmp_path: Path) -> ProjectBuilder:
    """Provide a reusable project builder rooted at the pytest tmp_path."""
    return ProjectBuilder(tmp_path)


@pytest.fixture
def cache_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the function cache at an isolated directory."""
    directory = tmp_path / "function-cache"
    monkeypatch.setenv(CACHE_DIR_ENV, str(directory))
    monkeypatch.delenv(SCRIPT_POLICY_ENV, raising=False)
    return directory
