"""Tests for the function cache store."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path

from nghelpers.models import FunctionRecord
from nghelpers.stores import FunctionCache, default_cache_path


def test_function_cache_round_trip(tmp_path: Path) -> None:
    cache_path = tmp_path / "nested" / "functions.json"
    cache = FunctionCache(cache_path)
    record = FunctionRecord(
        function_id="fn_1_abc", source="def anonymous():\n    return 1\n", sandboxed_artifact=None
    )
    cache.store(record)
    cache.persist()

    reloaded = FunctionCache(cache_path)

    assert reloaded.get("fn_1_abc") == record
    assert "fn_1_abc" in reloaded
    assert len(reloaded) == 1


def test_function_cache_document_schema(tmp_path: Path) -> None:
    cache_path = tmp_path / "functions.json"
    cache = FunctionCache(cache_path)
    cache.store(FunctionRecord("trusted_2_xyz", "src", "artifact"))
    cache.persist()

    payload = json.loads(cache_path.read_text(encoding="utf-8"))

    assert payload == {"trusted_2_xyz": {"source": "src", "sandboxedArtifact": "artifact"}}
    assert not list(tmp_path.glob("*.tmp"))


def test_missing_or_corrupt_document_loads_empty(tmp_path: Path) -> None:
    assert len(FunctionCache(tmp_path / "absent.json")) == 0

    corrupt = tmp_path / "corrupt.json"
    corrupt.write_text("{not json", encoding="utf-8")
    assert len(FunctionCache(corrupt)) == 0

    wrong_shape = tmp_path / "list.json"
    wrong_shape.write_text("[1, 2, 3]", encoding="utf-8")
    assert len(FunctionCache(wrong_shape)) == 0


def test_invalid_entries_are_skipped(tmp_path: Path) -> None:
    cache_path = tmp_path / "functions.json"
    cache_path.write_text(
        json.dumps(
            {
                "fn_ok": {"source": "lambda: 1", "sandboxedArtifact": None},
                "fn_no_source": {"sandboxedArtifact": "x"},
                "fn_bad_artifact": {"source": "lambda: 2", "sandboxedArtifact": 7},
                "fn_not_object": "lambda: 3",
            }
        ),
        encoding="utf-8",
    )

    cache = FunctionCache(cache_path)

    assert sorted(record.function_id for record in cache) == ["fn_bad_artifact", "fn_ok"]
    assert cache.get("fn_bad_artifact").sandboxed_artifact is None  # type: ignore[union-attr]


def test_last_writer_wins_across_instances(tmp_path: Path) -> None:
    cache_path = tmp_path / "functions.json"
    first = FunctionCache(cache_path)
    second = FunctionCache(cache_path)

    first.store(FunctionRecord("fn_first", "lambda: 1"))
    first.persist()
    second.store(FunctionRecord("fn_second", "lambda: 2"))
    second.persist()

    reloaded = FunctionCache(cache_path)
    assert "fn_second" in reloaded
    assert "fn_first" not in reloaded


def test_reload_observes_other_writers(tmp_path: Path) -> None:
    cache_path = tmp_path / "functions.json"
    reader = FunctionCache(cache_path)
    writer = FunctionCache(cache_path)
    writer.store(FunctionRecord("fn_new", "lambda: 1"))
    writer.persist()

    assert reader.get("fn_new") is None
    reader.reload()
    assert reader.get("fn_new") is not None


def test_default_cache_path(tmp_path: Path) -> None:
    assert default_cache_path() == Path(tempfile.gettempdir()) / "nghelpers-runtime" / "functions.json"
    assert default_cache_path(tmp_path) == tmp_path / "functions.json"
