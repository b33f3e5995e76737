"""Tests for configuration, logging setup and the index handle."""

import io
from pathlib import Path

import pytest
from loguru import logger

from highlight_index import config, index as index_module
from highlight_index.config import DB_FILENAME, resolve_data_directory, resolve_db_path
from highlight_index.core.registry.pdfs import HttpPathResolver, LocalPathResolver
from highlight_index.index import default_resolver, open_index
from highlight_index.logging_config import configure_logging


def test_env_data_dir_wins(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HIGHLIGHT_INDEX_DATA_DIR", str(tmp_path))
    assert resolve_data_directory() == tmp_path
    assert resolve_db_path() == tmp_path / DB_FILENAME


def test_first_existing_candidate_is_used(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("HIGHLIGHT_INDEX_DATA_DIR", raising=False)
    missing, existing = tmp_path / "missing", tmp_path / "existing"
    existing.mkdir()
    monkeypatch.setattr(config, "DATA_DIRECTORIES", [missing, existing])
    assert resolve_data_directory() == existing


def test_falls_back_to_first_candidate(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("HIGHLIGHT_INDEX_DATA_DIR", raising=False)
    monkeypatch.setattr(config, "DATA_DIRECTORIES", [tmp_path / "a", tmp_path / "b"])
    assert resolve_data_directory() == tmp_path / "a"


def test_explicit_data_dir(tmp_path: Path) -> None:
    assert resolve_db_path(tmp_path) == tmp_path / DB_FILENAME


def test_open_index_creates_database_lazily(tmp_path: Path) -> None:
    db_path = tmp_path / "data" / DB_FILENAME
    index = open_index(db_path)
    assert not db_path.exists()
    index.topics.add("First")
    assert db_path.exists()


def test_default_resolver_prefers_base_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(index_module, "PDF_BASE_URL", "http://files.local")
    monkeypatch.setattr(index_module, "PDF_ROOT", tmp_path)
    assert isinstance(default_resolver(), HttpPathResolver)

    monkeypatch.setattr(index_module, "PDF_BASE_URL", None)
    assert isinstance(default_resolver(), LocalPathResolver)

    monkeypatch.setattr(index_module, "PDF_ROOT", None)
    assert default_resolver() is None


def test_configure_logging_levels() -> None:
    sink = io.StringIO()
    configure_logging(sink=sink)
    logger.debug("hidden")
    logger.info("shown")
    configure_logging(verbose=True, sink=sink)
    logger.debug("detail")
    logger.remove()
    output = sink.getvalue()
    assert "hidden" not in output
    assert "shown" in output
    assert "detail" in output
