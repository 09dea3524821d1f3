"""Offline command tests."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from cms_search.__main__ import run_offline
from cms_search.config import Settings
from conftest import BulkRecorder

SEED_PATH = str(Path(__file__).parent.parent / "content.example.yaml")


@pytest.fixture
def offline_client(monkeypatch: pytest.MonkeyPatch, es_client: MagicMock) -> MagicMock:
    monkeypatch.setattr("cms_search.__main__.build_client", lambda settings: es_client)
    return es_client


def test_build_prints_summary(
    settings: Settings,
    offline_client: MagicMock,
    bulk: BulkRecorder,
    capsys: pytest.CaptureFixture[str],
) -> None:
    seeded = settings.model_copy(update={"content_seed_path": SEED_PATH})

    assert run_offline(seeded, "build") == 0

    summary = json.loads(capsys.readouterr().out.splitlines()[-1])
    assert summary["document_type"] == "article"
    assert summary["removed"] == 1
    offline_client.close.assert_called_once()


def test_build_failure_sets_exit_code(
    settings: Settings,
    offline_client: MagicMock,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def failing_bulk(*args: object, **kwargs: object) -> None:
        raise RuntimeError("bulk rejected")

    monkeypatch.setattr("cms_search.search.index.helpers.bulk", failing_bulk)

    exit_code = run_offline(settings.model_copy(update={"content_seed_path": SEED_PATH}), "build")

    assert exit_code == 1


def test_mapping(settings: Settings, offline_client: MagicMock) -> None:
    offline_client.indices.get_mapping.return_value = {}

    assert run_offline(settings, "mapping") == 0
    offline_client.indices.put_mapping.assert_called_once()
