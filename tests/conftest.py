"""Pytest configuration and fixtures."""

import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from fastapi.testclient import TestClient

from cms_search.app import create_app
from cms_search.config import Settings
from cms_search.content import ContentEntity, ContentStore, StoreUrlProvider
from cms_search.features import ArticleIndexService


class BulkRecorder:
    """Stand-in for ``elasticsearch.helpers.bulk`` that records each call."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.errors: list[dict[str, Any]] = []

    def __call__(self, client: Any, actions: Any, **kwargs: Any) -> tuple[int, list[dict[str, Any]]]:
        materialized = list(actions)
        self.calls.append({"actions": materialized, "kwargs": kwargs})
        return len(materialized) - len(self.errors), list(self.errors)

    def calls_for(self, op_type: str) -> list[list[dict[str, Any]]]:
        return [
            call["actions"]
            for call in self.calls
            if call["actions"] and call["actions"][0]["_op_type"] == op_type
        ]


def make_article(entity_id: int, **overrides: Any) -> ContentEntity:
    """Build a routable article entity."""
    data: dict[str, Any] = {
        "id": entity_id,
        "name": f"Article {entity_id}",
        "content_type": "article",
        "path": f"articles/article-{entity_id}",
        "properties": {"title": f"Article {entity_id}", "categories": "news"},
    }
    data.update(overrides)
    return ContentEntity.model_validate(data)


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        _env_file=None,
        host="127.0.0.1",
        port=8000,
        debug=True,
        index_name="test-content",
        ensure_mapping_on_startup=False,
    )


@pytest.fixture
def es_client() -> MagicMock:
    """Elasticsearch client double; every call returns a MagicMock unless configured."""
    client = MagicMock(name="Elasticsearch")
    client.exists.return_value = True
    client.ping.return_value = True
    return client


@pytest.fixture
def bulk(monkeypatch: pytest.MonkeyPatch) -> BulkRecorder:
    """Replace the bulk helper used by the index service."""
    recorder = BulkRecorder()
    monkeypatch.setattr("cms_search.search.index.helpers.bulk", recorder)
    return recorder


@pytest.fixture
def store() -> ContentStore:
    return ContentStore([make_article(1), make_article(2)])


@pytest.fixture
def article_service(es_client: MagicMock, store: ContentStore, settings: Settings) -> ArticleIndexService:
    return ArticleIndexService(es_client, StoreUrlProvider(store), settings, store)


@pytest.fixture
def client(settings: Settings, es_client: MagicMock) -> Iterator[TestClient]:
    """Create test client with configured app; lifespan runs inside the context."""
    app = create_app(settings, es_client=es_client)
    with TestClient(app) as test_client:
        yield test_client
