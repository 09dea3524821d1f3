"""Typed search result and article query tests."""

from datetime import datetime
from typing import Any
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from cms_search.features import (
    ArticleDocument,
    ArticleSearchParameters,
    ArticleSearchQuery,
    ArticleSearchResult,
)


def search_response(total: Any = 2, hits: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    if hits is None:
        hits = [
            {
                "_id": "1",
                "_score": 2.5,
                "_source": {
                    "id": "1",
                    "url": "/articles/one",
                    "document_type": "article",
                    "title": "One",
                    "categories": ["news"],
                    "published_at": "2024-03-01T09:00:00",
                },
                "highlight": {"body": ["<em>one</em>"]},
            },
            {
                "_id": "2",
                "_score": None,
                "_source": {"id": "2", "url": "/articles/two", "title": "Two"},
            },
        ]
    return {"took": 4, "hits": {"total": total, "hits": hits}}


class TestSearchResult:
    def test_hits_are_typed(self) -> None:
        result = ArticleSearchResult.from_response(
            ArticleSearchParameters(), search_response(total={"value": 2, "relation": "eq"})
        )

        assert result.total == 2
        assert result.took == 4
        first, second = result.documents
        assert isinstance(first, ArticleDocument)
        assert first.published_at == datetime(2024, 3, 1, 9, 0)
        assert result.hits[0].highlights == {"body": ["<em>one</em>"]}
        assert result.hits[1].score is None
        assert second.document_type == "article"

    def test_accepts_response_objects(self) -> None:
        response = MagicMock(body=search_response())
        result = ArticleSearchResult.from_response(ArticleSearchParameters(), response)
        assert [hit.id for hit in result.hits] == ["1", "2"]

    def test_empty_response(self) -> None:
        result = ArticleSearchResult.from_response(ArticleSearchParameters(), {})

        assert result.total == 0
        assert result.hits == []
        assert result.page_count == 0
        assert not result.has_next_page

    @pytest.mark.parametrize(
        ("page", "total", "page_count", "has_previous", "has_next"),
        [
            (1, 25, 3, False, True),
            (2, 25, 3, True, True),
            (3, 25, 3, True, False),
            (1, 10, 1, False, False),
        ],
    )
    def test_paging(
        self, page: int, total: int, page_count: int, has_previous: bool, has_next: bool
    ) -> None:
        result = ArticleSearchResult.from_response(
            ArticleSearchParameters(page=page, size=10), search_response(total=total, hits=[])
        )

        assert result.page_count == page_count
        assert result.has_previous_page is has_previous
        assert result.has_next_page is has_next

    def test_paging_fields_are_serialized(self) -> None:
        result = ArticleSearchResult.from_response(ArticleSearchParameters(), search_response())
        dumped = result.model_dump(mode="json")

        assert dumped["page_count"] == 1
        assert dumped["hits"][0]["document"]["title"] == "One"


class TestSearchParameters:
    def test_offset(self) -> None:
        assert ArticleSearchParameters(page=3, size=20).offset == 40

    @pytest.mark.parametrize("query", [None, "", "   "])
    def test_blank_query(self, query: str | None) -> None:
        assert not ArticleSearchParameters(query=query).has_query

    @pytest.mark.parametrize("overrides", [{"page": 0}, {"size": 0}, {"size": 101}])
    def test_bounds(self, overrides: dict[str, int]) -> None:
        with pytest.raises(ValidationError):
            ArticleSearchParameters(**overrides)


class TestArticleSearchQuery:
    def test_free_text_query(self) -> None:
        query = ArticleSearchQuery(MagicMock()).build_query(
            ArticleSearchParameters(query="climate", category="news", author="ann")
        )

        assert query["bool"]["must"]["multi_match"]["query"] == "climate"
        assert query["bool"]["filter"] == [
            {"term": {"document_type": "article"}},
            {"term": {"categories": "news"}},
            {"term": {"author": "ann"}},
        ]

    def test_browse_sorts_by_date(self) -> None:
        request = ArticleSearchQuery(MagicMock()).build_request(
            ArticleSearchParameters(page=2, size=5)
        )

        assert request["query"]["bool"]["must"] == {"match_all": {}}
        assert request["from_"] == 5
        assert request["size"] == 5
        assert request["sort"][0]["published_at"]["order"] == "desc"
        assert "highlight" not in request

    def test_free_text_request_highlights(self) -> None:
        request = ArticleSearchQuery(MagicMock()).build_request(
            ArticleSearchParameters(query="climate")
        )

        assert "highlight" in request
        assert "sort" not in request

    def test_execute(self) -> None:
        es_client = MagicMock()
        es_client.search.return_value = search_response()

        result = ArticleSearchQuery(es_client).execute(
            ArticleSearchParameters(query="one"), "test-content"
        )

        assert isinstance(result, ArticleSearchResult)
        assert result.total == 2
        kwargs = es_client.search.call_args.kwargs
        assert kwargs["index"] == "test-content"
        assert kwargs["from_"] == 0
