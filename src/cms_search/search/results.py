"""Typed search parameters, result envelopes and query components."""

import math
from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

import structlog
from elasticsearch import Elasticsearch
from pydantic import BaseModel, Field, computed_field

from cms_search.search.client import response_body
from cms_search.search.documents import SearchDocument

logger = structlog.get_logger()

DocumentT = TypeVar("DocumentT", bound=SearchDocument)


class SearchParameters(BaseModel):
    """Paging and free-text input shared by every query.

    Attributes:
        query: Free-text query; None or blank matches everything.
        page: One-based page number.
        size: Hits per page.
    """

    query: str | None = Field(default=None, max_length=200)
    page: int = Field(default=1, ge=1)
    size: int = Field(default=10, ge=1, le=100)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size

    @property
    def has_query(self) -> bool:
        return bool(self.query and self.query.strip())


ParamsT = TypeVar("ParamsT", bound=SearchParameters)


class SearchHit(BaseModel, Generic[DocumentT]):
    """A single matched document.

    Attributes:
        id: Document id.
        score: Relevance score, None when sorting replaced scoring.
        document: The typed ``_source``.
        highlights: Highlighted fragments keyed by field name.
    """

    id: str
    score: float | None = None
    document: DocumentT
    highlights: dict[str, list[str]] = Field(default_factory=dict)


class SearchResult(BaseModel, Generic[ParamsT, DocumentT]):
    """Typed envelope around a search response.

    Subclass once per (parameters, document) pair, e.g.
    ``class ArticleSearchResult(SearchResult[ArticleSearchParameters, ArticleDocument])``.
    """

    parameters: ParamsT
    total: int = 0
    took: int = 0
    hits: list[SearchHit[DocumentT]] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def page_count(self) -> int:
        return math.ceil(self.total / self.parameters.size) if self.total else 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_previous_page(self) -> bool:
        return self.parameters.page > 1

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_next_page(self) -> bool:
        return self.parameters.page < self.page_count

    @property
    def documents(self) -> list[DocumentT]:
        return [hit.document for hit in self.hits]

    @classmethod
    def from_response(cls, parameters: ParamsT, response: Any) -> "SearchResult[ParamsT, DocumentT]":
        """Wrap a raw search response.

        Args:
            parameters: Parameters the query was built from.
            response: ``client.search`` response or its decoded body.

        Returns:
            Result whose hits are validated against the document type.
        """
        body = response_body(response)
        hits_section = body.get("hits", {})
        total = hits_section.get("total", 0)
        if isinstance(total, dict):
            total = total.get("value", 0)

        hits = [
            {
                "id": hit["_id"],
                "score": hit.get("_score"),
                "document": hit.get("_source", {}),
                "highlights": hit.get("highlight", {}),
            }
            for hit in hits_section.get("hits", [])
        ]
        return cls(parameters=parameters, total=total, took=body.get("took", 0), hits=hits)


ResultT = TypeVar("ResultT", bound=SearchResult)


class SearchQuery(ABC, Generic[ParamsT, ResultT]):
    """Query component turning typed parameters into a typed result.

    Subclasses provide ``result_class`` and ``build_query``; the request is
    delegated to the client unchanged.
    """

    result_class: type[ResultT]

    def __init__(self, client: Elasticsearch) -> None:
        """Initialize query.

        Args:
            client: Elasticsearch client to execute searches with.
        """
        self._client = client

    @abstractmethod
    def build_query(self, parameters: ParamsT) -> dict[str, Any]:
        """Return the query DSL clause for ``parameters``."""

    def build_request(self, parameters: ParamsT) -> dict[str, Any]:
        """Return keyword arguments for ``client.search``. Override to add sorting or highlights."""
        return {
            "query": self.build_query(parameters),
            "from_": parameters.offset,
            "size": parameters.size,
        }

    def execute(self, parameters: ParamsT, index_name: str) -> ResultT:
        """Run the search against ``index_name``.

        Raises:
            elasticsearch.ApiError: If the cluster rejects the request.
        """
        request = self.build_request(parameters)
        response = self._client.search(index=index_name, **request)
        result = self.result_class.from_response(parameters, response)
        logger.debug(
            "search_executed",
            index=index_name,
            query=parameters.query,
            total=result.total,
            took=result.took,
        )
        return result  # type: ignore[return-value]
