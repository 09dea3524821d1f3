"""Article content type: document, index service and typed search."""

from collections.abc import Iterable
from datetime import date, datetime, time
from typing import Any

from pydantic import Field

from cms_search.config import SearchSettings
from cms_search.content.schemas import ContentEntity
from cms_search.content.store import ContentStore
from cms_search.search.documents import SearchDocument, indexed_field
from cms_search.search.index import IndexService
from cms_search.search.results import SearchParameters, SearchQuery, SearchResult

ARTICLE_CONTENT_TYPE = "article"


class ArticleDocument(SearchDocument):
    """Indexed representation of an article page."""

    type_name = "article"

    title: str = indexed_field(
        "text",
        default="",
        fields={"raw": {"type": "keyword"}},
    )
    summary: str | None = None
    body: str | None = None
    categories: list[str] = indexed_field("keyword", default=[])
    author: str | None = indexed_field("keyword")
    published_at: datetime | None = None


def _as_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    return datetime.fromisoformat(str(value))


def _split_categories(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(part).strip() for part in value if str(part).strip()]


class ArticleIndexService(IndexService[ArticleDocument, ContentEntity, SearchSettings]):
    """Keeps published articles in the search index."""

    document_class = ArticleDocument

    def retrieve_index_items(self, service_context: ContentStore) -> Iterable[ContentEntity]:
        return service_context.all(content_type=ARTICLE_CONTENT_TYPE)

    def should_index(self, entity: ContentEntity) -> bool:
        return entity.content_type == ARTICLE_CONTENT_TYPE

    def create(self, document: ArticleDocument, entity: ContentEntity) -> None:
        document.title = entity.get_value("title") or entity.name
        document.summary = entity.get_value("summary")
        document.body = entity.get_value("bodyText")
        document.categories = _split_categories(entity.get_value("categories"))
        document.author = entity.get_value("author")
        document.published_at = _as_datetime(entity.get_value("publishedDate"))


class ArticleSearchParameters(SearchParameters):
    """Article search input.

    Attributes:
        category: Restrict hits to one category.
        author: Restrict hits to one author.
    """

    category: str | None = Field(default=None, max_length=100)
    author: str | None = Field(default=None, max_length=100)


class ArticleSearchResult(SearchResult[ArticleSearchParameters, ArticleDocument]):
    """Search result envelope for article queries."""


class ArticleSearchQuery(SearchQuery[ArticleSearchParameters, ArticleSearchResult]):
    """Full-text article search with optional category and author filters."""

    result_class = ArticleSearchResult

    def build_query(self, parameters: ArticleSearchParameters) -> dict[str, Any]:
        filters: list[dict[str, Any]] = [{"term": {"document_type": ArticleDocument.type_name}}]
        if parameters.category:
            filters.append({"term": {"categories": parameters.category}})
        if parameters.author:
            filters.append({"term": {"author": parameters.author}})

        if parameters.has_query:
            must: dict[str, Any] = {
                "multi_match": {
                    "query": parameters.query,
                    "fields": ["title^3", "summary^2", "body"],
                }
            }
        else:
            must = {"match_all": {}}

        return {"bool": {"must": must, "filter": filters}}

    def build_request(self, parameters: ArticleSearchParameters) -> dict[str, Any]:
        request = super().build_request(parameters)
        if parameters.has_query:
            request["highlight"] = {"fields": {"summary": {}, "body": {}}}
        else:
            request["sort"] = [{"published_at": {"order": "desc", "missing": "_last"}}]
        return request
