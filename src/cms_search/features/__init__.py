"""Content-type specific indexing and search features."""

from cms_search.features.articles import (
    ARTICLE_CONTENT_TYPE,
    ArticleDocument,
    ArticleIndexService,
    ArticleSearchParameters,
    ArticleSearchQuery,
    ArticleSearchResult,
)

__all__ = [
    "ARTICLE_CONTENT_TYPE",
    "ArticleDocument",
    "ArticleIndexService",
    "ArticleSearchParameters",
    "ArticleSearchQuery",
    "ArticleSearchResult",
]
