"""Typed search API endpoints."""

import structlog
from elasticsearch import ApiError, TransportError
from fastapi import APIRouter, HTTPException, Query, Request

from cms_search.features.articles import (
    ArticleSearchParameters,
    ArticleSearchQuery,
    ArticleSearchResult,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/search", tags=["search"])


@router.get(
    "/articles",
    response_model=ArticleSearchResult,
    summary="Full-text search across published articles",
)
def search_articles(
    request: Request,
    q: str | None = Query(default=None, max_length=200, description="Search query string"),
    category: str | None = Query(default=None, max_length=100, description="Category filter"),
    author: str | None = Query(default=None, max_length=100, description="Author filter"),
    page: int = Query(default=1, ge=1, description="One-based page number"),
    size: int = Query(default=10, ge=1, le=100, description="Results per page"),
) -> ArticleSearchResult:
    """Search articles with optional category and author filters.

    Raises:
        HTTPException: 503 if the search cluster rejects or cannot serve the query.
    """
    query: ArticleSearchQuery = request.app.state.article_query
    parameters = ArticleSearchParameters(
        query=q,
        category=category,
        author=author,
        page=page,
        size=size,
    )
    try:
        return query.execute(parameters, request.app.state.settings.index_name)
    except (ApiError, TransportError) as e:
        logger.warning("search_query_failed", query=q, error=str(e))
        raise HTTPException(status_code=503, detail="Search is temporarily unavailable") from e
