"""Elasticsearch indexing and typed search over CMS content."""

from cms_search.search.client import build_client
from cms_search.search.documents import (
    SearchDocument,
    document_mapping,
    indexed_field,
)
from cms_search.search.index import BuildSummary, IndexService, record_on_entity
from cms_search.search.results import (
    SearchHit,
    SearchParameters,
    SearchQuery,
    SearchResult,
)
from cms_search.search.subscriber import run_index_subscriber

__all__ = [
    "BuildSummary",
    "IndexService",
    "SearchDocument",
    "SearchHit",
    "SearchParameters",
    "SearchQuery",
    "SearchResult",
    "build_client",
    "document_mapping",
    "indexed_field",
    "record_on_entity",
    "run_index_subscriber",
]
