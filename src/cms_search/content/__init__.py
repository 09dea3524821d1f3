"""Content module: CMS entities, URL resolution and the content store."""

from cms_search.content.loader import (
    ContentValidationError,
    FileSystemError,
    load_content_file,
)
from cms_search.content.schemas import (
    ContentEntity,
    ContentSnapshot,
    ErrorResponse,
    IndexingOutcome,
    IndexingStatus,
)
from cms_search.content.store import ContentStore
from cms_search.content.urls import StoreUrlProvider, UrlProvider

__all__ = [
    "ContentEntity",
    "ContentSnapshot",
    "ContentStore",
    "ContentValidationError",
    "ErrorResponse",
    "FileSystemError",
    "IndexingOutcome",
    "IndexingStatus",
    "StoreUrlProvider",
    "UrlProvider",
    "load_content_file",
]
