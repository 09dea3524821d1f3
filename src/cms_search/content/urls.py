"""URL resolution for content entities."""
from typing import Protocol

from cms_search.constants import UNROUTABLE_URL
from cms_search.content.store import ContentStore


class UrlProvider(Protocol):
    """Resolves the public URL of a content entity by id."""

    def get_url(self, entity_id: int) -> str | None: ...


class StoreUrlProvider:
    """URL provider backed by the content store.

    Published entities resolve to ``/<path>``; unpublished or path-less
    entities resolve to the CMS placeholder ``#``. Unknown ids resolve to None.
    """

    def __init__(self, store: ContentStore) -> None:
        """Initialize provider.

        Args:
            store: Content store holding the entities to resolve.
        """
        self._store = store

    def get_url(self, entity_id: int) -> str | None:
        entity = self._store.get(entity_id)
        if entity is None:
            return None
        if not entity.published or entity.path is None:
            return UNROUTABLE_URL
        return "/" + entity.path.strip("/")
