"""In-memory content store standing in for the CMS content service."""
import threading
from collections.abc import Iterable, Iterator

import structlog

from cms_search.content.schemas import ContentEntity

logger = structlog.get_logger()


class ContentStore:
    """Thread-safe registry of content entities keyed by id.

    Entities reach the store from the seed file at startup and from entity
    snapshots attached to CMS lifecycle events. Index services receive the
    store as their service context when enumerating content for a build.
    """

    def __init__(self, entities: Iterable[ContentEntity] = ()) -> None:
        """Initialize store.

        Args:
            entities: Initial entities; later duplicates replace earlier ones.
        """
        self._entities: dict[int, ContentEntity] = {}
        self._lock = threading.Lock()
        for entity in entities:
            self._entities[entity.id] = entity

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[ContentEntity]:
        return iter(self.all())

    def get(self, entity_id: int) -> ContentEntity | None:
        with self._lock:
            return self._entities.get(entity_id)

    def all(self, content_type: str | None = None) -> list[ContentEntity]:
        """Return entities ordered by id, optionally filtered by type.

        Args:
            content_type: Only return entities of this document type.

        Returns:
            Snapshot list of matching entities.
        """
        with self._lock:
            entities = sorted(self._entities.values(), key=lambda e: e.id)
        if content_type is None:
            return entities
        return [e for e in entities if e.content_type == content_type]

    def save(self, entity: ContentEntity) -> ContentEntity:
        """Insert or replace an entity, keeping its recorded indexing status."""
        with self._lock:
            existing = self._entities.get(entity.id)
            if existing is not None and entity.indexing_status is None:
                entity.indexing_status = existing.indexing_status
            self._entities[entity.id] = entity
        logger.debug("content_saved", entity_id=entity.id, content_type=entity.content_type)
        return entity

    def delete(self, entity_id: int) -> ContentEntity | None:
        with self._lock:
            entity = self._entities.pop(entity_id, None)
        if entity is not None:
            logger.debug("content_deleted", entity_id=entity_id)
        return entity
