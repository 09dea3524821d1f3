"""Event bus subscriber keeping the search index in sync with the CMS."""

import asyncio
from collections.abc import Sequence
from typing import Any

import structlog

from cms_search.content.schemas import ContentEntity, IndexingOutcome
from cms_search.content.store import ContentStore
from cms_search.events.bus import EventBus
from cms_search.events.types import DomainEvent, EventType
from cms_search.search.index import IndexService

logger = structlog.get_logger()

IndexServices = Sequence[IndexService[Any, Any, Any]]


def _resolve_entity(event: DomainEvent, store: ContentStore) -> ContentEntity | None:
    if event.type is EventType.CONTENT_DELETED:
        removed = store.delete(event.entity_id)
        if removed is not None:
            return removed
        return event.entity.to_entity() if event.entity else None

    if event.entity is not None:
        return store.save(event.entity.to_entity())
    return store.get(event.entity_id)


async def dispatch_event(
    event: DomainEvent,
    store: ContentStore,
    services: IndexServices,
    index_name: str,
) -> list[IndexingOutcome]:
    """Apply one lifecycle event to every service that handles the entity.

    Published content is indexed; unpublished and deleted content is
    removed. Services whose ``should_index`` rejects the entity are skipped.
    A removal for an entity that can no longer be resolved deletes the
    document by id through every service.

    Args:
        event: Lifecycle event to apply.
        store: Content store updated from the event's snapshot.
        services: Index services, one per content type.
        index_name: Target index.

    Returns:
        Outcomes from the services that handled the event.
    """
    entity = _resolve_entity(event, store)
    if entity is None:
        if event.type is EventType.CONTENT_PUBLISHED:
            logger.warning("index_event_unknown_entity", entity_id=event.entity_id, event_type=event.type.value)
            return []
        # The content type is unknown, so every service deletes by id
        logger.info("index_event_remove_by_id", entity_id=event.entity_id, event_type=event.type.value)
        return [
            await asyncio.to_thread(service.remove_by_id, str(event.entity_id), index_name)
            for service in services
        ]

    outcomes: list[IndexingOutcome] = []
    for service in services:
        if not service.should_index(entity):
            continue
        if event.type is EventType.CONTENT_PUBLISHED:
            outcome = await asyncio.to_thread(service.index, entity, index_name)
        else:
            outcome = await asyncio.to_thread(service.remove, entity, index_name)
        outcomes.append(outcome)

    if not outcomes:
        logger.debug("index_event_unhandled", entity_id=entity.id, content_type=entity.content_type)
    return outcomes


async def run_index_subscriber(
    event_bus: EventBus,
    store: ContentStore,
    services: IndexServices,
    index_name: str,
) -> None:
    """Subscribe to content events and update the search index.

    Runs as a long-lived asyncio task until cancelled.

    Args:
        event_bus: Application event bus instance.
        store: Content store shared with the index services.
        services: Index services to dispatch to.
        index_name: Target index.
    """
    subscriber_id, events = await event_bus.subscribe(topic="content")
    logger.info("index_subscriber_started", subscriber_id=subscriber_id)

    try:
        async for event in events:
            try:
                await dispatch_event(event, store, services, index_name)
            except Exception:
                logger.exception("index_event_failed", event_id=event.id, entity_id=event.entity_id)
    except asyncio.CancelledError:
        logger.info("index_subscriber_stopped", subscriber_id=subscriber_id)
        raise
