"""Event bus and index subscriber tests."""

import asyncio
import uuid
from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from cms_search.content import ContentSnapshot, ContentStore, IndexingStatus
from cms_search.events import DomainEvent, EventBus, EventType
from cms_search.features import ArticleIndexService
from cms_search.search.subscriber import dispatch_event
from conftest import make_article


def make_event(
    event_type: EventType,
    entity_id: int,
    entity: ContentSnapshot | None = None,
) -> DomainEvent:
    return DomainEvent(
        id=str(uuid.uuid4()),
        type=event_type,
        timestamp=datetime.now(UTC),
        entity_id=entity_id,
        entity=entity,
    )


def snapshot(entity_id: int, **overrides: object) -> ContentSnapshot:
    return ContentSnapshot.model_validate(
        make_article(entity_id, **overrides).model_dump(exclude={"indexing_status"})
    )


class TestEventBus:
    def test_publish_reaches_topic_and_wildcard(self) -> None:
        async def scenario() -> tuple[int, DomainEvent, DomainEvent]:
            bus = EventBus()
            _, content_events = await bus.subscribe("content")
            _, all_events = await bus.subscribe()
            delivered = await bus.publish(make_event(EventType.CONTENT_PUBLISHED, 1))
            return delivered, await anext(content_events), await anext(all_events)

        delivered, first, second = asyncio.run(scenario())

        assert delivered == 2
        assert first.entity_id == second.entity_id == 1

    def test_full_queue_drops_new_events(self) -> None:
        async def scenario() -> tuple[int, EventBus, DomainEvent]:
            bus = EventBus(queue_size=1)
            _, events = await bus.subscribe("content")
            await bus.publish(make_event(EventType.CONTENT_PUBLISHED, 1))
            delivered = await bus.publish(make_event(EventType.CONTENT_PUBLISHED, 2))
            return delivered, bus, await anext(events)

        delivered, bus, received = asyncio.run(scenario())

        assert delivered == 0
        assert bus.dropped_events == 1
        assert received.entity_id == 1

    def test_max_subscribers(self) -> None:
        async def scenario() -> None:
            bus = EventBus(max_subscribers=1)
            await bus.subscribe("content")
            await bus.subscribe("content")

        with pytest.raises(ValueError, match="Maximum subscribers"):
            asyncio.run(scenario())

    def test_closing_iterator_unsubscribes(self) -> None:
        async def scenario() -> int:
            bus = EventBus()
            _, events = await bus.subscribe("content")
            await bus.publish(make_event(EventType.CONTENT_PUBLISHED, 1))
            await anext(events)
            await events.aclose()
            return bus.subscriber_count

        assert asyncio.run(scenario()) == 0


class TestDispatchEvent:
    def test_publish_indexes_and_stores_snapshot(
        self,
        article_service: ArticleIndexService,
        store: ContentStore,
        es_client: MagicMock,
    ) -> None:
        event = make_event(EventType.CONTENT_PUBLISHED, 7, snapshot(7))

        outcomes = asyncio.run(dispatch_event(event, store, [article_service], "test-content"))

        assert [o.status for o in outcomes] == [IndexingStatus.SUCCESS]
        assert store.get(7).indexing_status == outcomes[0]
        assert es_client.index.call_args.kwargs["id"] == "7"

    def test_unpublish_removes(
        self,
        article_service: ArticleIndexService,
        store: ContentStore,
        es_client: MagicMock,
    ) -> None:
        event = make_event(EventType.CONTENT_UNPUBLISHED, 1, snapshot(1, published=False))

        outcomes = asyncio.run(dispatch_event(event, store, [article_service], "test-content"))

        assert outcomes[0].succeeded
        es_client.delete.assert_called_once_with(index="test-content", id="1")
        assert store.get(1).published is False

    def test_delete_removes_from_store_and_index(
        self,
        article_service: ArticleIndexService,
        store: ContentStore,
        es_client: MagicMock,
    ) -> None:
        event = make_event(EventType.CONTENT_DELETED, 2)

        outcomes = asyncio.run(dispatch_event(event, store, [article_service], "test-content"))

        assert outcomes[0].succeeded
        assert store.get(2) is None
        es_client.delete.assert_called_once_with(index="test-content", id="2")

    def test_other_content_types_are_skipped(
        self,
        article_service: ArticleIndexService,
        store: ContentStore,
        es_client: MagicMock,
    ) -> None:
        page = ContentSnapshot(id=9, name="Contact", content_type="page", path="contact")
        event = make_event(EventType.CONTENT_PUBLISHED, 9, page)

        outcomes = asyncio.run(dispatch_event(event, store, [article_service], "test-content"))

        assert outcomes == []
        es_client.index.assert_not_called()
        assert store.get(9) is not None

    def test_unknown_entity(
        self,
        article_service: ArticleIndexService,
        store: ContentStore,
        es_client: MagicMock,
    ) -> None:
        event = make_event(EventType.CONTENT_PUBLISHED, 404)

        outcomes = asyncio.run(dispatch_event(event, store, [article_service], "test-content"))

        assert outcomes == []
        es_client.index.assert_not_called()

    @pytest.mark.parametrize("event_type", [EventType.CONTENT_DELETED, EventType.CONTENT_UNPUBLISHED])
    def test_removal_of_unknown_entity_deletes_by_id(
        self,
        article_service: ArticleIndexService,
        es_client: MagicMock,
        event_type: EventType,
    ) -> None:
        event = make_event(event_type, 77)

        outcomes = asyncio.run(dispatch_event(event, ContentStore(), [article_service], "test-content"))

        assert [o.status for o in outcomes] == [IndexingStatus.SUCCESS]
        es_client.delete.assert_called_once_with(index="test-content", id="77")

    def test_publish_without_snapshot_uses_stored_entity(
        self,
        article_service: ArticleIndexService,
        store: ContentStore,
        es_client: MagicMock,
    ) -> None:
        event = make_event(EventType.CONTENT_PUBLISHED, 1)

        outcomes = asyncio.run(dispatch_event(event, store, [article_service], "test-content"))

        assert outcomes[0].succeeded
        assert es_client.index.call_args.kwargs["document"]["title"] == "Article 1"
