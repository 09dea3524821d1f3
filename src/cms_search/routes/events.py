"""Webhook receiving content lifecycle events from the CMS."""
import uuid
from datetime import UTC, datetime

import structlog
from fastapi import APIRouter, Request, status
from pydantic import BaseModel, Field

from cms_search.content.schemas import ContentSnapshot
from cms_search.events.bus import EventBus
from cms_search.events.types import DomainEvent, EventType

logger = structlog.get_logger()

router = APIRouter(tags=["events"])


class ContentEventRequest(BaseModel):
    """Lifecycle notification posted by the CMS."""

    type: EventType
    entity_id: int = Field(ge=1)
    entity: ContentSnapshot | None = None


class ContentEventAccepted(BaseModel):
    """Acknowledgement for a queued event."""

    event_id: str
    delivered_to: int


@router.post(
    "/events",
    response_model=ContentEventAccepted,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Queue a content lifecycle event for indexing",
)
async def receive_event(request: Request, body: ContentEventRequest) -> ContentEventAccepted:
    """Publish a CMS lifecycle event on the event bus.

    Indexing happens asynchronously in the index subscriber.

    Args:
        request: FastAPI request (provides access to app state).
        body: Event payload from the CMS.

    Returns:
        Event id and the number of subscribers it reached.
    """
    event_bus: EventBus = request.app.state.event_bus
    event = DomainEvent(
        id=str(uuid.uuid4()),
        type=body.type,
        timestamp=datetime.now(UTC),
        entity_id=body.entity_id,
        entity=body.entity,
    )
    delivered = await event_bus.publish(event)
    logger.info(
        "content_event_received",
        event_id=event.id,
        event_type=event.type.value,
        entity_id=event.entity_id,
        delivered_to=delivered,
    )
    return ContentEventAccepted(event_id=event.id, delivered_to=delivered)
