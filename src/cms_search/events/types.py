"""Domain event types for CMS content lifecycle changes."""
from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from cms_search.content.schemas import ContentSnapshot


class EventType(str, Enum):
    """Content lifecycle events raised by the CMS."""

    CONTENT_PUBLISHED = "content.published"
    CONTENT_UNPUBLISHED = "content.unpublished"
    CONTENT_DELETED = "content.deleted"


Topic = Literal["content", "system"]


class DomainEvent(BaseModel):
    """Typed domain event for a content lifecycle change.

    Attributes:
        id: Unique event identifier (UUID).
        type: What happened to the entity.
        timestamp: Event timestamp in UTC.
        topic: Event topic for routing to subscribers.
        entity_id: Id of the affected content entity.
        entity: Snapshot of the entity after the change, when the CMS sent one.
    """

    id: str = Field(description="Unique event identifier (UUID)")
    type: EventType = Field(description="Event type")
    timestamp: datetime = Field(description="Event timestamp (UTC)")
    topic: Topic = Field(default="content", description="Event topic for routing")
    entity_id: int = Field(description="Affected content entity id")
    entity: ContentSnapshot | None = Field(default=None, description="Entity snapshot")
