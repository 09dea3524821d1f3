"""Events subsystem carrying CMS lifecycle changes to the indexer."""
from cms_search.events.bus import EventBus
from cms_search.events.types import DomainEvent, EventType

__all__ = [
    "DomainEvent",
    "EventBus",
    "EventType",
]
