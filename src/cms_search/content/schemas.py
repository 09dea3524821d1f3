"""Pydantic schemas for CMS content entities and indexing outcomes."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

_BOOL_ADAPTER = TypeAdapter(bool)


class IndexingStatus(str, Enum):
    """Audit outcome of the last index or remove attempt."""

    NONE = "none"
    SUCCESS = "success"
    ERROR = "error"


class IndexingOutcome(BaseModel):
    """Result of an index service operation on a single entity.

    Attributes:
        status: Whether the operation succeeded.
        message: Human-readable description for editors.
        error: Exception text when the operation failed on a fault.
    """

    status: IndexingStatus
    message: str
    error: str | None = None

    @classmethod
    def success(cls, message: str) -> "IndexingOutcome":
        return cls(status=IndexingStatus.SUCCESS, message=message)

    @classmethod
    def failure(cls, message: str, error: BaseException | None = None) -> "IndexingOutcome":
        return cls(
            status=IndexingStatus.ERROR,
            message=message,
            error=str(error) if error is not None else None,
        )

    @property
    def succeeded(self) -> bool:
        return self.status is IndexingStatus.SUCCESS


class ContentEntity(BaseModel):
    """A CMS content node as seen by the search layer.

    Attributes:
        id: Numeric CMS identifier.
        name: Node name shown to editors.
        content_type: Document type alias, e.g. ``article``.
        path: Route segment relative to the site root, None if unroutable.
        published: Whether the node currently has a public URL.
        properties: Property bag keyed by property alias.
        indexing_status: Last recorded indexing outcome.
    """

    id: int
    name: str = Field(min_length=1)
    content_type: str
    path: str | None = None
    published: bool = True
    properties: dict[str, Any] = Field(default_factory=dict)
    indexing_status: IndexingOutcome | None = None

    def has_property(self, alias: str) -> bool:
        """Check whether the property bag contains ``alias``."""
        return alias in self.properties

    def get_value(self, alias: str, default: Any = None) -> Any:
        """Return the raw property value or ``default``."""
        return self.properties.get(alias, default)

    def get_bool(self, alias: str) -> bool:
        """Return a property coerced to bool.

        Accepts the usual CMS spellings ("1", "true", "yes", 1). Missing or
        unconvertible values read as False.
        """
        value = self.properties.get(alias)
        if value is None:
            return False
        try:
            return _BOOL_ADAPTER.validate_python(value)
        except ValidationError:
            return False


class ContentSnapshot(BaseModel):
    """Entity payload pushed by the CMS alongside a lifecycle event."""

    id: int
    name: str = Field(min_length=1)
    content_type: str
    path: str | None = None
    published: bool = True
    properties: dict[str, Any] = Field(default_factory=dict)

    def to_entity(self) -> ContentEntity:
        return ContentEntity.model_validate(self.model_dump())


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    detail: str | None = None
