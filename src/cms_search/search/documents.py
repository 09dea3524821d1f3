"""Search document base model and mapping derivation from field annotations."""

import types
import typing
from datetime import date, datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Python annotation -> Elasticsearch field type, used when a field does not
# name its type explicitly.
_INFERRED_TYPES: dict[type, str] = {
    str: "text",
    bool: "boolean",
    int: "long",
    float: "double",
    datetime: "date",
    date: "date",
}

_ES_EXTRA_KEY = "es"


def indexed_field(es_type: str, *, default: Any = None, **options: Any) -> Any:
    """Declare a document field with an explicit Elasticsearch mapping.

    Args:
        es_type: Elasticsearch field type, e.g. ``keyword`` or ``text``.
        default: Pydantic default for the field.
        **options: Extra mapping parameters such as ``analyzer`` or ``fields``.

    Returns:
        A pydantic ``FieldInfo`` carrying the mapping in its schema extras.
    """
    return Field(default=default, json_schema_extra={_ES_EXTRA_KEY: {"type": es_type, **options}})


class SearchDocument(BaseModel):
    """Base class for documents stored in the search index.

    Subclasses set ``type_name`` to the document type stored alongside each
    document and add their own fields.

    Attributes:
        id: Source entity id in invariant string form.
        url: Public URL of the source entity.
        document_type: Discriminator shared by all documents of a subclass.
    """

    model_config = ConfigDict(extra="ignore")

    type_name: ClassVar[str] = "document"

    id: str = indexed_field("keyword", default="")
    url: str = indexed_field("keyword", default="")
    document_type: str = indexed_field("keyword", default="")

    @model_validator(mode="after")
    def _default_document_type(self) -> "SearchDocument":
        if not self.document_type:
            self.document_type = self.type_name
        return self

    def to_source(self) -> dict[str, Any]:
        """Return the JSON body sent to the index."""
        return self.model_dump(mode="json", exclude_none=True)


def _unwrap_optional(annotation: Any) -> Any:
    origin = typing.get_origin(annotation)
    if origin in (typing.Union, types.UnionType):
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _infer_type(annotation: Any) -> dict[str, Any] | None:
    annotation = _unwrap_optional(annotation)
    origin = typing.get_origin(annotation)
    if origin in (list, tuple, set, frozenset):
        args = typing.get_args(annotation)
        # Elasticsearch has no array type; a list maps like its items
        return _infer_type(args[0]) if args else None
    if origin is not None:
        return None
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return {"type": "object", "properties": document_properties(annotation)}
    for python_type, es_type in _INFERRED_TYPES.items():
        if annotation is python_type:
            return {"type": es_type}
    return None


def document_properties(document_type: type[BaseModel]) -> dict[str, Any]:
    """Derive Elasticsearch ``properties`` from a model's fields.

    Explicit ``indexed_field`` mappings win; otherwise the type is inferred
    from the annotation. Fields whose type cannot be inferred are left to
    dynamic mapping.

    Args:
        document_type: Document model class.

    Returns:
        Mapping properties keyed by field name.
    """
    properties: dict[str, Any] = {}
    for name, field in document_type.model_fields.items():
        extra = field.json_schema_extra
        if isinstance(extra, dict) and _ES_EXTRA_KEY in extra:
            properties[name] = dict(extra[_ES_EXTRA_KEY])  # type: ignore[arg-type]
            continue
        inferred = _infer_type(field.annotation)
        if inferred is not None:
            properties[name] = inferred
    return properties


def document_mapping(document_type: type[SearchDocument]) -> dict[str, Any]:
    """Build the full mapping body for a document class."""
    return {"properties": document_properties(document_type)}
