"""Index administration endpoints: build, mapping, count and single entities."""

from typing import Any

import structlog
from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

from cms_search.content.schemas import ContentEntity, IndexingOutcome
from cms_search.content.store import ContentStore
from cms_search.search.index import BuildSummary, IndexService

logger = structlog.get_logger()

router = APIRouter(prefix="/index", tags=["index"])


class MappingUpdate(BaseModel):
    """Outcome of a mapping registration for one document type."""

    document_type: str
    updated: bool


class DocumentCount(BaseModel):
    """Document count for one document type; -1 if the count failed."""

    document_type: str
    count: int


def _services(request: Request, content_type: str | None) -> list[IndexService[Any, Any, Any]]:
    services: dict[str, IndexService[Any, Any, Any]] = request.app.state.index_services
    if content_type is None:
        return list(services.values())
    if content_type not in services:
        raise HTTPException(status_code=404, detail=f"No index service for content type '{content_type}'")
    return [services[content_type]]


def _entity_and_service(
    request: Request, entity_id: int
) -> tuple[ContentEntity, IndexService[Any, Any, Any]]:
    store: ContentStore = request.app.state.content_store
    entity = store.get(entity_id)
    if entity is None:
        raise HTTPException(status_code=404, detail=f"Content entity {entity_id} not found")

    for service in request.app.state.index_services.values():
        if service.should_index(entity):
            return entity, service
    raise HTTPException(
        status_code=404,
        detail=f"No index service handles content type '{entity.content_type}'",
    )


@router.post("/build", response_model=list[BuildSummary], summary="Rebuild the index from all content")
def build_index(
    request: Request,
    content_type: str | None = Query(default=None, description="Only rebuild this content type"),
) -> list[BuildSummary]:
    """Run a full build for each selected index service.

    Args:
        request: FastAPI request (provides access to app state).
        content_type: Restrict the build to one content type.

    Returns:
        One build summary per service.
    """
    index_name: str = request.app.state.settings.index_name
    summaries = [service.build(index_name) for service in _services(request, content_type)]
    logger.info("index_build_requested", index=index_name, services=len(summaries))
    return summaries


@router.post("/mapping", response_model=list[MappingUpdate], summary="Register document mappings")
def update_mappings(request: Request) -> list[MappingUpdate]:
    """Register the mapping of every document type that has none yet."""
    index_name: str = request.app.state.settings.index_name
    return [
        MappingUpdate(
            document_type=service.document_type_name,
            updated=service.update_index_type_mapping(index_name),
        )
        for service in _services(request, None)
    ]


@router.get("/count", response_model=list[DocumentCount], summary="Count indexed documents")
def count_documents(request: Request) -> list[DocumentCount]:
    """Count indexed documents per document type."""
    index_name: str = request.app.state.settings.index_name
    return [
        DocumentCount(
            document_type=service.document_type_name,
            count=service.count_of_documents_for_index(index_name),
        )
        for service in _services(request, None)
    ]


@router.post("/entities/{entity_id}", response_model=IndexingOutcome, summary="Index one entity")
def index_entity(request: Request, entity_id: int) -> IndexingOutcome:
    """Index a single content entity, or remove it when excluded.

    Raises:
        HTTPException: 404 if the entity or a matching service is missing.
    """
    entity, service = _entity_and_service(request, entity_id)
    return service.index(entity, request.app.state.settings.index_name)


@router.delete("/entities/{entity_id}", response_model=IndexingOutcome, summary="Remove one entity")
def remove_entity(request: Request, entity_id: int) -> IndexingOutcome:
    """Remove a single content entity's document from the index.

    Raises:
        HTTPException: 404 if the entity or a matching service is missing.
    """
    entity, service = _entity_and_service(request, entity_id)
    return service.remove(entity, request.app.state.settings.index_name)
