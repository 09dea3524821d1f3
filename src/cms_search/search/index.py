"""Index service keeping CMS content in sync with an Elasticsearch index."""

import itertools
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator
from typing import Any, Generic, TypeVar

import structlog
from elasticsearch import ApiError, Elasticsearch, NotFoundError, TransportError, helpers
from pydantic import BaseModel

from cms_search.config import SearchSettings
from cms_search.constants import INVALID_COUNT, UNROUTABLE_URL
from cms_search.content.schemas import ContentEntity, IndexingOutcome
from cms_search.content.store import ContentStore
from cms_search.content.urls import UrlProvider
from cms_search.search.client import response_body
from cms_search.search.documents import SearchDocument, document_mapping, document_properties

logger = structlog.get_logger()

DocumentT = TypeVar("DocumentT", bound=SearchDocument)
EntityT = TypeVar("EntityT", bound=ContentEntity)
SettingsT = TypeVar("SettingsT", bound=SearchSettings)

StatusRecorder = Callable[[ContentEntity, IndexingOutcome], None]
RetrieveFunc = Callable[[ContentStore], Iterable[EntityT]]


def record_on_entity(entity: ContentEntity, outcome: IndexingOutcome) -> None:
    """Default status recorder: keep the outcome on the entity itself."""
    entity.indexing_status = outcome


def paginate(items: Iterable[EntityT], page_size: int) -> Iterator[list[EntityT]]:
    """Split an iterable into lists of at most ``page_size`` items.

    Args:
        items: Items to page through; consumed lazily.
        page_size: Maximum page length, must be positive.

    Yields:
        Consecutive non-empty pages.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")
    iterator = iter(items)
    while page := list(itertools.islice(iterator, page_size)):
        yield page


def has_url(url: str | None) -> bool:
    """True when a resolved URL points at a routable page."""
    return bool(url and url.strip()) and url.strip().casefold() != UNROUTABLE_URL


class BuildSummary(BaseModel):
    """Counters describing a full index build.

    Attributes:
        index_name: Target index.
        document_type: Document type that was built.
        pages: Number of pages processed.
        indexed: Documents the cluster accepted.
        removed: Excluded entities no longer in the index, including ones
            it never held.
        skipped: Includable entities that produced no document.
        failed: Documents rejected by the cluster or lost to a page fault.
        error: Set when the build stopped early.
    """

    index_name: str
    document_type: str
    pages: int = 0
    indexed: int = 0
    removed: int = 0
    skipped: int = 0
    failed: int = 0
    error: str | None = None


class IndexService(ABC, Generic[DocumentT, EntityT, SettingsT]):
    """Synchronizes one content type into a named Elasticsearch index.

    Subclasses set ``document_class`` and implement ``retrieve_index_items``,
    ``create`` and ``should_index``. Document fields beyond ``id`` and ``url``
    need defaults, since documents are created empty and then populated.

    Public operations never raise: failures are logged and reported as an
    ``IndexingOutcome`` which is also handed to the status recorder.
    """

    document_class: type[DocumentT]

    def __init__(
        self,
        client: Elasticsearch,
        url_provider: UrlProvider,
        settings: SettingsT,
        service_context: ContentStore,
        status_recorder: StatusRecorder = record_on_entity,
    ) -> None:
        """Initialize index service.

        Args:
            client: Elasticsearch client all calls are delegated to.
            url_provider: Resolves public URLs for entities.
            settings: Search settings with batch size and exclusion alias.
            service_context: Content source passed to retrieval functions.
            status_recorder: Persists outcomes; defaults to the entity field.
        """
        self._client = client
        self._url_provider = url_provider
        self._service_context = service_context
        self._status_recorder = status_recorder
        self.search_settings = settings

    @property
    def entity_type_name(self) -> str:
        return self.document_class.__name__

    @property
    def document_type_name(self) -> str:
        return self.document_class.type_name

    @property
    def index_batch_size(self) -> int:
        return self.search_settings.index_batch_size

    # Extension points

    @abstractmethod
    def retrieve_index_items(self, service_context: ContentStore) -> Iterable[EntityT]:
        """Enumerate every entity that belongs in a full build."""

    @abstractmethod
    def create(self, document: DocumentT, entity: EntityT) -> None:
        """Populate type-specific document fields from the entity."""

    @abstractmethod
    def should_index(self, entity: EntityT) -> bool:
        """Tell callers whether ``entity`` is handled by this service."""

    def url_for(self, entity: EntityT) -> str | None:
        return self._url_provider.get_url(entity.id)

    def id_for(self, entity: EntityT) -> str:
        return str(entity.id)

    # Single entity operations

    def index(self, entity: EntityT, index_name: str) -> IndexingOutcome:
        """Upsert the entity's document, or remove it when excluded.

        Args:
            entity: Content entity to index.
            index_name: Target index.

        Returns:
            The recorded outcome.
        """
        if self.is_excluded_from_index(entity):
            return self.remove(entity, index_name)

        unable = f"Unable to create document for indexing from '{entity.name}' with Id: {entity.id}"
        try:
            document = self._create_core(entity)
            if document is not None:
                self.index_core(document, index_name)
                logger.info(
                    "document_indexed",
                    entity_id=entity.id,
                    document_type=self.document_type_name,
                    index=index_name,
                )
                outcome = IndexingOutcome.success(f"Indexed '{entity.name}' into '{index_name}'")
            else:
                logger.warning(
                    "document_not_created",
                    entity_id=entity.id,
                    entity_name=entity.name,
                    index=index_name,
                )
                outcome = IndexingOutcome.failure(unable)
        except Exception as e:
            logger.exception(
                "document_index_failed",
                entity_id=entity.id,
                entity_name=entity.name,
                index=index_name,
            )
            outcome = IndexingOutcome.failure(unable, e)

        return self._record(entity, outcome)

    def index_core(self, document: DocumentT, index_name: str) -> None:
        self._client.index(index=index_name, id=document.id, document=document.to_source())

    def remove(self, entity: EntityT, index_name: str) -> IndexingOutcome:
        """Delete the entity's document from the index if it is present.

        Args:
            entity: Content entity to remove.
            index_name: Target index.

        Returns:
            The recorded outcome.
        """
        try:
            deleted = self.remove_core(entity, index_name)
            logger.info(
                "document_removed",
                entity_id=entity.id,
                index=index_name,
                existed=deleted,
            )
            outcome = IndexingOutcome.success(f"Removed '{entity.name}' from '{index_name}'")
        except Exception as e:
            logger.exception("document_remove_failed", entity_id=entity.id, index=index_name)
            outcome = IndexingOutcome.failure(
                f"Unable to remove '{entity.name}' due to an exception", e
            )

        return self._record(entity, outcome)

    def remove_by_id(self, document_id: str, index_name: str) -> IndexingOutcome:
        """Delete a document when only its id is known.

        Used for content the service can no longer resolve to an entity, so
        no status is recorded.

        Args:
            document_id: Id of the document to delete.
            index_name: Target index.

        Returns:
            The outcome of the delete.
        """
        try:
            deleted = self.delete_document(document_id, index_name)
            logger.info("document_removed", document_id=document_id, index=index_name, existed=deleted)
            return IndexingOutcome.success(f"Removed document {document_id} from '{index_name}'")
        except Exception as e:
            logger.exception("document_remove_failed", document_id=document_id, index=index_name)
            return IndexingOutcome.failure(
                f"Unable to remove document {document_id} due to an exception", e
            )

    def remove_core(self, entity: EntityT, index_name: str) -> bool:
        return self.delete_document(self.id_for(entity), index_name)

    def delete_document(self, document_id: str, index_name: str) -> bool:
        if not self._client.exists(index=index_name, id=document_id):
            return False
        self._client.delete(index=index_name, id=document_id)
        return True

    def is_excluded_from_index(self, entity: EntityT) -> bool:
        """True if the entity opts out through the exclusion property."""
        alias = self.search_settings.exclude_from_index_property_alias
        return entity.has_property(alias) and entity.get_bool(alias)

    # Whole index operations

    def build(
        self,
        index_name: str,
        custom_retrieve: RetrieveFunc[EntityT] | None = None,
    ) -> BuildSummary:
        """Re-sync every retrievable entity into the index.

        Pages through the candidates, bulk-deleting excluded entities and
        bulk-upserting the rest, then refreshes the index once. The build
        does not diff against what the index already holds.

        Args:
            index_name: Target index.
            custom_retrieve: Replaces ``retrieve_index_items`` when given.

        Returns:
            Counters for the run.
        """
        page_size = self.index_batch_size
        summary = BuildSummary(index_name=index_name, document_type=self.document_type_name)
        logger.info(
            "index_build_started",
            document_type=self.document_type_name,
            index=index_name,
            page_size=page_size,
            custom_retrieval=custom_retrieve is not None,
        )

        try:
            if custom_retrieve is not None:
                items = custom_retrieve(self._service_context)
            else:
                items = self.retrieve_index_items(self._service_context)

            for page in paginate(items, page_size):
                summary.pages += 1
                self._build_page(page, index_name, summary)

            self._client.indices.refresh(index=index_name)
        except Exception as e:
            logger.exception("index_build_failed", document_type=self.document_type_name, index=index_name)
            summary.error = str(e)
            return summary

        logger.info("index_build_finished", **summary.model_dump(exclude={"error"}))
        return summary

    def _build_page(self, page: list[EntityT], index_name: str, summary: BuildSummary) -> None:
        excluded: list[EntityT] = []
        included: list[EntityT] = []
        for entity in page:
            (excluded if self.is_excluded_from_index(entity) else included).append(entity)

        documents: list[DocumentT] = []
        try:
            summary.removed += self.remove_from_index(
                [self.id_for(entity) for entity in excluded], index_name
            )
            for entity in included:
                document = self._create_core(entity)
                if document is not None:
                    documents.append(document)
            summary.skipped += len(included) - len(documents)

            indexed = self.add_or_update_index(documents, index_name)
            summary.indexed += indexed
            summary.failed += len(documents) - indexed
        except (ApiError, TransportError, helpers.BulkIndexError):
            logger.exception("index_build_page_failed", page=summary.pages, index=index_name)
            summary.failed += len(documents)

    def remove_from_index(self, ids: list[str], index_name: str) -> int:
        """Bulk-delete documents by id.

        Documents the index never held come back as 404 items; they count as
        removed rather than as failures.

        Returns:
            The number of ids no longer present in the index.
        """
        if not ids:
            return 0

        actions = ({"_op_type": "delete", "_index": index_name, "_id": doc_id} for doc_id in ids)
        succeeded, errors = helpers.bulk(self._client, actions, raise_on_error=False, refresh=True)
        missing = [item for item in errors if item.get("delete", {}).get("status") == 404]
        failed = len(errors) - len(missing)
        if missing:
            logger.debug("bulk_delete_missing", index=index_name, count=len(missing))
        if failed:
            logger.warning("bulk_delete_errors", index=index_name, failed=failed)
        return succeeded + len(missing)

    def add_or_update_index(self, documents: list[DocumentT], index_name: str) -> int:
        """Bulk-upsert documents. Returns the number the cluster accepted."""
        if not documents:
            return 0

        logger.info(
            "bulk_index_started",
            count=len(documents),
            document_type=self.document_type_name,
            index=index_name,
        )
        actions = (
            {
                "_op_type": "index",
                "_index": index_name,
                "_id": document.id,
                "_source": document.to_source(),
            }
            for document in documents
        )
        succeeded, errors = helpers.bulk(self._client, actions, raise_on_error=False)
        if errors:
            logger.warning("bulk_index_errors", index=index_name, failed=len(errors))

        logger.info(
            "bulk_index_finished",
            count=succeeded,
            document_type=self.document_type_name,
            index=index_name,
        )
        return succeeded

    def update_index_type_mapping(self, index_name: str) -> bool:
        """Register the document mapping unless the index already holds its fields.

        Returns:
            True if a mapping was written, False if one existed or the
            cluster rejected the request.
        """
        try:
            if self._has_mapping(index_name):
                return False
            self.update_index_type_mapping_core(index_name)
        except (ApiError, TransportError):
            logger.exception("index_mapping_update_failed", document_type=self.document_type_name, index=index_name)
            return False

        logger.info(
            "index_mapping_updated",
            document_class=self.entity_type_name,
            document_type=self.document_type_name,
            index=index_name,
        )
        return True

    def update_index_type_mapping_core(self, index_name: str) -> None:
        mapping = document_mapping(self.document_class)
        if self._client.indices.exists(index=index_name):
            self._client.indices.put_mapping(index=index_name, properties=mapping["properties"])
        else:
            self._client.indices.create(index=index_name, mappings=mapping)

    def _has_mapping(self, index_name: str) -> bool:
        try:
            response = self._client.indices.get_mapping(index=index_name)
        except NotFoundError:
            return False

        # Document types share the index, so only this type's own fields count
        required = set(document_properties(self.document_class)) - set(SearchDocument.model_fields)
        if not required:
            required = set(SearchDocument.model_fields)

        body: dict[str, Any] = response_body(response)
        return any(
            required <= set(entry.get("mappings", {}).get("properties", {}))
            for entry in body.values()
        )

    def count_of_documents_for_index(self, index_name: str) -> int:
        """Count this service's documents in the index.

        Returns:
            The document count, or -1 when the count query failed.
        """
        try:
            response = self._client.count(
                index=index_name,
                query={"term": {"document_type": self.document_type_name}},
            )
            return int(response_body(response)["count"])
        except (ApiError, TransportError, KeyError, TypeError, ValueError) as e:
            logger.warning("document_count_failed", index=index_name, error=str(e))
            return INVALID_COUNT

    # Internals

    def _create_core(self, entity: EntityT) -> DocumentT | None:
        try:
            url = self.url_for(entity)
            if not has_url(url):
                logger.debug("document_skipped_unroutable", entity_id=entity.id, url=url)
                return None

            document = self.document_class(id=self.id_for(entity), url=url)
            self.create(document, entity)
            return document
        except Exception as e:
            logger.exception("document_create_failed", entity_id=entity.id, entity_name=entity.name)
            self._record(
                entity,
                IndexingOutcome.failure(f"Unable to create {entity.name} due to an exception", e),
            )
            return None

    def _record(self, entity: EntityT, outcome: IndexingOutcome) -> IndexingOutcome:
        try:
            self._status_recorder(entity, outcome)
        except Exception:
            logger.exception("indexing_status_write_failed", entity_id=entity.id)
        return outcome
