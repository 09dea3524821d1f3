"""Service configuration loaded from environment variables."""
from typing import Any, TypeVar

from pydantic import Field, TypeAdapter, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
import structlog

from cms_search.constants import Configuration

logger = structlog.get_logger()

T = TypeVar("T")


class SearchSettings(BaseSettings):
    """Search configuration with named key/value overrides.

    Attributes:
        elasticsearch_url: Base URL of the Elasticsearch cluster.
        elasticsearch_timeout: Per-request timeout in seconds.
        index_name: Default index documents are written to.
        additional_data: Free-form overrides looked up by key, e.g.
            ``{"indexBatchSize": "250"}``.
    """

    model_config = SettingsConfigDict(
        env_prefix="CMS_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    elasticsearch_url: str = "http://localhost:9200"
    elasticsearch_timeout: float = 15.0
    index_name: str = "cms-content"
    additional_data: dict[str, Any] = Field(default_factory=dict)

    def get_additional_data(self, key: str, default: T) -> T:
        """Look up an override, coerced to the type of ``default``.

        Args:
            key: Override name.
            default: Value returned when the key is missing or unparseable.

        Returns:
            The coerced override, or ``default``.
        """
        if key not in self.additional_data:
            return default

        raw = self.additional_data[key]
        try:
            return TypeAdapter(type(default)).validate_python(raw)
        except ValidationError:
            logger.warning("settings_override_invalid", key=key, value=raw)
            return default

    @property
    def index_batch_size(self) -> int:
        """Page size used when building an index."""
        return self.get_additional_data(
            Configuration.INDEX_BATCH_SIZE,
            Configuration.DEFAULT_INDEX_BATCH_SIZE,
        )

    @property
    def exclude_from_index_property_alias(self) -> str:
        """Name of the content property that opts an entity out of search."""
        return self.get_additional_data(
            Configuration.EXCLUDE_FROM_INDEX_PROPERTY_ALIAS,
            Configuration.DEFAULT_EXCLUDE_FROM_INDEX_ALIAS,
        )


class Settings(SearchSettings):
    """Full service configuration.

    Attributes:
        host: Bind address for the API server.
        port: Port number for the API server.
        debug: Enable debug logging and API documentation.
        key: API key required on non-health endpoints when set.
        content_seed_path: Optional YAML file of content entities loaded
            into the content store at startup.
        ensure_mapping_on_startup: Register the document mapping on startup.
        build_on_startup: Run a full index build on startup.
        event_queue_size: Maximum size of each subscriber queue.
        event_max_subscribers: Maximum number of concurrent subscribers.
    """

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    key: str = ""

    content_seed_path: str | None = None
    ensure_mapping_on_startup: bool = True
    build_on_startup: bool = False

    event_queue_size: int = 100
    event_max_subscribers: int = 10
