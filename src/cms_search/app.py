"""FastAPI application factory and lifespan management."""

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import structlog
from elasticsearch import Elasticsearch
from fastapi import FastAPI

from cms_search.config import Settings
from cms_search.content import ContentStore, StoreUrlProvider, load_content_file
from cms_search.events import EventBus
from cms_search.features.articles import (
    ARTICLE_CONTENT_TYPE,
    ArticleIndexService,
    ArticleSearchQuery,
)
from cms_search.middleware.auth import APIKeyMiddleware
from cms_search.middleware.logging import RequestLoggingMiddleware
from cms_search.routes import events, health, index, search
from cms_search.search import IndexService, build_client, run_index_subscriber

logger = structlog.get_logger()


def load_store(settings: Settings) -> ContentStore:
    """Create the content store, seeded from the configured YAML file if any."""
    if not settings.content_seed_path:
        return ContentStore()
    return ContentStore(load_content_file(Path(settings.content_seed_path)))


def create_index_services(
    client: Elasticsearch,
    store: ContentStore,
    settings: Settings,
) -> dict[str, IndexService[Any, Any, Any]]:
    """Create one index service per indexed content type.

    Args:
        client: Elasticsearch client.
        store: Content store used as service context and URL source.
        settings: Search settings.

    Returns:
        Services keyed by content type alias.
    """
    url_provider = StoreUrlProvider(store)
    return {
        ARTICLE_CONTENT_TYPE: ArticleIndexService(client, url_provider, settings, store),
    }


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle events.

    Loads seed content, wires the index services, optionally registers
    mappings and runs a build, and starts the index subscriber. Closes the
    Elasticsearch client on shutdown if it was created here.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    logger.info("api_startup", host=settings.host, port=settings.port, index=settings.index_name)

    store = load_store(settings)

    owns_client = app.state.es_client is None
    client: Elasticsearch = app.state.es_client or build_client(settings)

    services = create_index_services(client, store, settings)
    event_bus = EventBus(
        queue_size=settings.event_queue_size,
        max_subscribers=settings.event_max_subscribers,
    )

    app.state.es_client = client
    app.state.content_store = store
    app.state.index_services = services
    app.state.article_query = ArticleSearchQuery(client)
    app.state.event_bus = event_bus

    if settings.ensure_mapping_on_startup:
        for service in services.values():
            await asyncio.to_thread(service.update_index_type_mapping, settings.index_name)

    if settings.build_on_startup:
        for service in services.values():
            summary = await asyncio.to_thread(service.build, settings.index_name)
            logger.info("startup_build_finished", **summary.model_dump())

    subscriber_task = asyncio.create_task(
        run_index_subscriber(event_bus, store, list(services.values()), settings.index_name)
    )

    try:
        yield
    finally:
        subscriber_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await subscriber_task

        if owns_client:
            client.close()
            app.state.es_client = None
        logger.info("api_shutdown", dropped_events=event_bus.dropped_events)


def create_app(settings: Settings | None = None, es_client: Elasticsearch | None = None) -> FastAPI:
    """Factory function to create configured FastAPI application.

    Args:
        settings: Configuration instance. Creates default if None.
        es_client: Client to use instead of one built from settings.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="CMS Search",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/api/v1/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/api/v1/openapi.json" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.es_client = es_client

    app.add_middleware(RequestLoggingMiddleware)
    if settings.key:
        app.add_middleware(APIKeyMiddleware, api_key=settings.key)

    app.include_router(health.router, prefix="/api/v1")
    app.include_router(index.router, prefix="/api/v1")
    app.include_router(events.router, prefix="/api/v1")
    app.include_router(search.router, prefix="/api/v1")

    return app
