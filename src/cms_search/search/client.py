"""Elasticsearch client construction."""

from typing import Any

import structlog
from elasticsearch import Elasticsearch

from cms_search.config import SearchSettings

logger = structlog.get_logger()


def build_client(settings: SearchSettings) -> Elasticsearch:
    """Create a client for the configured cluster.

    The client connects lazily, so this never touches the network.

    Args:
        settings: Search configuration.

    Returns:
        Elasticsearch client with the configured request timeout.
    """
    client = Elasticsearch(
        settings.elasticsearch_url,
        request_timeout=settings.elasticsearch_timeout,
    )
    logger.info("elasticsearch_client_created", url=settings.elasticsearch_url)
    return client


def response_body(response: Any) -> Any:
    """Return the decoded body of a client response.

    Client calls return ``ObjectApiResponse`` wrappers; plain mappings pass
    through unchanged.
    """
    return getattr(response, "body", response)
