"""Well-known configuration keys and content property aliases."""


class Configuration:
    """Keys understood by ``SearchSettings.get_additional_data``."""

    INDEX_BATCH_SIZE = "indexBatchSize"
    EXCLUDE_FROM_INDEX_PROPERTY_ALIAS = "excludeFromIndexPropertyAlias"

    DEFAULT_INDEX_BATCH_SIZE = 500
    DEFAULT_EXCLUDE_FROM_INDEX_ALIAS = "umbElasticsearchExcludeFromIndex"


# Placeholder URL the CMS hands out for content without a public route
UNROUTABLE_URL = "#"

# Returned by count queries that the cluster rejected
INVALID_COUNT = -1
