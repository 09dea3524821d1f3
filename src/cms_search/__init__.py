"""Synchronize CMS content into Elasticsearch and query it with typed helpers."""

__version__ = "0.1.0"
