"""Settings tests."""

import pytest

from cms_search.config import SearchSettings, Settings


def test_defaults() -> None:
    settings = SearchSettings(_env_file=None)

    assert settings.index_batch_size == 500
    assert settings.exclude_from_index_property_alias == "umbElasticsearchExcludeFromIndex"


def test_additional_data_is_coerced_to_default_type() -> None:
    settings = SearchSettings(_env_file=None, additional_data={"indexBatchSize": "250"})

    assert settings.index_batch_size == 250


def test_unparseable_override_falls_back_to_default() -> None:
    settings = SearchSettings(_env_file=None, additional_data={"indexBatchSize": "lots"})

    assert settings.get_additional_data("indexBatchSize", 500) == 500


def test_missing_key_returns_default() -> None:
    assert SearchSettings(_env_file=None).get_additional_data("unknown", "fallback") == "fallback"


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CMS_SEARCH_INDEX_NAME", "site-search")
    monkeypatch.setenv("CMS_SEARCH_ADDITIONAL_DATA", '{"excludeFromIndexPropertyAlias": "hide"}')

    settings = Settings(_env_file=None)

    assert settings.index_name == "site-search"
    assert settings.exclude_from_index_property_alias == "hide"
