import pytest
from pydantic import ValidationError

from dic import config
from dic.domain.models import (
    ErrorKind,
    FailurePolicy,
    ImageSize,
    ImageType,
    SearchOptions,
    SearchResult,
)
from dic.errors import CacheError, DicError, InputStreamError, LookupFailedError, StreamError


def test_get_settings_defaults():
    settings = config.get_settings()
    assert settings.concurrency == 10
    assert settings.task_timeout == 5.0
    assert settings.key_column == 2
    assert settings.delimiter == ","
    assert settings.failure_policy is FailurePolicy.SENTINEL
    assert settings.sentinel == ""
    assert settings.redis_addr == ""
    assert settings.redis_db == 1
    assert settings.local_cache is False
    assert settings.local_cache_ttl == 300.0
    assert settings.google_endpoint == config.GOOGLE_SEARCH_ENDPOINT


def test_get_settings_reads_environment(monkeypatch):
    monkeypatch.setenv("GOOGLE_SPEECH_KEY", "secret")
    monkeypatch.setenv("DIC_CONCURRENCY", "4")
    monkeypatch.setenv("DIC_FAILURE_POLICY", "skip")
    monkeypatch.setenv("DIC_REDIS_ADDR", "cache:6380")
    config.get_settings.cache_clear()

    settings = config.get_settings()

    assert settings.google_api_key == "secret"
    assert settings.concurrency == 4
    assert settings.failure_policy is FailurePolicy.SKIP
    assert settings.redis_addr == "cache:6380"


def test_get_settings_is_cached():
    assert config.get_settings() is config.get_settings()


def test_settings_reject_invalid_values(monkeypatch):
    monkeypatch.setenv("DIC_CONCURRENCY", "0")
    with pytest.raises(ValidationError):
        config.Settings()
    monkeypatch.delenv("DIC_CONCURRENCY")
    monkeypatch.setenv("DIC_DELIMITER", ";;")
    with pytest.raises(ValidationError):
        config.Settings()


def test_search_options_only_sends_defined_filters():
    assert SearchOptions().query_params() == {}
    options = SearchOptions(image_type=ImageType.CLIPART, image_size=ImageSize.XXLARGE)
    assert options.query_params() == {"imgType": "clipart", "imgSize": "xxlarge"}
    assert SearchOptions(image_size="icon").query_params() == {"imgSize": "icon"}


def test_search_options_reject_unknown_filters():
    with pytest.raises(ValidationError):
        SearchOptions(image_type="cartoon")


def test_search_result_accepts_api_aliases():
    result = SearchResult.model_validate(
        {"link": "https://x/y.png", "displayLink": "x", "thumbnailLink": "https://x/t.png"}
    )
    assert result.display_link == "x"
    assert result.thumbnail_link == "https://x/t.png"


def test_error_hierarchy():
    assert issubclass(InputStreamError, StreamError)
    assert issubclass(CacheError, DicError)
    err = LookupFailedError("cat", "quota exceeded")
    assert err.key == "cat"
    assert "quota exceeded" in str(err)
    assert ErrorKind("no_results") is ErrorKind.NO_RESULTS
