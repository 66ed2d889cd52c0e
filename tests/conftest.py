"""
Pytest configuration for dic.

Provides fixtures for:
- an instrumented lookup client (see `fakes.FakeLookup`)
- isolation of settings from the developer's environment
"""

from __future__ import annotations

from typing import Iterable

import pytest

from dic.config import get_settings
from fakes import FakeLookup

_ENV_VARS = (
    "GOOGLE_SPEECH_KEY",
    "GOOGLE_SPEECH_CX",
    "GOOGLE_SEARCH_ENDPOINT",
    "DIC_CONCURRENCY",
    "DIC_TASK_TIMEOUT",
    "DIC_KEY_COLUMN",
    "DIC_DELIMITER",
    "DIC_FAILURE_POLICY",
    "DIC_SENTINEL",
    "DIC_REDIS_ADDR",
    "DIC_REDIS_DB",
    "DIC_LOCAL_CACHE",
    "DIC_LOCAL_CACHE_TTL",
    "DIC_CACHE_NAMESPACE",
    "LOG_LEVEL",
    "LOG_JSON",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterable[None]:
    """
    Strip dic-related env vars and any `.env` so defaults are deterministic.
    """
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_lookup() -> FakeLookup:
    return FakeLookup()
