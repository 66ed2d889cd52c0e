"""
Per-record lookup task and its cache-aside execution.

A `LookupTask` is created by the scheduler for every input record and is
completed exactly once, by `run_task`, before the sequencer reads it:

1. cache hit: the cached link is appended;
2. cache miss: the lookup client is queried, the first result's link is
   written back to the cache and appended;
3. anything else (malformed record, lookup failure, zero results, deadline
   expiry) is recorded as an `ErrorKind` on the task.

Cache failures are logged and degrade to a miss; they never fail the task.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import NamedTuple, Optional

from dic.domain.models import ErrorKind, Record, SearchOptions
from dic.errors import CacheError, LookupFailedError
from dic.infrastructure.cache import ResultCache
from dic.lookup.abstract import LookupClient
from dic.utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class LookupTask:
    """
    One input record and the outcome of resolving its key.

    `width` is the number of fields read from input; anything past it was
    appended by the task.
    """

    index: int
    record: Record
    key_column: int
    key: Optional[str] = field(default=None, init=False)
    width: int = field(default=0, init=False)
    result: Optional[str] = None
    error: Optional[ErrorKind] = None
    detail: Optional[str] = None
    cached: bool = False
    _done: asyncio.Event = field(default_factory=asyncio.Event, init=False, repr=False)

    def __post_init__(self) -> None:
        self.width = len(self.record)
        if 0 <= self.key_column < self.width:
            self.key = self.record[self.key_column]

    @property
    def done(self) -> bool:
        return self._done.is_set()

    async def wait(self) -> None:
        await self._done.wait()

    def succeed(self, value: str, cached: bool = False) -> None:
        self._ensure_pending()
        self.result = value
        self.cached = cached
        self.record.append(value)
        self._done.set()

    def fail(self, kind: ErrorKind, detail: str) -> None:
        self._ensure_pending()
        self.error = kind
        self.detail = detail
        if kind is ErrorKind.NO_RESULTS:
            self.record.append("")
        self._done.set()

    def _ensure_pending(self) -> None:
        if self._done.is_set():
            raise RuntimeError(f"task {self.index} already completed")


class _Outcome(NamedTuple):
    result: Optional[str] = None
    error: Optional[ErrorKind] = None
    detail: Optional[str] = None
    cached: bool = False


def cache_key(namespace: str, key: str) -> str:
    """Namespace a lookup key so several tools can share one cache."""
    return f"{namespace}:{key}" if namespace else key


async def _cache_get(cache: ResultCache, key: str) -> Optional[str]:
    try:
        return await cache.get(key)
    except CacheError as exc:
        log.warning("unable to read from cache: %s", exc, extra={"cache_key": key})
        return None


async def _cache_set(cache: ResultCache, key: str, value: str) -> None:
    try:
        await cache.set(key, value)
    except CacheError as exc:
        log.warning("unable to set cache value: %s", exc, extra={"cache_key": key})


async def _resolve(
    key: str,
    lookup: LookupClient,
    cache: Optional[ResultCache],
    options: SearchOptions,
    namespace: str,
) -> _Outcome:
    namespaced = cache_key(namespace, key)
    if cache is not None:
        link = await _cache_get(cache, namespaced)
        if link is not None:
            return _Outcome(result=link, cached=True)

    try:
        items = await lookup.search(key, options)
    except LookupFailedError as exc:
        return _Outcome(error=ErrorKind.LOOKUP_FAILED, detail=str(exc))
    except Exception as exc:  # noqa: BLE001
        return _Outcome(error=ErrorKind.LOOKUP_FAILED, detail=f"{type(exc).__name__}: {exc}")

    if not items:
        return _Outcome(error=ErrorKind.NO_RESULTS, detail="no results")

    link = items[0].link
    if cache is not None:
        await _cache_set(cache, namespaced, link)
    return _Outcome(result=link)


async def run_task(
    task: LookupTask,
    lookup: LookupClient,
    cache: Optional[ResultCache] = None,
    options: Optional[SearchOptions] = None,
    timeout: float = 5.0,
    namespace: str = "",
) -> None:
    """
    Resolve `task` under a deadline of `timeout` seconds and complete it.

    The deadline covers the cache read, the lookup, and the cache write.
    """
    if task.key is None:
        task.fail(
            ErrorKind.MALFORMED_RECORD,
            f"tried to access column {task.key_column} out of {task.width}",
        )
        return

    try:
        outcome = await asyncio.wait_for(
            _resolve(task.key, lookup, cache, options or SearchOptions(), namespace),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        task.fail(ErrorKind.TIMEOUT, f"no answer within {timeout:g}s")
        return

    if outcome.error is not None:
        task.fail(outcome.error, outcome.detail or outcome.error.value)
    else:
        task.succeed(outcome.result, cached=outcome.cached)


__all__ = ["LookupTask", "cache_key", "run_task"]
