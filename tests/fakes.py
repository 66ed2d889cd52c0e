"""Test doubles and stream helpers shared by unit and integration tests."""

from __future__ import annotations

import asyncio
import io
from typing import Dict, Iterable, List, Optional

from dic.domain.models import SearchOptions, SearchResult
from dic.errors import LookupFailedError
from dic.infrastructure.streams import RecordReader, RecordWriter


class FakeLookup:
    """
    Scriptable LookupClient.

    Keys in `links` resolve to those links, keys in `empty` resolve to no
    results, keys in `failures` raise LookupFailedError, keys in `hang` never
    return. Any other key resolves to `https://img.test/<key>.png`.
    """

    name = "fake"

    def __init__(
        self,
        links: Optional[Dict[str, List[str]]] = None,
        delays: Optional[Dict[str, float]] = None,
        default_delay: float = 0.0,
        failures: Iterable[str] = (),
        empty: Iterable[str] = (),
        hang: Iterable[str] = (),
    ) -> None:
        self.links = links or {}
        self.delays = delays or {}
        self.default_delay = default_delay
        self.failures = set(failures)
        self.empty = set(empty)
        self.hang = set(hang)
        self.calls: List[str] = []
        self.completed: List[str] = []
        self.options: List[SearchOptions] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def search(self, key: str, options: SearchOptions) -> List[SearchResult]:
        self.calls.append(key)
        self.options.append(options)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if key in self.hang:
                await asyncio.Event().wait()
            delay = self.delays.get(key, self.default_delay)
            if delay:
                await asyncio.sleep(delay)
            if key in self.failures:
                raise LookupFailedError(key, "service unavailable")
            self.completed.append(key)
            if key in self.empty:
                return []
            links = self.links.get(key, [f"https://img.test/{key}.png"])
            return [SearchResult(link=link) for link in links]
        finally:
            self.in_flight -= 1

    async def __aenter__(self) -> "FakeLookup":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.closed = True


class FlakyStream(io.StringIO):
    """Text stream whose writes start failing after `fail_after` writes."""

    def __init__(self, fail_after: int = 0) -> None:
        super().__init__()
        self.fail_after = fail_after
        self.writes = 0

    def write(self, s: str) -> int:
        if self.writes >= self.fail_after:
            raise OSError("broken pipe")
        self.writes += 1
        return super().write(s)


def make_reader(lines: Iterable[str], delimiter: str = ",") -> RecordReader:
    return RecordReader(io.StringIO("".join(f"{line}\n" for line in lines)), delimiter=delimiter)


def make_writer() -> tuple[RecordWriter, io.StringIO]:
    stream = io.StringIO()
    return RecordWriter(stream), stream


def output_lines(stream: io.StringIO) -> List[str]:
    return stream.getvalue().splitlines()
