"""
Infrastructure package for dic.

Centralizes I/O concerns: the cache backends and the delimited record
streams. Keep this layer focused on I/O and resource management, decoupled
from the scheduling logic in `dic.pipeline`.
"""

from dic.infrastructure.cache import (
    MemoryResultCache,
    RedisResultCache,
    ResultCache,
    build_cache,
    close_cache,
)
from dic.infrastructure.streams import RecordReader, RecordWriter, open_input

__all__ = [
    "MemoryResultCache",
    "RedisResultCache",
    "ResultCache",
    "build_cache",
    "close_cache",
    "RecordReader",
    "RecordWriter",
    "open_input",
]
