"""
dic - resolve words to image links through a slow, rate-limited search API.

Reads CSV records, looks up one column of each through Google Custom Search
(image mode) and appends the first image link, emitting records in input
order while up to N lookups run concurrently:

- bounded fan-out with a semaphore
- order-preserving sequencer fed by a FIFO queue
- cache-aside lookups against Redis or an in-process TTL cache
- per-record deadlines and graceful drain on SIGINT/SIGTERM
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from dic.config import Settings, get_settings
from dic.domain.models import ErrorKind, FailurePolicy, SearchOptions, SearchResult
from dic.infrastructure.cache import MemoryResultCache, RedisResultCache, ResultCache
from dic.lookup.abstract import AbstractLookupClient, LookupClient
from dic.pipeline.scheduler import RunSummary, Scheduler
from dic.pipeline.task import LookupTask, run_task
from dic.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "ErrorKind",
    "FailurePolicy",
    "SearchOptions",
    "SearchResult",
    # Collaborators
    "LookupClient",
    "AbstractLookupClient",
    "ResultCache",
    "MemoryResultCache",
    "RedisResultCache",
    # Pipeline
    "RunSummary",
    "Scheduler",
    "LookupTask",
    "run_task",
    # Logging
    "configure_logging",
    "get_logger",
]
