"""
Bounded fan-out scheduler for the lookup pipeline.

Reads records one at a time, hands each to the sequencer through a FIFO
queue **before** launching it, and admits at most `concurrency` tasks at
once through a semaphore. The semaphore is the only producer-side
backpressure: the read loop stalls while every slot is taken.

Usage:
    scheduler = Scheduler(lookup=client, writer=RecordWriter(), cache=cache)
    summary = await scheduler.run(RecordReader(stream))

Cancellation (`cancel()`, wired to SIGINT/SIGTERM by the CLI) stops
admission; running tasks finish or hit their deadline and every queued task
is still drained. Fatal errors (input read failure, output write failure)
cancel in-flight work and propagate.
"""

from __future__ import annotations

import asyncio
import time
from typing import Optional, Set, TypedDict

from dic.domain.models import ErrorKind, FailurePolicy, SearchOptions
from dic.infrastructure.cache import ResultCache
from dic.infrastructure.streams import RecordReader, RecordWriter
from dic.lookup.abstract import LookupClient
from dic.pipeline.sequencer import Sequencer
from dic.pipeline.task import LookupTask, run_task
from dic.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_CONCURRENCY = 10
DEFAULT_TASK_TIMEOUT = 5.0


class RunSummary(TypedDict, total=False):
    """Counters reported at the end of a pipeline run."""

    records_read: int
    emitted: int
    skipped: int
    failed: int
    cache_hits: int
    cancelled: bool
    duration_seconds: float


class Scheduler:
    """
    Drive one pipeline run from `reader` to `writer`.

    Parameters
    ----------
    lookup : LookupClient
        External lookup service, shared by every task.
    writer : RecordWriter
        Output stream used by the sequencer.
    cache : ResultCache | None
        Shared cache handle; None disables caching.
    options : SearchOptions | None
        Filters forwarded with every lookup.
    concurrency : int
        Maximum number of simultaneously executing tasks.
    task_timeout : float
        Per-task deadline in seconds, counted from launch.
    key_column : int
        Index of the field holding the lookup key.
    failure_policy, sentinel
        How the sequencer emits records whose lookup failed.
    namespace : str
        Prefix applied to cache keys.
    """

    def __init__(
        self,
        lookup: LookupClient,
        writer: RecordWriter,
        cache: Optional[ResultCache] = None,
        options: Optional[SearchOptions] = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        task_timeout: float = DEFAULT_TASK_TIMEOUT,
        key_column: int = 0,
        failure_policy: FailurePolicy = FailurePolicy.SENTINEL,
        sentinel: str = "",
        namespace: str = "",
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if task_timeout <= 0:
            raise ValueError("task_timeout must be positive")
        self.lookup = lookup
        self.cache = cache
        self.options = options or SearchOptions()
        self.concurrency = concurrency
        self.task_timeout = task_timeout
        self.key_column = key_column
        self.namespace = namespace
        self.writer = writer
        self.failure_policy = failure_policy
        self.sentinel = sentinel
        self.sequencer = Sequencer(writer, policy=failure_policy, sentinel=sentinel)
        self._cancel = asyncio.Event()
        self._finished = False

    def cancel(self) -> None:
        """Stop admitting records; queued work is still drained."""
        if not self._cancel.is_set():
            log.info("cancellation requested, draining in-flight lookups")
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    async def run(self, reader: RecordReader) -> RunSummary:
        """
        Process every record of `reader` and return the run counters.

        Raises
        ------
        InputStreamError
            If the next record cannot be read.
        OutputStreamError
            If a record cannot be written.
        """
        if self._finished:
            # Each run starts uncancelled with fresh counters.
            self._cancel = asyncio.Event()
            self.sequencer = Sequencer(
                self.writer, policy=self.failure_policy, sentinel=self.sentinel
            )
        self._finished = True

        start = time.perf_counter()
        queue: asyncio.Queue[Optional[LookupTask]] = asyncio.Queue()
        semaphore = asyncio.Semaphore(self.concurrency)
        drain = asyncio.create_task(self.sequencer.drain(queue), name="dic-sequencer")
        inflight: Set[asyncio.Task] = set()
        records_read = 0

        try:
            while not self._cancel.is_set() and not drain.done():
                record = await asyncio.to_thread(reader.read)
                if record is None:
                    break

                task = LookupTask(index=records_read, record=record, key_column=self.key_column)
                records_read += 1
                queue.put_nowait(task)

                stopped = self._cancel.is_set() or drain.done()
                if stopped or not await self._acquire(semaphore, drain):
                    task.fail(ErrorKind.CANCELLED, "cancelled before launch")
                    break

                job = asyncio.create_task(
                    self._execute(task, semaphore), name=f"dic-task-{task.index}"
                )
                inflight.add(job)
                job.add_done_callback(inflight.discard)

            queue.put_nowait(None)
            await drain
        except BaseException:
            for job in inflight:
                job.cancel()
            drain.cancel()
            await asyncio.gather(*inflight, drain, return_exceptions=True)
            raise

        summary = RunSummary(
            records_read=records_read,
            emitted=self.sequencer.emitted,
            skipped=self.sequencer.skipped,
            failed=self.sequencer.failed,
            cache_hits=self.sequencer.cache_hits,
            cancelled=self._cancel.is_set(),
            duration_seconds=round(time.perf_counter() - start, 3),
        )
        log.info("pipeline finished", extra=dict(summary))
        return summary

    async def _acquire(self, semaphore: asyncio.Semaphore, drain: asyncio.Task) -> bool:
        """
        Take one admission slot, giving up if the run is cancelled or the
        sequencer stopped while waiting.
        """
        if not semaphore.locked():
            await semaphore.acquire()
            if self._cancel.is_set() or drain.done():
                semaphore.release()
                return False
            return True

        acquire = asyncio.ensure_future(semaphore.acquire())
        stop = asyncio.ensure_future(self._cancel.wait())
        try:
            await asyncio.wait({acquire, stop, drain}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in (acquire, stop):
                if not waiter.done():
                    waiter.cancel()

        acquired = acquire.done() and not acquire.cancelled()
        if acquired and (self._cancel.is_set() or drain.done()):
            semaphore.release()
            return False
        return acquired

    async def _execute(self, task: LookupTask, semaphore: asyncio.Semaphore) -> None:
        try:
            await run_task(
                task,
                self.lookup,
                cache=self.cache,
                options=self.options,
                timeout=self.task_timeout,
                namespace=self.namespace,
            )
        except Exception as exc:  # noqa: BLE001
            log.exception("lookup task crashed", extra={"index": task.index, "key": task.key})
            if not task.done:
                task.fail(ErrorKind.LOOKUP_FAILED, f"{type(exc).__name__}: {exc}")
        finally:
            semaphore.release()


__all__ = ["DEFAULT_CONCURRENCY", "DEFAULT_TASK_TIMEOUT", "RunSummary", "Scheduler"]
