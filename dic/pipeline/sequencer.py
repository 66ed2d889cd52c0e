"""
Order-preserving writer stage.

The sequencer pulls tasks from the ordering queue in the order the scheduler
enqueued them and waits for each one in turn, so a fast task queued behind a
slow one is held back until the slow one completes. Output order therefore
follows input order, never completion order.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from dic.domain.models import FailurePolicy
from dic.infrastructure.streams import RecordWriter
from dic.pipeline.task import LookupTask
from dic.utils.logging import get_logger

log = get_logger(__name__)


class Sequencer:
    """
    Commit completed tasks to `writer` in submission order.

    Parameters
    ----------
    writer : RecordWriter
        Destination stream; it flushes after every record.
    policy : FailurePolicy
        `sentinel` emits failed records with `sentinel` as their trailing
        field, `skip` drops them.
    sentinel : str
        Trailing field used for failed records under the `sentinel` policy.
    """

    def __init__(
        self,
        writer: RecordWriter,
        policy: FailurePolicy = FailurePolicy.SENTINEL,
        sentinel: str = "",
    ) -> None:
        self.writer = writer
        self.policy = policy
        self.sentinel = sentinel
        self.emitted = 0
        self.skipped = 0
        self.failed = 0
        self.cache_hits = 0

    async def drain(self, queue: "asyncio.Queue[Optional[LookupTask]]") -> None:
        """
        Consume `queue` until its `None` terminator.

        Raises
        ------
        OutputStreamError
            When the writer fails; the pipeline cannot continue.
        """
        while True:
            task = await queue.get()
            try:
                if task is None:
                    return
                await task.wait()
                self._commit(task)
            finally:
                queue.task_done()

    def _commit(self, task: LookupTask) -> None:
        if task.error is None:
            if task.cached:
                self.cache_hits += 1
            self.writer.write(task.record)
            self.emitted += 1
            return

        self.failed += 1
        log.warning(
            "unable to obtain link: %s",
            task.detail,
            extra={"index": task.index, "key": task.key, "error": task.error.value},
        )
        if self.policy is FailurePolicy.SKIP:
            self.skipped += 1
            return
        self.writer.write(task.record[: task.width] + [self.sentinel])
        self.emitted += 1


__all__ = ["Sequencer"]
