"""
Pipeline package for dic.

Scheduler (bounded fan-out), per-record lookup tasks (cache-aside under a
deadline) and the order-preserving sequencer.
"""

from dic.pipeline.scheduler import RunSummary, Scheduler
from dic.pipeline.sequencer import Sequencer
from dic.pipeline.task import LookupTask, cache_key, run_task

__all__ = [
    "RunSummary",
    "Scheduler",
    "Sequencer",
    "LookupTask",
    "cache_key",
    "run_task",
]
