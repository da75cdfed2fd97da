"""In-memory representations of image-generation jobs.

Nothing here is persisted: a job only lives while a waiter awaits it.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from post_enhancer.exceptions import EnhancerError


class TaskState(str, Enum):
    """Task states reported by the image generator."""

    SUCCESS = "success"
    FAIL = "fail"
    PENDING = "pending"

    @classmethod
    def parse(cls, raw: object) -> "TaskState":
        """Map the provider's raw state; anything non-terminal is pending."""
        if raw == cls.SUCCESS.value:
            return cls.SUCCESS
        if raw == cls.FAIL.value:
            return cls.FAIL
        return cls.PENDING


@dataclass(frozen=True)
class TaskStatus:
    """Snapshot of a task as returned by a status query."""

    task_id: str
    state: TaskState
    result_urls: List[str] = field(default_factory=list)
    fail_msg: Optional[str] = None

    @property
    def image_url(self) -> Optional[str]:
        return self.result_urls[0] if self.result_urls else None


@dataclass(frozen=True)
class JobSuccess:
    image_url: str


@dataclass(frozen=True)
class JobFailure:
    error: EnhancerError


JobResult = Union[JobSuccess, JobFailure]


@dataclass
class PendingJob:
    """A submitted task awaiting its webhook.

    ``future`` is settled exactly once; ``timeout_handle`` is cancelled
    together with the registry removal.
    """

    task_id: str
    future: "asyncio.Future[str]"
    timeout_handle: asyncio.TimerHandle

    def settle(self, result: JobResult) -> None:
        self.timeout_handle.cancel()
        if self.future.done():
            return
        if isinstance(result, JobSuccess):
            self.future.set_result(result.image_url)
        else:
            self.future.set_exception(result.error)
