"""Waiting for image-generation tasks to finish.

Two interchangeable strategies implement :class:`JobWaiter`:

* :class:`CallbackJobWaiter` hands the provider a webhook URL and parks a
  future in its registry until ``/kie-callback`` settles it (or a timer does).
* :class:`PollingJobWaiter` asks the provider for the task status at a fixed
  interval until a terminal state or the attempt budget is exhausted.

Which one runs is decided once, by :func:`build_job_waiter`, from
``settings.WAITER_MODE``.
"""

from __future__ import annotations

import abc
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

import httpx

from ..config import Settings
from ..exceptions import (
    EnhancerError,
    GenerationFailed,
    JobTimeout,
    MalformedCallback,
    WaiterShutdown,
)
from ..models.job import JobFailure, JobResult, JobSuccess, PendingJob, TaskState
from .image_generator import KieImageGenerator, parse_result_urls

logger = logging.getLogger(__name__)

WAITER_MODES = ("callback", "polling")


class JobWaiter(abc.ABC):
    """Submit a prompt and wait until the generated image URL is known."""

    def __init__(self, generator: KieImageGenerator) -> None:
        self._generator = generator

    @abc.abstractmethod
    async def submit(self, prompt: str, aspect_ratio: str = "16:9") -> str:
        """Return the URL of the generated image or raise an ``EnhancerError``."""

    async def close(self) -> None:
        """Release anything still pending. No-op by default."""


class CallbackJobWaiter(JobWaiter):
    """Resolve jobs from inbound provider webhooks."""

    def __init__(
        self,
        generator: KieImageGenerator,
        callback_url: str,
        timeout: float = 120.0,
        registry: Optional[Dict[str, PendingJob]] = None,
    ) -> None:
        super().__init__(generator)
        self._callback_url = callback_url
        self._timeout = timeout
        self._pending: Dict[str, PendingJob] = registry if registry is not None else {}

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def is_pending(self, task_id: str) -> bool:
        return task_id in self._pending

    async def submit(self, prompt: str, aspect_ratio: str = "16:9") -> str:
        task_id = await self._generator.create_task(
            prompt, aspect_ratio, callback_url=self._callback_url
        )
        if task_id in self._pending:
            # Task ids are provider-assigned and unique; a clash means a bug upstream.
            raise EnhancerError(f"kie.ai: task {task_id} is already pending")

        loop = asyncio.get_running_loop()
        future: asyncio.Future[str] = loop.create_future()
        handle = loop.call_later(self._timeout, self._expire, task_id)
        self._pending[task_id] = PendingJob(task_id=task_id, future=future, timeout_handle=handle)
        logger.debug("Registered pending job %s (timeout %.0fs)", task_id, self._timeout)

        try:
            return await future
        finally:
            # Only does something when the awaiting caller was cancelled.
            self._settle(task_id, JobFailure(WaiterShutdown("kie.ai: wait cancelled")))

    def handle_callback(self, payload: Mapping[str, Any]) -> bool:
        """Apply a webhook body; return ``True`` when it settled a job.

        Unknown or already-settled task ids and non-terminal states are
        ignored.
        """

        data = payload.get("data") if isinstance(payload, Mapping) else None
        if not isinstance(data, Mapping):
            logger.warning("kie.ai callback without data object: %r", payload)
            return False

        task_id = data.get("taskId")
        raw_state = data.get("state")
        logger.info("kie.ai callback received: %s %s", task_id, raw_state)

        if not isinstance(task_id, str) or task_id not in self._pending:
            return False

        state = TaskState.parse(raw_state)
        if state is TaskState.SUCCESS:
            result = self._success_result(data)
        elif state is TaskState.FAIL:
            result = JobFailure(GenerationFailed(data.get("failMsg") or "unknown"))
        else:
            return False
        return self._settle(task_id, result)

    async def close(self) -> None:
        for task_id in list(self._pending):
            self._settle(task_id, JobFailure(WaiterShutdown("kie.ai: waiter shut down")))

    @staticmethod
    def _success_result(data: Mapping[str, Any]) -> JobResult:
        try:
            urls = parse_result_urls(data.get("resultJson") or "{}")
        except ValueError:
            return JobFailure(MalformedCallback("kie.ai: failed to parse resultJson"))
        if not urls:
            return JobFailure(MalformedCallback("kie.ai: no image URL in callback"))
        return JobSuccess(urls[0])

    def _expire(self, task_id: str) -> None:
        if self._settle(task_id, JobFailure(JobTimeout(f"kie.ai: timeout after {self._timeout:.0f} seconds"))):
            logger.warning("kie.ai task %s timed out", task_id)

    def _settle(self, task_id: str, result: JobResult) -> bool:
        job = self._pending.pop(task_id, None)
        if job is None:
            return False
        job.settle(result)
        return True


class PollingJobWaiter(JobWaiter):
    """Resolve jobs by querying the provider at a fixed interval."""

    def __init__(
        self,
        generator: KieImageGenerator,
        interval: float = 2.0,
        max_attempts: int = 60,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        super().__init__(generator)
        self._interval = interval
        self._max_attempts = max_attempts
        self._sleep = sleep

    async def submit(self, prompt: str, aspect_ratio: str = "16:9") -> str:
        task_id = await self._generator.create_task(prompt, aspect_ratio)

        for attempt in range(1, self._max_attempts + 1):
            await self._sleep(self._interval)
            try:
                status = await self._generator.query_task(task_id)
            except (httpx.HTTPError, ValueError) as e:
                logger.warning(
                    "kie.ai poll %d/%d for %s failed: %s", attempt, self._max_attempts, task_id, e
                )
                continue

            if status.state is TaskState.FAIL:
                raise GenerationFailed(status.fail_msg or "unknown")
            if status.state is TaskState.SUCCESS:
                if status.image_url:
                    logger.info("kie.ai task %s finished after %d polls", task_id, attempt)
                    return status.image_url
                logger.warning("kie.ai task %s reported success without a URL; polling on", task_id)

        raise JobTimeout(
            f"kie.ai: timeout after {self._max_attempts} polls "
            f"({self._max_attempts * self._interval:.0f} seconds)"
        )


def build_job_waiter(settings: Settings, generator: KieImageGenerator) -> JobWaiter:
    """Pick the waiting strategy configured by ``WAITER_MODE``."""

    mode = settings.WAITER_MODE
    if mode == "callback":
        return CallbackJobWaiter(
            generator,
            callback_url=settings.kie_callback_url,
            timeout=settings.CALLBACK_TIMEOUT_SECONDS,
        )
    if mode == "polling":
        return PollingJobWaiter(
            generator,
            interval=settings.POLL_INTERVAL_SECONDS,
            max_attempts=settings.POLL_MAX_ATTEMPTS,
        )
    raise ValueError(f"Invalid WAITER_MODE: {mode!r} (expected one of {', '.join(WAITER_MODES)})")
