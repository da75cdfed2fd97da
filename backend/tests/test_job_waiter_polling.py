from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from post_enhancer.config import Settings
from post_enhancer.exceptions import GenerationFailed, JobTimeout, SubmissionError
from post_enhancer.models.job import TaskState, TaskStatus
from post_enhancer.services.job_waiter import (
    CallbackJobWaiter,
    PollingJobWaiter,
    build_job_waiter,
)


def status(state: TaskState, urls=None, fail_msg=None) -> TaskStatus:
    return TaskStatus(task_id="abc123", state=state, result_urls=urls or [], fail_msg=fail_msg)


def make_generator(statuses) -> MagicMock:
    generator = MagicMock()
    generator.create_task = AsyncMock(return_value="abc123")
    generator.query_task = AsyncMock(side_effect=statuses)
    return generator


@pytest.mark.asyncio
async def test_returns_first_url_once_task_succeeds():
    generator = make_generator([
        status(TaskState.PENDING),
        status(TaskState.PENDING),
        status(TaskState.SUCCESS, ["http://x/img.jpg"]),
    ])
    sleep = AsyncMock()
    waiter = PollingJobWaiter(generator, interval=2.0, max_attempts=60, sleep=sleep)

    assert await waiter.submit("prompt") == "http://x/img.jpg"

    assert generator.query_task.await_count == 3
    assert sleep.await_count == 3
    generator.create_task.assert_awaited_once_with("prompt", "16:9")
    generator.query_task.assert_awaited_with("abc123")


@pytest.mark.asyncio
async def test_times_out_after_exactly_max_attempts():
    generator = make_generator([status(TaskState.PENDING)] * 60)
    sleep = AsyncMock()
    waiter = PollingJobWaiter(generator, interval=2.0, max_attempts=60, sleep=sleep)

    with pytest.raises(JobTimeout, match="60 polls"):
        await waiter.submit("prompt")

    assert generator.query_task.await_count == 60
    assert sleep.await_count == 60
    assert sum(call.args[0] for call in sleep.await_args_list) == pytest.approx(120.0)


@pytest.mark.asyncio
async def test_failure_short_circuits_without_further_polls():
    generator = make_generator([
        status(TaskState.PENDING),
        status(TaskState.FAIL, fail_msg="content policy"),
    ])
    sleep = AsyncMock()
    waiter = PollingJobWaiter(generator, interval=2.0, max_attempts=60, sleep=sleep)

    with pytest.raises(GenerationFailed, match="content policy"):
        await waiter.submit("prompt")

    assert generator.query_task.await_count == 2
    assert sleep.await_count == 2


@pytest.mark.asyncio
async def test_transient_errors_consume_attempts_and_polling_continues():
    generator = make_generator([
        httpx.ConnectError("connection reset"),
        ValueError("JSON decode failed"),
        status(TaskState.SUCCESS, ["http://x/img.jpg"]),
    ])
    waiter = PollingJobWaiter(generator, interval=2.0, max_attempts=60, sleep=AsyncMock())

    assert await waiter.submit("prompt") == "http://x/img.jpg"
    assert generator.query_task.await_count == 3


@pytest.mark.asyncio
async def test_transient_errors_count_against_budget():
    generator = make_generator([httpx.ReadTimeout("slow")] * 3)
    waiter = PollingJobWaiter(generator, interval=2.0, max_attempts=3, sleep=AsyncMock())

    with pytest.raises(JobTimeout):
        await waiter.submit("prompt")
    assert generator.query_task.await_count == 3


@pytest.mark.asyncio
async def test_success_without_url_keeps_polling():
    generator = make_generator([
        status(TaskState.SUCCESS, []),
        status(TaskState.SUCCESS, ["http://x/img.jpg"]),
    ])
    waiter = PollingJobWaiter(generator, interval=2.0, max_attempts=60, sleep=AsyncMock())

    assert await waiter.submit("prompt") == "http://x/img.jpg"
    assert generator.query_task.await_count == 2


@pytest.mark.asyncio
async def test_submission_error_skips_polling():
    generator = make_generator([])
    generator.create_task.side_effect = SubmissionError("kie.ai: no taskId")
    sleep = AsyncMock()
    waiter = PollingJobWaiter(generator, sleep=sleep)

    with pytest.raises(SubmissionError):
        await waiter.submit("prompt")
    sleep.assert_not_awaited()
    generator.query_task.assert_not_awaited()


def test_build_job_waiter_uses_configured_mode(monkeypatch):
    generator = MagicMock()

    monkeypatch.setenv("WAITER_MODE", "polling")
    monkeypatch.setenv("POLL_MAX_ATTEMPTS", "10")
    assert isinstance(build_job_waiter(Settings(), generator), PollingJobWaiter)

    monkeypatch.setenv("WAITER_MODE", "Callback")
    assert isinstance(build_job_waiter(Settings(), generator), CallbackJobWaiter)


def test_build_job_waiter_rejects_unknown_mode(monkeypatch):
    monkeypatch.setenv("WAITER_MODE", "carrier-pigeon")
    with pytest.raises(ValueError, match="Invalid WAITER_MODE"):
        build_job_waiter(Settings(), MagicMock())
