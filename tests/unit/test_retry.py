"""Unit tests for bounded exponential backoff."""

from __future__ import annotations

import pytest

from nudge.errors import ExternalService, NotFoundError, RemoteServiceError
from nudge.functions.retry import retry_idempotent


class FakeSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def flaky(failures: int, exc: Exception):
    calls = {"n": 0}

    async def operation() -> str:
        calls["n"] += 1
        if calls["n"] <= failures:
            raise exc
        return "ok"

    return operation, calls


class TestRetryIdempotent:

    @pytest.mark.asyncio
    async def test_first_try_succeeds_without_sleeping(self):
        sleep = FakeSleep()
        operation, calls = flaky(0, ConnectionError())
        assert await retry_idempotent(operation, sleep=sleep) == "ok"
        assert calls["n"] == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_delay_doubles_between_attempts(self):
        sleep = FakeSleep()
        operation, calls = flaky(3, ConnectionError("reset"))
        result = await retry_idempotent(operation, attempts=4, base_delay=0.5, sleep=sleep)
        assert result == "ok"
        assert calls["n"] == 4
        assert sleep.delays == [0.5, 1.0, 2.0]

    @pytest.mark.asyncio
    async def test_delay_capped(self):
        sleep = FakeSleep()
        operation, _ = flaky(4, ConnectionError())
        await retry_idempotent(operation, attempts=5, base_delay=3.0, max_delay=5.0, sleep=sleep)
        assert sleep.delays == [3.0, 5.0, 5.0, 5.0]

    @pytest.mark.asyncio
    async def test_last_error_reraised(self):
        sleep = FakeSleep()
        error = RemoteServiceError(ExternalService.PARSE_SYLLABUS, "boom")
        operation, calls = flaky(10, error)
        with pytest.raises(RemoteServiceError, match="boom"):
            await retry_idempotent(operation, attempts=3, sleep=sleep)
        assert calls["n"] == 3
        assert len(sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_non_retryable_error_propagates_immediately(self):
        sleep = FakeSleep()
        operation, calls = flaky(1, NotFoundError("Class not found"))
        with pytest.raises(NotFoundError):
            await retry_idempotent(operation, sleep=sleep)
        assert calls["n"] == 1

    @pytest.mark.asyncio
    async def test_zero_attempts_rejected(self):
        operation, _ = flaky(0, ConnectionError())
        with pytest.raises(ValueError):
            await retry_idempotent(operation, attempts=0)
