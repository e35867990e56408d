"""Tests for the retry loader."""

import asyncio

import pytest

from ltcms_client.cancellation import CancellationToken
from ltcms_client.errors import (
    ApiError,
    HttpError,
    NetworkError,
    RequestCancelledError,
    RequestTimeoutError,
    ValidationError,
)
from ltcms_client.retry import is_transient, load_with_retry


class FlakyFetcher:
    """Fails with the given errors in order, then returns result."""

    def __init__(self, errors: list[ApiError], result: object = "ok") -> None:
        self.errors = list(errors)
        self.result = result
        self.attempts = 0

    async def __call__(self) -> object:
        self.attempts += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


class TestIsTransient:
    """Tests for is_transient()."""

    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (NetworkError("down"), True),
            (HttpError("boom", 500), True),
            (HttpError("unavailable", 503), True),
            (HttpError("bad", 400), False),
            (HttpError("missing", 404), False),
            (RequestTimeoutError(), False),
            (RequestCancelledError(), False),
            (ValidationError("id is required"), False),
        ],
    )
    def test_classification(self, error: ApiError, expected: bool) -> None:
        """Only status-less errors and 5xx are transient."""
        assert is_transient(error) is expected


class TestLoadWithRetry:
    """Tests for load_with_retry()."""

    @pytest.mark.asyncio
    async def test__two_server_errors__succeeds_on_third_attempt(self) -> None:
        """Retry 5xx failures until success."""
        fetcher = FlakyFetcher([HttpError("boom", 500), HttpError("boom", 500)])

        result = await load_with_retry(fetcher, base_delay=0)

        assert result == "ok"
        assert fetcher.attempts == 3

    @pytest.mark.asyncio
    async def test__client_error__not_retried(self) -> None:
        """Surface 4xx failures after a single attempt."""
        fetcher = FlakyFetcher([HttpError("bad", 400)])

        with pytest.raises(HttpError) as exc_info:
            await load_with_retry(fetcher, base_delay=0)

        assert exc_info.value.status == 400
        assert fetcher.attempts == 1

    @pytest.mark.asyncio
    async def test__validation_error__not_retried(self) -> None:
        """Never retry local validation failures."""
        fetcher = FlakyFetcher([ValidationError("id is required")])

        with pytest.raises(ValidationError):
            await load_with_retry(fetcher, base_delay=0)

        assert fetcher.attempts == 1

    @pytest.mark.asyncio
    async def test__exhausted__raises_last_error(self) -> None:
        """Stop after max_attempts and raise the last error."""
        errors = [NetworkError("first"), NetworkError("second"), NetworkError("third")]
        fetcher = FlakyFetcher(errors)

        with pytest.raises(NetworkError, match="third"):
            await load_with_retry(fetcher, max_attempts=3, base_delay=0)

        assert fetcher.attempts == 3

    @pytest.mark.asyncio
    async def test__delay_is_linear(self, monkeypatch) -> None:
        """Wait attempt * base_delay between attempts."""
        delays: list[float] = []

        async def fake_sleep(delay: float) -> None:
            delays.append(delay)

        monkeypatch.setattr("ltcms_client.retry.asyncio.sleep", fake_sleep)
        fetcher = FlakyFetcher([HttpError("a", 500), HttpError("b", 502)])

        await load_with_retry(fetcher, base_delay=0.3)

        assert delays == pytest.approx([0.3, 0.6])

    @pytest.mark.asyncio
    async def test__cancel_during_backoff__stops_without_retry(self) -> None:
        """Short-circuit the wait and skip the retry on cancellation."""
        token = CancellationToken()
        fetcher = FlakyFetcher([HttpError("boom", 500)])

        task = asyncio.create_task(
            load_with_retry(fetcher, cancel=token, base_delay=10)
        )
        await asyncio.sleep(0.01)
        token.cancel()

        with pytest.raises(RequestCancelledError):
            await asyncio.wait_for(task, timeout=1)

        assert fetcher.attempts == 1

    @pytest.mark.asyncio
    async def test__cancelled_before_failure__no_retry(self) -> None:
        """Do not retry once the caller has cancelled."""
        token = CancellationToken()

        async def fetcher() -> None:
            token.cancel()
            raise NetworkError("down")

        with pytest.raises(NetworkError):
            await load_with_retry(fetcher, cancel=token, base_delay=0)

    @pytest.mark.asyncio
    async def test__invalid_max_attempts__rejected(self) -> None:
        """Reject max_attempts below one."""
        with pytest.raises(ValidationError):
            await load_with_retry(FlakyFetcher([]), max_attempts=0)
