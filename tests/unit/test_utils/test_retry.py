"""
test_retry.py - exponential backoff
"""

from unittest.mock import AsyncMock, patch

import pytest

from sonia.utils.retry import retry_with_exponential_backoff


class FlakyError(Exception):
    pass


class TestRetryWithExponentialBackoff:
    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        func = AsyncMock(return_value="ok")

        assert await retry_with_exponential_backoff(func) == "ok"
        assert func.await_count == 1

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self):
        func = AsyncMock(side_effect=[FlakyError("1"), FlakyError("2"), "ok"])

        with patch("sonia.utils.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await retry_with_exponential_backoff(
                func, max_retries=3, initial_delay=1.0, exceptions=(FlakyError,)
            )

        assert result == "ok"
        assert func.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_raises_last_error_after_max_retries(self):
        func = AsyncMock(side_effect=FlakyError("down"))

        with patch("sonia.utils.retry.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(FlakyError, match="down"):
                await retry_with_exponential_backoff(
                    func, max_retries=2, exceptions=(FlakyError,)
                )

        assert func.await_count == 3

    @pytest.mark.asyncio
    async def test_delay_capped_by_max_delay(self):
        func = AsyncMock(side_effect=[FlakyError(), FlakyError(), FlakyError(), "ok"])

        with patch("sonia.utils.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            await retry_with_exponential_backoff(
                func,
                max_retries=3,
                initial_delay=4.0,
                max_delay=5.0,
                exceptions=(FlakyError,),
            )

        assert [c.args[0] for c in sleep.await_args_list] == [4.0, 5.0, 5.0]

    @pytest.mark.asyncio
    async def test_other_exceptions_not_retried(self):
        func = AsyncMock(side_effect=ValueError("bad input"))

        with pytest.raises(ValueError):
            await retry_with_exponential_backoff(func, exceptions=(FlakyError,))

        assert func.await_count == 1
