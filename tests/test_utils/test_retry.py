"""Tests for retry utilities."""
import pytest

from listingmedia.exceptions import NetworkError, StorageError
from listingmedia.utils.retry import with_retry


class TestWithRetry:
    """Tests for with_retry function."""

    @pytest.mark.asyncio
    async def test_success_no_retry(self):
        """Successful function should return without retry."""
        call_count = 0

        async def success_fn():
            nonlocal call_count
            call_count += 1
            return "success"

        result = await with_retry(success_fn)
        assert result == "success"
        assert call_count == 1

    @pytest.mark.asyncio
    async def test_retry_on_network_error(self):
        """NetworkError should trigger retry."""
        call_count = 0

        async def fail_then_succeed():
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise NetworkError("Connection failed")
            return "success"

        result = await with_retry(fail_then_succeed, max_retries=2, initial_delay=0.01)
        assert result == "success"
        assert call_count == 3

    @pytest.mark.asyncio
    async def test_retry_exhausted(self):
        """Should raise after max retries exhausted."""
        call_count = 0

        async def always_fail():
            nonlocal call_count
            call_count += 1
            raise TimeoutError("Request timed out")

        with pytest.raises(TimeoutError, match="timed out"):
            await with_retry(always_fail, max_retries=2, initial_delay=0.01)
        assert call_count == 3  # Initial + 2 retries

    @pytest.mark.asyncio
    async def test_no_retry_on_storage_errors(self):
        """A rejected upload is not transient and fails immediately."""
        call_count = 0

        async def rejected():
            nonlocal call_count
            call_count += 1
            raise StorageError("Invalid image file")

        with pytest.raises(StorageError):
            await with_retry(rejected, max_retries=3, initial_delay=0.01)
        assert call_count == 1

    @pytest.mark.asyncio
    async def test_passes_args_and_kwargs(self):
        """Arguments should be passed to function."""
        async def add(a, b, c=0):
            return a + b + c

        result = await with_retry(add, 1, 2, c=3, max_retries=1)
        assert result == 6

    @pytest.mark.asyncio
    async def test_zero_retries(self):
        call_count = 0

        async def fail():
            nonlocal call_count
            call_count += 1
            raise ConnectionError("refused")

        with pytest.raises(ConnectionError):
            await with_retry(fail, max_retries=0, label='upload of a.jpg')
        assert call_count == 1
