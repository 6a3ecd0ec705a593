"""Unit tests for notevault.core.resilience."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from notevault.core.resilience import (
    ResilienceLogger,
    create_circuit_breaker,
    create_retrying,
    log_retry,
)


class TestResilienceLogger:
    def test_state_change_open(self):
        """Opening the circuit should log at error level."""
        rl = ResilienceLogger("row_store")
        mock_cb = MagicMock()
        mock_cb.fail_counter = 5

        with patch("notevault.core.resilience.logger") as mock_logger:
            rl.state_change(mock_cb, "closed", "open")
            mock_logger.error.assert_called_once()
            assert "circuit_breaker_opened" in str(mock_logger.error.call_args)

    def test_state_change_closed(self):
        """Closing the circuit should log at info level."""
        rl = ResilienceLogger("row_store")
        mock_cb = MagicMock()
        mock_cb.fail_counter = 0

        with patch("notevault.core.resilience.logger") as mock_logger:
            rl.state_change(mock_cb, "open", "closed")
            mock_logger.info.assert_called_once()
            assert "circuit_breaker_closed" in str(mock_logger.info.call_args)

    def test_failure(self):
        """Recording a failure should log at warning level."""
        rl = ResilienceLogger("object_store")
        mock_cb = MagicMock()
        mock_cb.fail_counter = 2

        with patch("notevault.core.resilience.logger") as mock_logger:
            rl.failure(mock_cb, ConnectionError("timeout"))
            mock_logger.warning.assert_called_once()
            assert "circuit_breaker_failure" in str(mock_logger.warning.call_args)


class TestLogRetry:
    def test_emits_structured_event(self):
        """log_retry should emit a warning with retry metadata."""
        mock_state = MagicMock()
        mock_state.attempt_number = 2
        mock_state.fn.__name__ = "request"
        mock_state.outcome_timestamp = 1000.5
        mock_state.start_time = 1000.0
        mock_state.outcome.failed = True
        mock_state.outcome.exception.return_value = ConnectionError("fail")

        with patch("notevault.core.resilience.logger") as mock_logger:
            log_retry(mock_state)
            mock_logger.warning.assert_called_once()
            call_args = mock_logger.warning.call_args
            assert "request" in call_args[0][0]
            assert call_args[1]["extra"]["resilience_event"] == "retry_attempt"
            assert call_args[1]["extra"]["duration_ms"] == 500


class TestCreateCircuitBreaker:
    def test_configures_breaker(self):
        breaker = create_circuit_breaker("row_store", fail_max=3, timeout_duration=10)

        assert breaker.fail_max == 3
        assert breaker.timeout_duration == timedelta(seconds=10)
        assert any(isinstance(listener, ResilienceLogger) for listener in breaker.listeners)


class TestCreateRetrying:
    @pytest.mark.asyncio
    async def test_retries_transport_errors(self):
        """Should retry connection failures and return the eventual result."""
        call = AsyncMock(side_effect=[httpx.ConnectError("refused"), "ok"])
        retrying = create_retrying(attempts=3, wait_min=0, wait_max=0)

        with patch("notevault.core.resilience.logger"):
            result = await retrying(call)

        assert result == "ok"
        assert call.await_count == 2

    @pytest.mark.asyncio
    async def test_reraises_after_last_attempt(self):
        call = AsyncMock(side_effect=httpx.ConnectError("refused"))
        retrying = create_retrying(attempts=2, wait_min=0, wait_max=0)

        with patch("notevault.core.resilience.logger"):
            with pytest.raises(httpx.ConnectError):
                await retrying(call)

        assert call.await_count == 2

    @pytest.mark.asyncio
    async def test_does_not_retry_other_errors(self):
        call = AsyncMock(side_effect=ValueError("bad"))
        retrying = create_retrying(attempts=3, wait_min=0, wait_max=0)

        with pytest.raises(ValueError):
            await retrying(call)

        assert call.await_count == 1
