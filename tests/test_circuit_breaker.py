"""
Circuit breaker tests.
"""

import asyncio

import httpx
import pytest

from core.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerOpen,
    CircuitState,
    get_provider_breaker,
)
from core.errors import StatusQueryError, SubmissionError
from services.composition import compose
from services.video_generation.shotstack import ShotstackAdapter

from conftest import make_response


async def _unreachable():
    raise httpx.ConnectError("connection refused")


async def _ok():
    return "ok"


class TestCircuitBreaker:

    @pytest.mark.asyncio
    async def test_opens_after_threshold(self):
        breaker = CircuitBreaker("test-open", CircuitBreakerConfig(failure_threshold=2))

        for _ in range(2):
            with pytest.raises(httpx.ConnectError):
                await breaker.call(_unreachable)

        assert breaker.is_open
        with pytest.raises(CircuitBreakerOpen):
            await breaker.call(_ok)

    @pytest.mark.asyncio
    async def test_non_transport_errors_not_counted(self):
        breaker = CircuitBreaker("test-uncounted", CircuitBreakerConfig(failure_threshold=1))

        async def broken():
            raise ValueError("bad payload")

        with pytest.raises(ValueError):
            await breaker.call(broken)

        assert breaker.state == CircuitState.CLOSED
        assert breaker.stats.consecutive_failures == 0

    @pytest.mark.asyncio
    async def test_half_open_recovers(self):
        breaker = CircuitBreaker(
            "test-recover",
            CircuitBreakerConfig(failure_threshold=1, recovery_timeout=0.0, success_threshold=1),
        )

        with pytest.raises(httpx.ConnectError):
            await breaker.call(_unreachable)
        assert breaker.is_open

        assert await breaker.call(_ok) == "ok"
        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_success_resets_failure_count(self):
        breaker = CircuitBreaker("test-reset", CircuitBreakerConfig(failure_threshold=2))

        with pytest.raises(httpx.ConnectError):
            await breaker.call(_unreachable)
        await breaker.call(_ok)

        assert breaker.stats.consecutive_failures == 0
        assert breaker.state == CircuitState.CLOSED

    def test_provider_breakers_are_shared(self):
        assert get_provider_breaker("shotstack") is get_provider_breaker("shotstack")
        assert get_provider_breaker("luma").config.failure_threshold == 3


class TestAdapterIntegration:

    @pytest.mark.asyncio
    async def test_open_circuit_skips_request(self, config, http_client, generation_request):
        get_provider_breaker("shotstack").force_open()
        adapter = ShotstackAdapter(config, http_client)

        timeline = compose(generation_request.images, generation_request.property_facts)

        with pytest.raises(SubmissionError) as exc:
            await adapter.submit(generation_request, timeline)

        assert exc.value.error_code == "CIRCUIT_OPEN"
        http_client.request.assert_not_called()


class TestHalfOpenTrials:

    @pytest.mark.asyncio
    async def test_uncounted_exception_frees_half_open_slot(self):
        breaker = CircuitBreaker(
            "test-trial-slot",
            CircuitBreakerConfig(recovery_timeout=0.0, half_open_max_calls=1, success_threshold=1),
        )
        breaker.force_open()

        async def bad_url():
            raise httpx.InvalidURL("Invalid non-printable ASCII character in URL")

        for _ in range(3):
            with pytest.raises(httpx.InvalidURL):
                await breaker.call(bad_url)

        assert breaker.state == CircuitState.HALF_OPEN
        assert await breaker.call(_ok) == "ok"
        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_cancelled_call_frees_half_open_slot(self):
        breaker = CircuitBreaker(
            "test-trial-cancel",
            CircuitBreakerConfig(recovery_timeout=0.0, half_open_max_calls=1),
        )
        breaker.force_open()

        async def cancelled():
            raise asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await breaker.call(cancelled)

        assert breaker.stats.trial_calls == 0
        assert await breaker.call(_ok) == "ok"

    @pytest.mark.asyncio
    async def test_bad_job_ids_do_not_block_valid_polls(self, config, http_client):
        http_client.request.side_effect = [
            httpx.InvalidURL("bad"),
            httpx.InvalidURL("bad"),
            httpx.InvalidURL("bad"),
            make_response(200, {"success": True, "response": {"status": "rendering"}}),
        ]
        breaker = get_provider_breaker("shotstack")
        breaker.force_open()
        breaker.stats.opened_at -= breaker.config.recovery_timeout
        adapter = ShotstackAdapter(config, http_client)

        for _ in range(3):
            with pytest.raises(StatusQueryError) as exc:
                await adapter.fetch_status("render-123")
            assert exc.value.error_code == "INVALID_REQUEST_URL"

        payload = await adapter.fetch_status("render-123")
        assert payload["response"]["status"] == "rendering"
