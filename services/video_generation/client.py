"""
Render Provider Adapter Interface

Every provider is reached through the same small contract:
- submit(): send a render and return a SubmissionResult with the job handle
- fetch_status(): return the provider's raw status payload for a job

Shared plumbing lives here: lazy httpx client, circuit breaker routing,
and body handling. Bodies are always read as raw text first so
we can tell "unreachable", "rejected" and "unparseable" apart.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

import httpx

from core.circuit_breaker import CircuitBreakerOpen, get_provider_breaker
from core.config import Config, get_config
from core.errors import (
    ConfigurationError,
    ListingVideoError,
    StatusQueryError,
    SubmissionError,
)

from .models import GenerationRequest, Provider, SubmissionResult

if TYPE_CHECKING:
    from services.composition.timeline import TimelineDescription

logger = logging.getLogger(__name__)

# Upstream error pages start with one of these instead of JSON
HTML_MARKERS = ("<!doctype", "<html")

LOG_BODY_CHARS = 500
ERROR_BODY_CHARS = 200


def looks_like_html(text: str) -> bool:
    return text.lstrip()[:9].lower().startswith(HTML_MARKERS)


def is_success(response: httpx.Response) -> bool:
    return 200 <= response.status_code < 300


def parse_json_body(text: str) -> Optional[Any]:
    """Parse a raw body, returning None when it is not JSON."""
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return None


class ProviderAdapter(ABC):
    """
    Base class for render provider adapters.

    Usage:
        adapter = ShotstackAdapter()
        result = await adapter.submit(request, timeline)
        payload = await adapter.fetch_status(result.job.provider_job_id)
    """

    provider: Provider
    consumes_timeline: bool = False

    def __init__(
        self,
        config: Optional[Config] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or get_config()
        self._http_client = http_client
        self._owns_client = http_client is None
        self._breaker = get_provider_breaker(self.provider.value)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.config.api.http_timeout_seconds)
        return self._http_client

    async def close(self):
        """Close the HTTP client if we created it."""
        if self._http_client and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    @abstractmethod
    def _auth_headers(self, api_key: str) -> dict:
        """Credential header for this provider."""

    @abstractmethod
    async def submit(
        self,
        request: GenerationRequest,
        timeline: Optional["TimelineDescription"] = None,
    ) -> SubmissionResult:
        """Submit a render and return the job handle."""

    @abstractmethod
    def _status_url(self, job_id: str) -> str:
        """Endpoint reporting a job's render status."""

    async def _send(
        self,
        method: str,
        url: str,
        error_cls: type[ListingVideoError],
        **kwargs,
    ) -> httpx.Response:
        """
        Issue one request through the provider's circuit breaker.

        Transport failures, unbuildable URLs and an open breaker surface as error_cls.
        """
        client = await self._get_client()
        try:
            return await self._breaker.call(client.request, method, url, **kwargs)
        except CircuitBreakerOpen as e:
            logger.warning(f"{self.provider.value} circuit open: {e}")
            raise error_cls(
                f"{self.provider.value} is temporarily unavailable",
                error_code="CIRCUIT_OPEN",
                provider=self.provider.value,
                details=f"Retry after {e.retry_after:.1f}s",
            )
        except httpx.InvalidURL as e:
            raise error_cls(
                f"Could not build a {self.provider.value} request URL: {e}",
                error_code="INVALID_REQUEST_URL",
                provider=self.provider.value,
            )
        except httpx.TimeoutException as e:
            raise error_cls(
                f"{self.provider.value} API timeout: {type(e).__name__}",
                error_code="TIMEOUT",
                provider=self.provider.value,
            )
        except httpx.RequestError as e:
            raise error_cls(
                f"{self.provider.value} API request failed: {type(e).__name__}: {e}",
                error_code="REQUEST_ERROR",
                provider=self.provider.value,
            )

    def _html_error(self, error_cls: type[ListingVideoError], text: str) -> ListingVideoError:
        return error_cls(
            f"{self.provider.value} returned an HTML page instead of JSON. "
            f"The API key is likely invalid or does not match the configured environment.",
            error_code="INVALID_CREDENTIAL",
            provider=self.provider.value,
            details=text[:ERROR_BODY_CHARS],
        )

    def _decode_success_body(
        self,
        text: str,
        error_cls: type[ListingVideoError],
    ) -> dict:
        """Parse a 2xx body, which must be a JSON object."""
        if looks_like_html(text):
            raise self._html_error(error_cls, text)

        data = parse_json_body(text)
        if not isinstance(data, dict):
            raise error_cls(
                f"Invalid response from {self.provider.value}",
                error_code="INVALID_JSON",
                provider=self.provider.value,
                details=text[:ERROR_BODY_CHARS],
            )
        return data

    async def fetch_status(self, job_id: str) -> dict:
        """
        Fetch the raw status payload for a job.

        Raises:
            StatusQueryError: Missing credential, transport failure,
                non-success HTTP status or unparseable body
        """
        try:
            api_key = self.config.require_api_key(self.provider.value)
        except ConfigurationError as e:
            raise StatusQueryError(
                e.message,
                error_code="MISSING_CREDENTIAL",
                provider=self.provider.value,
            ) from e

        response = await self._send(
            "GET",
            self._status_url(job_id),
            StatusQueryError,
            headers=self._auth_headers(api_key),
        )

        text = response.text
        logger.info(
            f"{self.provider.value} status response ({response.status_code}): "
            f"{text[:LOG_BODY_CHARS]}"
        )

        if not is_success(response):
            if looks_like_html(text):
                raise self._html_error(StatusQueryError, text)
            raise StatusQueryError(
                "Failed to check video status",
                error_code=f"HTTP_{response.status_code}",
                provider=self.provider.value,
                details=text[:ERROR_BODY_CHARS],
            )

        return self._decode_success_body(text, StatusQueryError)


def submission_error(provider: Provider, message: str, code: str, body: str = "") -> SubmissionError:
    return SubmissionError(
        message,
        error_code=code,
        provider=provider.value,
        details=body[:ERROR_BODY_CHARS] or None,
    )
