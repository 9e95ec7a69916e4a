"""
Error taxonomy for listing video generation.

- ValidationError: caller input is malformed or insufficient (never retried)
- ConfigurationError: a provider credential is missing
- SubmissionError: the provider rejected or mangled a render submission
- StatusQueryError: we could not find out how a render is doing

StatusQueryError is deliberately distinct from a Failed job status, so callers
can tell "the render failed" apart from "the poll failed".
"""

from typing import Optional


class ListingVideoError(Exception):
    """Base class for all listing video errors."""

    http_status: int = 500

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        provider: Optional[str] = None,
        details: Optional[str] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.provider = provider
        self.details = details
        super().__init__(message)

    def to_response(self) -> dict:
        """Render as the `{error, details?}` body returned to callers."""
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(ListingVideoError):
    """Raised when a generation request fails validation."""

    http_status = 400


class ConfigurationError(ListingVideoError):
    """Raised when a required provider credential is absent."""

    http_status = 500


class SubmissionError(ListingVideoError):
    """Raised when a provider does not accept a render submission."""

    http_status = 502


class StatusQueryError(ListingVideoError):
    """Raised when a provider status query cannot be completed."""

    http_status = 502
