"""
Status Normalizer

Collapses each provider's status vocabulary into one lifecycle:
processing, done or failed. Every provider gets one StatusTable; adding a
provider means adding a table, not touching the orchestrator.

Statuses are never cached. Each poll is a fresh provider query, so
concurrent polls for the same job are safe.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from core.errors import StatusQueryError, ValidationError

from .client import ProviderAdapter
from .models import JobPhase, Provider, UnifiedStatus

logger = logging.getLogger(__name__)


def _dig(payload: Any, path: tuple) -> Any:
    """Follow a key path through nested dicts, None if any hop is missing."""
    for key in path:
        if not isinstance(payload, dict):
            return None
        payload = payload.get(key)
    return payload


@dataclass(frozen=True)
class StatusTable:
    """
    Where a provider reports status, output and failure reason, plus how its
    raw status strings map to a JobPhase. Matching is exact; unlisted strings
    are PROCESSING.
    """
    provider: Provider
    status_path: tuple
    url_path: tuple
    reason_path: tuple
    phases: dict = field(default_factory=dict)

    def phase_for(self, raw_status: Optional[str]) -> JobPhase:
        return self.phases.get(raw_status or "", JobPhase.PROCESSING)

    def normalize(self, payload: dict) -> UnifiedStatus:
        raw = _dig(payload, self.status_path)
        raw_status = str(raw) if raw is not None else None
        phase = self.phase_for(raw_status)

        if phase == JobPhase.DONE:
            url = _dig(payload, self.url_path)
            if not url:
                raise StatusQueryError(
                    f"{self.provider.value} reported '{raw_status}' without an output URL",
                    error_code="MISSING_OUTPUT_URL",
                    provider=self.provider.value,
                )
            return UnifiedStatus.done(str(url), raw_status=raw_status)

        if phase == JobPhase.FAILED:
            reason = _dig(payload, self.reason_path)
            return UnifiedStatus.failed(
                str(reason) if reason else None, raw_status=raw_status
            )

        return UnifiedStatus.processing(raw_status=raw_status)


SHOTSTACK_STATUS = StatusTable(
    provider=Provider.SHOTSTACK,
    status_path=("response", "status"),
    url_path=("response", "url"),
    reason_path=("response", "error"),
    phases={
        # queued, fetching, rendering, saving -> PROCESSING
        "done": JobPhase.DONE,
        "failed": JobPhase.FAILED,
    },
)

LUMA_STATUS = StatusTable(
    provider=Provider.LUMA,
    status_path=("state",),
    url_path=("assets", "video"),
    reason_path=("failure_reason",),
    phases={
        # queued, dreaming, ... -> PROCESSING
        "completed": JobPhase.DONE,
        "failed": JobPhase.FAILED,
    },
)

STATUS_TABLES: dict[Provider, StatusTable] = {
    Provider.SHOTSTACK: SHOTSTACK_STATUS,
    Provider.LUMA: LUMA_STATUS,
}


class StatusNormalizer:
    """
    Polls a provider and returns a UnifiedStatus.

    Usage:
        normalizer = StatusNormalizer(adapters)
        status = await normalizer.poll(Provider.SHOTSTACK, job_id)
    """

    def __init__(
        self,
        adapters: dict[Provider, ProviderAdapter],
        tables: Optional[dict[Provider, StatusTable]] = None,
    ):
        self.adapters = adapters
        self.tables = tables or STATUS_TABLES

    async def poll(self, provider: Provider, job_id: str) -> UnifiedStatus:
        """
        Query the provider and normalize its answer.

        Raises:
            ValidationError: Empty or malformed job id
            StatusQueryError: The provider could not be asked, or its answer
                could not be read
        """
        if not job_id:
            raise ValidationError("Job ID is required", error_code="MISSING_JOB_ID")
        if not job_id.isprintable() or job_id.strip(".") == "":
            raise ValidationError(
                "Job ID is not a valid provider job identifier",
                error_code="INVALID_JOB_ID",
                details=f"Got: {job_id!r}",
            )

        adapter = self.adapters.get(provider)
        table = self.tables.get(provider)
        if adapter is None or table is None:
            raise StatusQueryError(
                f"No status mapping for provider: {provider.value}",
                error_code="UNKNOWN_PROVIDER",
                provider=provider.value,
            )

        payload = await adapter.fetch_status(job_id)
        status = table.normalize(payload)

        logger.info(
            f"{provider.value} job {job_id}: {status.raw_status} -> {status.phase.value}"
        )
        return status
