"""
Job Orchestrator

Facade over composition, submission and status polling.

    Submitting -> Processing -> Done | Failed

Submitting only exists while the composer and adapter run. The orchestrator
keeps nothing between a submission and a later poll: callers hold the
RenderJob (or just provider + job id) and decide how often to poll.
"""

import logging
from typing import Any, Optional, Union

import httpx

from core.config import Config, get_config
from core.errors import ConfigurationError
from services.composition.timeline import compose
from services.video_generation.client import ProviderAdapter
from services.video_generation.luma import LumaAdapter
from services.video_generation.models import (
    GenerationRequest,
    JobPhase,
    Provider,
    RenderJob,
    SubmissionResult,
    UnifiedStatus,
)
from services.video_generation.shotstack import ShotstackAdapter
from services.video_generation.status import StatusNormalizer

logger = logging.getLogger(__name__)


class JobOrchestrator:
    """
    Entry point for listing video jobs.

    Usage:
        orchestrator = JobOrchestrator()

        result = await orchestrator.submit(payload)
        status = await orchestrator.poll("shotstack", result.job.provider_job_id)

        # Or keep the handle and fold statuses into it
        phase = await orchestrator.refresh(result.job)
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        adapters: Optional[dict[Provider, ProviderAdapter]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or get_config()
        self.adapters = adapters or {
            Provider.SHOTSTACK: ShotstackAdapter(self.config, http_client),
            Provider.LUMA: LumaAdapter(self.config, http_client),
        }
        self.normalizer = StatusNormalizer(self.adapters)

    async def close(self):
        for adapter in self.adapters.values():
            await adapter.close()

    def _adapter_for(self, provider: Union[Provider, str, None]) -> ProviderAdapter:
        provider = Provider.parse(provider or self.config.default_provider)
        adapter = self.adapters.get(provider)
        if adapter is None:
            raise ConfigurationError(
                f"No adapter registered for provider: {provider.value}",
                error_code="NO_ADAPTER",
                provider=provider.value,
            )
        return adapter

    async def submit(
        self,
        request: Union[GenerationRequest, dict[str, Any]],
        provider: Union[Provider, str, None] = None,
    ) -> SubmissionResult:
        """
        Validate a request, compose if the provider needs it, and submit.

        Validation happens before any provider call, so bad input never
        consumes provider quota.

        Raises:
            ValidationError: Bad input (no provider call was made)
            ConfigurationError: Provider credential or adapter missing
            SubmissionError: Provider rejected the render
        """
        min_images = self.config.composition.min_images
        if isinstance(request, GenerationRequest):
            request.validate(min_images)
        else:
            request = GenerationRequest.from_payload(request, min_images)

        adapter = self._adapter_for(provider)
        phase = JobPhase.SUBMITTING

        logger.info(
            f"Job {phase.value}: provider={adapter.provider.value}, "
            f"images={len(request.images)}, property={request.property_facts.address}"
        )

        timeline = None
        if adapter.consumes_timeline:
            timeline = compose(
                request.images,
                request.property_facts,
                request.style_options,
                self.config.composition,
            )

        result = await adapter.submit(request, timeline)

        logger.info(
            f"Job {result.job.provider_job_id} {result.job.phase.value} "
            f"via {adapter.provider.value}: ~{result.estimated_duration_seconds}s video, "
            f"~{result.estimated_time_seconds}s to render"
        )
        return result

    async def poll(self, provider: Union[Provider, str], job_id: str) -> UnifiedStatus:
        """
        Fresh status for a job, straight from the provider.

        Raises:
            ValidationError: Unknown provider tag
            StatusQueryError: The provider could not be asked or understood
        """
        return await self.normalizer.poll(Provider.parse(provider), job_id)

    async def refresh(self, job: RenderJob) -> JobPhase:
        """
        Poll a held job and fold the result into it.

        Terminal jobs are returned as-is without a provider call.
        """
        if job.phase.is_terminal:
            return job.phase

        status = await self.poll(job.provider, job.provider_job_id)
        return job.apply(status)
