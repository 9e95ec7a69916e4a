"""
Shotstack Adapter - asset composition renders

Serializes a TimelineDescription into Shotstack's edit schema and submits it
to the render endpoint. Shotstack stacks tracks top-down, so the overlay
track is sent first and renders above the photos.

API Documentation: https://shotstack.io/docs/api/
"""

import logging
from typing import Optional
from urllib.parse import quote

from core.errors import SubmissionError
from services.composition.timeline import (
    Clip,
    SourceKind,
    TimelineDescription,
)

from .client import (
    ERROR_BODY_CHARS,
    LOG_BODY_CHARS,
    ProviderAdapter,
    is_success,
    looks_like_html,
    submission_error,
)
from .models import GenerationRequest, Provider, RenderJob, SubmissionResult

logger = logging.getLogger(__name__)


def _transition(clip: Clip) -> Optional[dict]:
    treatment = clip.treatment
    transition = {}
    if treatment.transition_in:
        transition["in"] = treatment.transition_in
    if treatment.transition_out:
        transition["out"] = treatment.transition_out
    return transition or None


def serialize_clip(clip: Clip) -> dict:
    """Map one timeline clip onto a Shotstack clip."""
    if clip.source_kind == SourceKind.IMAGE:
        data = {
            "asset": {"type": "image", "src": clip.source_url},
            "start": clip.start,
            "length": clip.length,
        }
        if clip.treatment.fit:
            data["fit"] = clip.treatment.fit
        if clip.treatment.effect:
            data["effect"] = clip.treatment.effect
    else:
        data = {
            "asset": {
                "type": "html",
                "html": clip.markup,
                "width": clip.width,
                "height": clip.height,
            },
            "start": clip.start,
            "length": clip.length,
        }
        if clip.placement:
            data["position"] = clip.placement.position
            if clip.placement.offset_x or clip.placement.offset_y:
                data["offset"] = {
                    "x": clip.placement.offset_x,
                    "y": clip.placement.offset_y,
                }

    transition = _transition(clip)
    if transition:
        data["transition"] = transition
    return data


def build_edit(timeline: TimelineDescription) -> dict:
    """Build the full Shotstack edit request body."""
    config = timeline.config
    return {
        "timeline": {
            "background": config.background,
            "tracks": [
                {"clips": [serialize_clip(clip) for clip in track.clips]}
                for track in timeline.tracks
            ],
        },
        "output": {
            "format": config.output_format,
            "resolution": config.resolution,
            "aspectRatio": config.aspect_ratio,
            "fps": config.fps,
        },
    }


class ShotstackAdapter(ProviderAdapter):
    """Adapter for the Shotstack Edit API."""

    provider = Provider.SHOTSTACK
    consumes_timeline = True

    def _auth_headers(self, api_key: str) -> dict:
        return {"x-api-key": api_key}

    def _status_url(self, job_id: str) -> str:
        return f"{self.config.api.shotstack_url}/render/{quote(job_id, safe='')}"

    async def submit_timeline(self, timeline: TimelineDescription) -> str:
        """
        Submit a composed timeline for rendering.

        Returns:
            The Shotstack render id

        Raises:
            ConfigurationError: SHOTSTACK_API_KEY missing
            SubmissionError: Rejected, HTML/non-JSON body, or no render id
        """
        api_key = self.config.require_api_key(self.provider.value)
        edit = build_edit(timeline)

        logger.info(
            f"Shotstack render request: {timeline.clip_count} images, "
            f"{timeline.total_duration:.1f}s"
        )

        response = await self._send(
            "POST",
            f"{self.config.api.shotstack_url}/render",
            SubmissionError,
            json=edit,
            headers={**self._auth_headers(api_key), "Content-Type": "application/json"},
        )

        text = response.text
        logger.info(f"Shotstack response ({response.status_code}): {text[:LOG_BODY_CHARS]}")

        if looks_like_html(text):
            raise self._html_error(SubmissionError, text)

        if not is_success(response):
            logger.error(f"Shotstack API error: {text[:ERROR_BODY_CHARS]}")
            raise submission_error(
                self.provider,
                f"Failed to start video rendering: {text[:ERROR_BODY_CHARS]}",
                f"HTTP_{response.status_code}",
                text,
            )

        data = self._decode_success_body(text, SubmissionError)
        payload = data.get("response")
        job_id = payload.get("id") if isinstance(payload, dict) else None

        if not job_id:
            logger.error(f"No job ID in Shotstack response: {text[:LOG_BODY_CHARS]}")
            raise submission_error(
                self.provider,
                "Failed to get job ID from video service",
                "NO_JOB_ID",
                text,
            )

        logger.info(f"Shotstack render queued: {job_id}")
        return str(job_id)

    async def submit(
        self,
        request: GenerationRequest,
        timeline: Optional[TimelineDescription] = None,
    ) -> SubmissionResult:
        if timeline is None:
            raise ValueError("Shotstack submissions need a composed timeline")

        job_id = await self.submit_timeline(timeline)
        return SubmissionResult(
            job=RenderJob(provider=self.provider, provider_job_id=job_id),
            total_images=timeline.clip_count,
            estimated_duration_seconds=round(timeline.total_duration),
            estimated_time_seconds=self.config.shotstack.estimated_render_seconds,
        )
