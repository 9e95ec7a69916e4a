"""
Luma Adapter - keyframe interpolation renders

Luma synthesizes motion between a start frame and an end frame, so instead
of a timeline it works on segments: every consecutive photo pair.

Only the first segment is submitted. The time estimate still covers every
segment so callers know what a full walkthrough would cost; chaining the
remaining segments is not done here.

API Documentation: https://docs.lumalabs.ai/docs/api
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional
from urllib.parse import quote

from core.config import KeyframeConfig
from core.errors import SubmissionError

from .client import (
    ERROR_BODY_CHARS,
    LOG_BODY_CHARS,
    ProviderAdapter,
    is_success,
    parse_json_body,
    submission_error,
)
from .models import GenerationRequest, Provider, RenderJob, SubmissionResult

if TYPE_CHECKING:
    from services.composition.timeline import TimelineDescription

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Segment:
    """A start/end frame pair for one interpolated shot."""
    index: int
    total: int
    start_frame: str
    end_frame: str

    @property
    def framing(self) -> str:
        if self.index == 0:
            return "Opening"
        if self.index == self.total - 1:
            return "Closing"
        return "Middle"


def build_segments(images: list[str]) -> list[Segment]:
    """(images[i], images[i+1]) for every i in [0, n-2]."""
    total = max(len(images) - 1, 0)
    return [
        Segment(index=i, total=total, start_frame=images[i], end_frame=images[i + 1])
        for i in range(total)
    ]


def build_prompt(segment: Segment, style: str, config: KeyframeConfig) -> str:
    camera_move = config.camera_moves[segment.index % 2]
    return (
        f"{segment.framing} shot of a {style} property walkthrough, {camera_move}, "
        f"smooth cinematic motion, photorealistic real estate video"
    )


def build_generation(segment: Segment, style: str, config: KeyframeConfig) -> dict:
    """Luma generation request body for one segment."""
    return {
        "prompt": build_prompt(segment, style, config),
        "aspect_ratio": config.aspect_ratio,
        "loop": False,
        "keyframes": {
            "frame0": {"type": "image", "url": segment.start_frame},
            "frame1": {"type": "image", "url": segment.end_frame},
        },
    }


def extract_error_message(text: str) -> str:
    """Best diagnostic from an error body: detail/message/error, else raw text."""
    data = parse_json_body(text)
    if isinstance(data, dict):
        for key in ("detail", "message", "error"):
            value = data.get(key)
            if value:
                return value if isinstance(value, str) else str(value)
    return text[:ERROR_BODY_CHARS]


class LumaAdapter(ProviderAdapter):
    """Adapter for the Luma Dream Machine generations API."""

    provider = Provider.LUMA
    consumes_timeline = False

    def _auth_headers(self, api_key: str) -> dict:
        return {"Authorization": f"Bearer {api_key}"}

    def _status_url(self, job_id: str) -> str:
        return f"{self.config.api.luma_api_base.rstrip('/')}/generations/{quote(job_id, safe='')}"

    async def submit_segment(self, segment: Segment, style: str) -> str:
        """
        Submit one segment for interpolation.

        Returns:
            The Luma generation id

        Raises:
            ConfigurationError: LUMA_API_KEY missing
            SubmissionError: Rejected, non-JSON body, or no generation id
        """
        api_key = self.config.require_api_key(self.provider.value)
        payload = build_generation(segment, style, self.config.keyframe)

        logger.info(
            f"Luma generation request: segment {segment.index + 1}/{segment.total}, "
            f"prompt={payload['prompt'][:50]}..."
        )

        response = await self._send(
            "POST",
            f"{self.config.api.luma_api_base.rstrip('/')}/generations",
            SubmissionError,
            json=payload,
            headers={
                **self._auth_headers(api_key),
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )

        text = response.text
        logger.info(f"Luma response ({response.status_code}): {text[:LOG_BODY_CHARS]}")

        if not is_success(response):
            message = extract_error_message(text)
            logger.error(f"Luma API error: {message}")
            raise submission_error(
                self.provider,
                f"Luma API error: {message}",
                f"HTTP_{response.status_code}",
                text,
            )

        data = self._decode_success_body(text, SubmissionError)
        job_id = data.get("id")
        if not job_id:
            raise submission_error(
                self.provider,
                "Failed to get generation ID from Luma",
                "NO_JOB_ID",
                text,
            )

        logger.info(f"Luma generation created: {job_id}")
        return str(job_id)

    async def submit(
        self,
        request: GenerationRequest,
        timeline: Optional["TimelineDescription"] = None,
    ) -> SubmissionResult:
        segments = build_segments(request.images)
        if not segments:
            raise ValueError("Keyframe renders need at least two images")

        job_id = await self.submit_segment(segments[0], request.style_options.style)

        keyframe = self.config.keyframe
        return SubmissionResult(
            job=RenderJob(provider=self.provider, provider_job_id=job_id),
            total_segments=len(segments),
            estimated_duration_seconds=keyframe.segment_duration_seconds * len(segments),
            estimated_time_seconds=keyframe.segment_render_seconds * len(segments),
            message=f"Property walkthrough started (segment 1 of {len(segments)})",
        )
