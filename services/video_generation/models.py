"""
Data model for listing video generation.

Requests come in as photos plus property facts, leave as a RenderJob handle,
and are later observed through UnifiedStatus projections of the provider's
latest response.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from core.errors import ValidationError
from services.composition.timeline import validate_images


class Provider(str, Enum):
    """Render providers, selected by explicit tag."""
    SHOTSTACK = "shotstack"  # Asset composition (timeline of clips)
    LUMA = "luma"            # Keyframe interpolation (start/end frame pairs)

    @classmethod
    def parse(cls, value: Any) -> "Provider":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError(
                f"Unknown video provider: {value}",
                error_code="UNKNOWN_PROVIDER",
                details=f"Expected one of: {', '.join(p.value for p in cls)}",
            )


class JobPhase(str, Enum):
    """Lifecycle of a single render job."""
    SUBMITTING = "submitting"  # Transient, never reported to callers
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobPhase.DONE, JobPhase.FAILED)


_PRICE_NOISE = re.compile(r"[\s$,]")


@dataclass
class PropertyFacts:
    """Descriptive facts shown in the video overlays."""
    address: str
    price: float
    bed_count: Union[int, float]
    bath_count: Union[int, float]
    description: str

    @classmethod
    def from_payload(cls, data: Optional[dict]) -> "PropertyFacts":
        if not isinstance(data, dict):
            raise ValidationError("Property details are required", error_code="MISSING_PROPERTY")

        address = str(data.get("address") or "").strip()
        if not address:
            raise ValidationError("Property address is required", error_code="MISSING_ADDRESS")

        description = str(data.get("description") or "").strip()
        if not description:
            raise ValidationError("Property description is required", error_code="MISSING_DESCRIPTION")

        return cls(
            address=address,
            price=_parse_price(data.get("price")),
            bed_count=_parse_count(data.get("bedCount"), "bedCount"),
            bath_count=_parse_count(data.get("bathCount"), "bathCount"),
            description=description,
        )


def _parse_price(raw: Any) -> float:
    """Accept 850000, "850000" or "$850,000"."""
    try:
        value = float(_PRICE_NOISE.sub("", str(raw)))
    except (TypeError, ValueError):
        raise ValidationError(
            "Property price must be a number",
            error_code="INVALID_PRICE",
            details=f"Got: {raw!r}",
        )
    if value < 0 or not math.isfinite(value):
        raise ValidationError("Property price must be a number", error_code="INVALID_PRICE")
    return value


def _parse_count(raw: Any, name: str) -> Union[int, float]:
    """Room counts. Fractions are kept as given, so 2.5 baths stays 2.5."""
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError):
        raise ValidationError(
            f"{name} must be a number",
            error_code="INVALID_COUNT",
            details=f"Got: {raw!r}",
        )
    if value < 0 or not math.isfinite(value):
        raise ValidationError(f"{name} must be a non-negative number", error_code="INVALID_COUNT")
    return int(value) if value.is_integer() else value


@dataclass
class StyleOptions:
    """Presentation options. Only `style` feeds the keyframe prompts today."""
    style: str = "modern"
    voice: Optional[str] = None
    music: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Optional[dict]) -> "StyleOptions":
        data = data or {}
        return cls(
            style=str(data.get("style") or "modern"),
            voice=data.get("voice"),
            music=data.get("music"),
        )


@dataclass
class GenerationRequest:
    """Request for a listing walkthrough video."""
    images: list[str]
    property_facts: PropertyFacts
    style_options: StyleOptions = field(default_factory=StyleOptions)

    @classmethod
    def from_payload(cls, payload: dict, min_images: int = 5) -> "GenerationRequest":
        """
        Build and validate a request from its JSON shape:
        `{images, propertyFacts: {...}, styleOptions: {...}}`.
        """
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object", error_code="INVALID_BODY")

        images = validate_images(payload.get("images"), min_images)
        return cls(
            images=images,
            property_facts=PropertyFacts.from_payload(payload.get("propertyFacts")),
            style_options=StyleOptions.from_payload(payload.get("styleOptions")),
        )

    def validate(self, min_images: int = 5):
        """Re-check invariants on a directly constructed request."""
        validate_images(self.images, min_images)
        if not self.property_facts.address.strip():
            raise ValidationError("Property address is required", error_code="MISSING_ADDRESS")
        if not self.property_facts.description.strip():
            raise ValidationError("Property description is required", error_code="MISSING_DESCRIPTION")


@dataclass
class UnifiedStatus:
    """
    Provider-agnostic view of a render job.

    A pure projection of one provider response: never cached, never stored.
    """
    phase: JobPhase
    raw_status: Optional[str] = None
    output_url: Optional[str] = None
    failure_reason: Optional[str] = None

    def __post_init__(self):
        if self.phase == JobPhase.SUBMITTING:
            raise ValueError("SUBMITTING is not an observable status")
        # A URL next to a non-terminal status may point at a half-written asset
        if self.phase != JobPhase.DONE:
            self.output_url = None
        if self.phase != JobPhase.FAILED:
            self.failure_reason = None

    @classmethod
    def processing(cls, raw_status: Optional[str] = None) -> "UnifiedStatus":
        return cls(JobPhase.PROCESSING, raw_status=raw_status)

    @classmethod
    def done(cls, output_url: str, raw_status: Optional[str] = None) -> "UnifiedStatus":
        return cls(JobPhase.DONE, raw_status=raw_status, output_url=output_url)

    @classmethod
    def failed(cls, reason: Optional[str] = None, raw_status: Optional[str] = None) -> "UnifiedStatus":
        return cls(JobPhase.FAILED, raw_status=raw_status, failure_reason=reason)

    @property
    def is_terminal(self) -> bool:
        return self.phase.is_terminal

    def to_response(self) -> dict:
        body = {
            "status": self.phase.value,
            "videoUrl": self.output_url,
            "rawStatus": self.raw_status,
        }
        if self.phase == JobPhase.FAILED:
            body["failureReason"] = self.failure_reason
        return body


@dataclass
class RenderJob:
    """
    Caller-held handle for one submitted render.

    The phase only moves forward; once Done or Failed, later observations
    are ignored.
    """
    provider: Provider
    provider_job_id: str
    submitted_at: datetime = field(default_factory=datetime.utcnow)
    phase: JobPhase = JobPhase.PROCESSING
    output_url: Optional[str] = None
    failure_reason: Optional[str] = None

    def apply(self, status: UnifiedStatus) -> JobPhase:
        """Fold a fresh status into the handle and return the resulting phase."""
        if self.phase.is_terminal:
            return self.phase

        self.phase = status.phase
        if status.phase == JobPhase.DONE:
            self.output_url = status.output_url
        elif status.phase == JobPhase.FAILED:
            self.failure_reason = status.failure_reason
        return self.phase


@dataclass
class SubmissionResult:
    """What a successful submission reports back to the caller."""
    job: RenderJob
    estimated_duration_seconds: int
    estimated_time_seconds: int
    total_images: Optional[int] = None
    total_segments: Optional[int] = None
    message: str = "Property walkthrough video generation started"

    def to_response(self) -> dict:
        body = {
            "success": True,
            "jobId": self.job.provider_job_id,
            "provider": self.job.provider.value,
            "message": self.message,
            "estimatedDurationSeconds": self.estimated_duration_seconds,
            "estimatedTimeSeconds": self.estimated_time_seconds,
        }
        if self.total_images is not None:
            body["totalImages"] = self.total_images
        if self.total_segments is not None:
            body["totalSegments"] = self.total_segments
        return body
