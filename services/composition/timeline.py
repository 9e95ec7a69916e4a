"""
Timeline Composer

Turns an ordered list of listing photos plus property facts into a
provider-agnostic timeline: one track of image clips and one track of text
overlays, with all timing derived from CompositionConfig.

Timing rules:
- Image clip i starts at i * (clip_duration - transition_overlap), so
  neighbours overlap by exactly transition_overlap and the track has no gaps
- total = n * clip_duration - (n - 1) * transition_overlap
- Every overlay ends at or before total
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from core.config import CompositionConfig
from core.errors import ConfigurationError, ValidationError

from .overlays import (
    address_markup,
    call_to_action_markup,
    parse_address,
    stats_markup,
)

if TYPE_CHECKING:
    from services.video_generation.models import PropertyFacts, StyleOptions

logger = logging.getLogger(__name__)


class SourceKind(str, Enum):
    IMAGE = "image"
    TEXT_OVERLAY = "textOverlay"


@dataclass(frozen=True)
class VisualTreatment:
    """How a clip is framed, animated and transitioned."""
    fit: Optional[str] = None
    effect: Optional[str] = None
    transition_in: Optional[str] = None
    transition_out: Optional[str] = None


@dataclass(frozen=True)
class Placement:
    """Anchor position plus a directional offset (fractions of the frame)."""
    position: str
    offset_x: float = 0.0
    offset_y: float = 0.0


@dataclass(frozen=True)
class Clip:
    """A single timed visual or text element."""
    source_kind: SourceKind
    start: float
    length: float
    treatment: VisualTreatment = field(default_factory=VisualTreatment)
    source_url: Optional[str] = None

    # Text overlays only
    markup: Optional[str] = None
    placement: Optional[Placement] = None
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def end(self) -> float:
        return self.start + self.length


@dataclass(frozen=True)
class Track:
    name: str
    clips: tuple[Clip, ...]


@dataclass(frozen=True)
class TimelineDescription:
    """
    Declarative render description.

    Tracks are ordered top-most first: overlays render above images.
    """
    tracks: tuple[Track, ...]
    total_duration: float
    clip_count: int
    config: CompositionConfig

    def track(self, name: str) -> Track:
        for track in self.tracks:
            if track.name == name:
                return track
        raise KeyError(name)

    @property
    def image_track(self) -> Track:
        return self.track("images")

    @property
    def overlay_track(self) -> Track:
        return self.track("overlays")


def validate_images(images: Any, min_images: int) -> list[str]:
    """
    Check the image list before anything is sent to a provider.

    Raises:
        ValidationError: Too few images, or an entry that is not an HTTP(S) URL
    """
    if not isinstance(images, (list, tuple)) or len(images) < min_images:
        count = len(images) if isinstance(images, (list, tuple)) else 0
        raise ValidationError(
            f"Need at least {min_images} images",
            error_code="TOO_FEW_IMAGES",
            details=f"Got {count}",
        )

    for index, url in enumerate(images):
        if not isinstance(url, str) or not url.lower().startswith(("http://", "https://")):
            raise ValidationError(
                "Images must be URLs, not base64 data",
                error_code="INVALID_IMAGE_URL",
                details=f"Image {index} is not an http(s) URL",
            )

    return list(images)


def build_image_clips(images: list[str], config: CompositionConfig) -> list[Clip]:
    """One clip per photo, fading at the edges and sliding in between."""
    last = len(images) - 1
    clips = []
    for index, url in enumerate(images):
        clips.append(Clip(
            source_kind=SourceKind.IMAGE,
            start=index * config.clip_stride,
            length=config.clip_duration,
            source_url=url,
            treatment=VisualTreatment(
                fit=config.image_fit,
                effect=config.image_effect,
                transition_in=config.edge_transition if index == 0 else config.inner_transition,
                transition_out=config.edge_transition if index == last else config.inner_transition,
            ),
        ))
    return clips


def _fit_overlay(start: float, length: float, total: float) -> tuple[float, float]:
    """Clamp an overlay into [0, total]."""
    start = max(0.0, start)
    length = min(length, total - start)
    if length <= 0:
        raise ConfigurationError(
            f"Overlay at {start:.2f}s does not fit a {total:.2f}s timeline",
            error_code="OVERLAY_DOES_NOT_FIT",
        )
    return start, length


def build_overlay_clips(
    facts: "PropertyFacts",
    total: float,
    config: CompositionConfig,
) -> list[Clip]:
    """Address block, price/bed/bath block and closing call to action."""
    address = parse_address(facts.address)
    overlays = []

    start, length = _fit_overlay(config.address_start, config.address_duration, total)
    overlays.append(Clip(
        source_kind=SourceKind.TEXT_OVERLAY,
        start=start,
        length=length,
        markup=address_markup(address),
        placement=Placement(position="bottom"),
        width=config.frame_width,
        height=300,
        treatment=VisualTreatment(transition_in="fade", transition_out="fade"),
    ))

    start, length = _fit_overlay(total / 2, config.stats_duration, total)
    overlays.append(Clip(
        source_kind=SourceKind.TEXT_OVERLAY,
        start=start,
        length=length,
        markup=stats_markup(facts.price, facts.bed_count, facts.bath_count),
        placement=Placement(position="center"),
        width=900,
        height=220,
        treatment=VisualTreatment(transition_in="fade", transition_out="fade"),
    ))

    start, length = _fit_overlay(total - config.cta_lead, config.cta_duration, total)
    overlays.append(Clip(
        source_kind=SourceKind.TEXT_OVERLAY,
        start=start,
        length=length,
        markup=call_to_action_markup(config.cta_text),
        placement=Placement(position="center", offset_y=0.15),
        width=900,
        height=160,
        treatment=VisualTreatment(transition_in="slideUp", transition_out="fade"),
    ))

    return overlays


def compose(
    images: list[str],
    facts: "PropertyFacts",
    style: Optional["StyleOptions"] = None,
    config: Optional[CompositionConfig] = None,
) -> TimelineDescription:
    """
    Compose the slideshow timeline for a listing.

    Args:
        images: Ordered photo URLs (at least config.min_images)
        facts: Property facts for the overlays
        style: Presentation options (not consumed by the slideshow layout)
        config: Timing and output constants

    Returns:
        TimelineDescription with overlay and image tracks

    Raises:
        ValidationError: Too few images or a non-URL entry
        ConfigurationError: Timing too short for an overlay
    """
    config = config or CompositionConfig()
    images = validate_images(images, config.min_images)

    image_clips = build_image_clips(images, config)
    total = config.total_duration(len(image_clips))
    overlay_clips = build_overlay_clips(facts, total, config)

    logger.debug(
        f"Composed timeline: {len(image_clips)} clips, {total:.1f}s, "
        f"style={style.style if style else 'default'}"
    )

    return TimelineDescription(
        tracks=(
            Track(name="overlays", clips=tuple(overlay_clips)),
            Track(name="images", clips=tuple(image_clips)),
        ),
        total_duration=total,
        clip_count=len(image_clips),
        config=config,
    )
