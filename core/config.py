"""
Configuration management for listing video generation.

Centralizes all configuration including:
- Provider API keys and endpoints
- Timeline composition constants
- Keyframe segment settings
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from .errors import ConfigurationError


@dataclass
class APIConfig:
    """API configuration for the render providers."""

    # Asset-composition provider (Shotstack)
    shotstack_api_key: str = field(default_factory=lambda: os.getenv("SHOTSTACK_API_KEY", ""))
    shotstack_api_base: str = field(
        default_factory=lambda: os.getenv("SHOTSTACK_API_BASE", "https://api.shotstack.io")
    )
    # "stage" for sandbox keys, "v1" for production keys
    shotstack_env: str = field(default_factory=lambda: os.getenv("SHOTSTACK_ENV", "stage"))

    # Keyframe-interpolation provider (Luma Dream Machine)
    luma_api_key: str = field(default_factory=lambda: os.getenv("LUMA_API_KEY", ""))
    luma_api_base: str = field(
        default_factory=lambda: os.getenv("LUMA_API_BASE", "https://api.lumalabs.ai/dream-machine/v1")
    )

    http_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("HTTP_TIMEOUT_SECONDS", "60"))
    )

    @property
    def shotstack_url(self) -> str:
        return f"{self.shotstack_api_base.rstrip('/')}/{self.shotstack_env}"


@dataclass(frozen=True)
class CompositionConfig:
    """
    Fixed constants for the slideshow timeline.

    Injected into the composer so tests can override timing without
    touching module internals.
    """

    clip_duration: float = 3.0
    transition_overlap: float = 0.5
    min_images: int = 5

    # Output
    output_format: str = "mp4"
    resolution: str = "hd"  # 1080p
    aspect_ratio: str = "9:16"  # Vertical for social media
    fps: int = 30
    frame_width: int = 1080
    frame_height: int = 1920
    background: str = "#000000"

    # Image clips
    image_fit: str = "cover"
    image_effect: str = "zoomIn"  # Ken Burns
    edge_transition: str = "fade"
    inner_transition: str = "slideLeft"

    # Text overlays
    address_start: float = 0.3
    address_duration: float = 4.5
    stats_duration: float = 3.5
    cta_lead: float = 3.5  # seconds before the end
    cta_duration: float = 3.0
    cta_text: str = "Book Your Viewing"

    def __post_init__(self):
        if self.clip_duration <= 0:
            raise ValueError("clip_duration must be positive")
        if not 0 <= self.transition_overlap < self.clip_duration:
            raise ValueError("transition_overlap must be in [0, clip_duration)")
        if self.min_images < 2:
            raise ValueError("min_images must be at least 2")

    @property
    def clip_stride(self) -> float:
        """Offset between the starts of consecutive image clips."""
        return self.clip_duration - self.transition_overlap

    def total_duration(self, clip_count: int) -> float:
        return clip_count * self.clip_duration - (clip_count - 1) * self.transition_overlap


@dataclass
class ShotstackConfig:
    """Asset-composition provider settings."""
    estimated_render_seconds: int = 60  # Typically faster than keyframe renders


@dataclass
class KeyframeConfig:
    """Keyframe-interpolation provider settings."""
    aspect_ratio: str = "9:16"
    segment_duration_seconds: int = 5  # Footage per start/end frame pair
    segment_render_seconds: int = 90  # Approximate provider time per segment
    camera_moves: tuple = (
        "slow forward dolly",
        "gentle lateral pan",
    )


@dataclass
class Config:
    """Main configuration class."""

    api: APIConfig = field(default_factory=APIConfig)
    composition: CompositionConfig = field(default_factory=CompositionConfig)
    shotstack: ShotstackConfig = field(default_factory=ShotstackConfig)
    keyframe: KeyframeConfig = field(default_factory=KeyframeConfig)

    default_provider: str = field(
        default_factory=lambda: os.getenv("DEFAULT_VIDEO_PROVIDER", "shotstack")
    )

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls()

    def api_key_for(self, provider: str) -> str:
        keys = {
            "shotstack": self.api.shotstack_api_key,
            "luma": self.api.luma_api_key,
        }
        return keys.get(provider, "")

    def require_api_key(self, provider: str) -> str:
        """Return the provider's credential or raise ConfigurationError."""
        key = self.api_key_for(provider)
        if not key:
            env_var = f"{provider.upper()}_API_KEY"
            raise ConfigurationError(
                f"Video service not configured. Please add {env_var} secret.",
                error_code="MISSING_CREDENTIAL",
                provider=provider,
            )
        return key

    def validate(self) -> list[str]:
        """Validate configuration and return list of issues."""
        issues = []

        if not self.api.shotstack_api_key:
            issues.append("SHOTSTACK_API_KEY not configured (needed for slideshow renders)")

        if not self.api.luma_api_key:
            issues.append("LUMA_API_KEY not configured (needed for keyframe renders)")

        if self.api.shotstack_env not in ("stage", "v1"):
            issues.append(f"SHOTSTACK_ENV must be 'stage' or 'v1', got '{self.api.shotstack_env}'")

        if self.default_provider not in ("shotstack", "luma"):
            issues.append(f"Unknown DEFAULT_VIDEO_PROVIDER '{self.default_provider}'")

        return issues


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reload_config():
    """Reload configuration from environment."""
    global _config
    _config = Config.from_env()
