"""
Composition Services

Pure timeline composition for listing slideshows.
"""

from .overlays import ParsedAddress, format_price, parse_address
from .timeline import (
    Clip,
    Placement,
    SourceKind,
    TimelineDescription,
    Track,
    VisualTreatment,
    compose,
    validate_images,
)

__all__ = [
    "Clip",
    "ParsedAddress",
    "Placement",
    "SourceKind",
    "TimelineDescription",
    "Track",
    "VisualTreatment",
    "compose",
    "format_price",
    "parse_address",
    "validate_images",
]
