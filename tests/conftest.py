"""
Shared fixtures for the listing video tests.

Provider HTTP traffic is replaced by an AsyncMock standing in for
httpx.AsyncClient; responses are real httpx.Response objects.
"""

import os
import sys
from unittest.mock import AsyncMock

import httpx
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.circuit_breaker import CircuitBreaker
from core.config import APIConfig, Config
from services.video_generation.models import GenerationRequest

IMAGES = [f"https://cdn.example.com/listing/photo-{i}.jpg" for i in range(1, 7)]


def make_response(status_code: int = 200, json_body=None, text: str = None) -> httpx.Response:
    if json_body is not None:
        return httpx.Response(status_code, json=json_body)
    return httpx.Response(status_code, text=text or "")


@pytest.fixture(autouse=True)
def reset_breakers():
    """Circuit breakers are process-wide; isolate them per test."""
    CircuitBreaker.reset_all()
    yield
    CircuitBreaker.reset_all()


@pytest.fixture
def config():
    return Config(
        api=APIConfig(
            shotstack_api_key="shotstack-test-key",
            shotstack_api_base="https://api.shotstack.io",
            shotstack_env="stage",
            luma_api_key="luma-test-key",
            luma_api_base="https://api.lumalabs.ai/dream-machine/v1",
        ),
        default_provider="shotstack",
    )


@pytest.fixture
def unconfigured():
    return Config(
        api=APIConfig(shotstack_api_key="", luma_api_key=""),
        default_provider="shotstack",
    )


@pytest.fixture
def http_client():
    client = AsyncMock()
    client.request.return_value = make_response(200, {"success": True, "response": {"id": "render-123"}})
    return client


@pytest.fixture
def payload():
    return {
        "images": list(IMAGES),
        "propertyFacts": {
            "address": "123 Main St, Springfield",
            "price": "850000",
            "bedCount": 3,
            "bathCount": 2,
            "description": "Renovated family home close to parks",
        },
        "styleOptions": {"style": "luxury", "voice": "female", "music": "ambient"},
    }


@pytest.fixture
def generation_request(payload):
    return GenerationRequest.from_payload(payload)
