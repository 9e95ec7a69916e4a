"""
Configuration tests.
"""

import pytest

from core.config import APIConfig, Config, CompositionConfig, get_config, reload_config
from core.errors import ConfigurationError


def test_environment_defaults(monkeypatch):
    for var in ("SHOTSTACK_API_KEY", "SHOTSTACK_API_BASE", "SHOTSTACK_ENV", "LUMA_API_KEY", "LUMA_API_BASE",
                "DEFAULT_VIDEO_PROVIDER"):
        monkeypatch.delenv(var, raising=False)

    config = Config.from_env()

    assert config.api.shotstack_url == "https://api.shotstack.io/stage"
    assert config.api.luma_api_base == "https://api.lumalabs.ai/dream-machine/v1"
    assert config.default_provider == "shotstack"
    assert len(config.validate()) == 2


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SHOTSTACK_API_KEY", "sk-live")
    monkeypatch.setenv("SHOTSTACK_ENV", "v1")
    monkeypatch.setenv("LUMA_API_KEY", "luma-live")
    monkeypatch.setenv("DEFAULT_VIDEO_PROVIDER", "luma")
    monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "15")

    reload_config()
    config = get_config()

    assert config.api.shotstack_url == "https://api.shotstack.io/v1"
    assert config.api.http_timeout_seconds == 15.0
    assert config.default_provider == "luma"
    assert config.validate() == []

    monkeypatch.undo()
    reload_config()


def test_validate_flags_bad_values(config):
    config.api.shotstack_env = "prod"
    config.default_provider = "runway"

    issues = config.validate()
    assert any("SHOTSTACK_ENV" in i for i in issues)
    assert any("DEFAULT_VIDEO_PROVIDER" in i for i in issues)


def test_require_api_key(config, unconfigured):
    assert config.require_api_key("luma") == "luma-test-key"

    with pytest.raises(ConfigurationError) as exc:
        unconfigured.require_api_key("luma")

    assert exc.value.message == "Video service not configured. Please add LUMA_API_KEY secret."
    assert exc.value.error_code == "MISSING_CREDENTIAL"
    assert exc.value.http_status == 500


def test_shotstack_url_trims_trailing_slash():
    api = APIConfig(shotstack_api_base="https://api.shotstack.io/", shotstack_env="stage")
    assert api.shotstack_url == "https://api.shotstack.io/stage"


def test_composition_stride():
    config = CompositionConfig()
    assert config.clip_stride == 2.5
    assert config.total_duration(5) == 12.0
