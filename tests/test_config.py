import pytest
from django.core.exceptions import ImproperlyConfigured
from django.test import override_settings

from src.application.playback.config import PlaybackConfig


def test_defaults():
    config = PlaybackConfig(token_secret="s")
    assert config.max_concurrent_sessions == 3
    assert config.session_timeout_seconds == 1800
    assert config.low_buffer_threshold == 5
    assert config.high_buffer_threshold == 15
    assert config.watch_history_ttl_seconds is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"token_secret": ""},
        {"token_secret": "s", "max_concurrent_sessions": 0},
        {"token_secret": "s", "session_timeout_seconds": 100, "max_session_duration_seconds": 100},
        {"token_secret": "s", "low_buffer_threshold": 20, "high_buffer_threshold": 10},
    ],
)
def test_invalid_config_is_rejected(kwargs):
    with pytest.raises(ImproperlyConfigured):
        PlaybackConfig(**kwargs)


def test_from_settings_falls_back_to_secret_key():
    with override_settings(VIDEO_MAX_CONCURRENT_SESSIONS=5, VIDEO_WATCH_HISTORY_TTL_SECONDS=3600):
        config = PlaybackConfig.from_settings()

    assert config.token_secret == "test-secret-key"
    assert config.max_concurrent_sessions == 5
    assert config.watch_history_ttl_seconds == 3600
    assert config.app_url == "http://testserver"


def test_from_settings_prefers_dedicated_token_secret():
    with override_settings(VIDEO_TOKEN_SECRET="video-secret"):
        assert PlaybackConfig.from_settings().token_secret == "video-secret"
