import django
from django.conf import settings

if not settings.configured:
    settings.configure(
        SECRET_KEY="test-secret-key",
        DEBUG=True,
        ALLOWED_HOSTS=["*"],
        INSTALLED_APPS=[
            "django.contrib.auth",
            "django.contrib.contenttypes",
            "rest_framework",
        ],
        DATABASES={},
        ROOT_URLCONF="apps.support.playback.urls",
        REST_FRAMEWORK={
            "DEFAULT_AUTHENTICATION_CLASSES": [],
            "UNAUTHENTICATED_USER": None,
        },
        USE_TZ=True,
        API_BASE_URL="http://testserver",
    )
    django.setup()

import pytest

from src.application.playback.config import PlaybackConfig
from src.application.playback.dispatch import InlineDispatcher
from src.application.playback.models import ManifestReference, QualityVariant
from src.application.playback.session_manager import PlaybackSessionManager
from src.application.ports.entitlement import IEntitlementCheck
from src.application.ports.security_signal import ISecuritySignal
from src.infrastructure.cache.memory_session_store import InMemorySessionStore
from src.infrastructure.video.manifest_source import StaticManifestSource

VIDEO_ID = "video-1"
VIDEO_DURATION = 1800.0
START = 1_700_000_000.0


class FakeClock:
    def __init__(self, now=START):
        self.now = float(now)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds
        return self.now


class RecordingSecuritySignal(ISecuritySignal):
    def __init__(self):
        self.events = []

    def emit(self, kind, severity, context, user_id=None):
        self.events.append({"kind": kind, "severity": severity, "context": context, "user_id": user_id})


class SwitchEntitlement(IEntitlementCheck):
    def __init__(self):
        self.allowed = True

    def has_access(self, user_id, video_id, course_id=None):
        return self.allowed


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemorySessionStore(clock=clock)


@pytest.fixture
def manifest():
    return ManifestReference(
        video_id=VIDEO_ID,
        format="hls",
        base_url="https://cdn.example.com/video-1/master.m3u8",
        qualities=(
            QualityVariant(quality="360p", bandwidth=800000),
            QualityVariant(quality="720p", bandwidth=2500000),
        ),
        duration=VIDEO_DURATION,
        thumbnails=("https://cdn.example.com/video-1/thumb.jpg",),
    )


@pytest.fixture
def manifests(manifest):
    return StaticManifestSource({VIDEO_ID: manifest, "no-duration": {"base_url": "https://cdn.example.com/x.m3u8"}})


@pytest.fixture
def security():
    return RecordingSecuritySignal()


@pytest.fixture
def entitlement():
    return SwitchEntitlement()


@pytest.fixture
def config():
    return PlaybackConfig(token_secret="test-token-secret")


@pytest.fixture
def manager(store, manifests, entitlement, security, config, clock):
    return PlaybackSessionManager(
        store,
        manifests,
        entitlement,
        security,
        config,
        dispatcher=InlineDispatcher(),
        clock=clock,
    )
