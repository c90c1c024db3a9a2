import logging

from src.application.playback.models import ManifestReference
from src.infrastructure.playback.entitlement import AllowAllEntitlement
from src.infrastructure.playback.security_signal import LoggingSecuritySignal
from src.infrastructure.video.manifest_source import (
    FallbackManifestSource,
    StaticManifestSource,
    StoreManifestSource,
)


def test_store_manifest_source_roundtrip(store):
    source = StoreManifestSource(store)
    manifest = ManifestReference.from_dict({
        "videoId": "v1",
        "baseUrl": "https://cdn.example.com/v1.m3u8",
        "qualities": ["360p", {"quality": "720p", "bandwidth": 2500000}],
        "duration": 120,
    })
    source.put_manifest(manifest)

    loaded = source.get_manifest("v1")
    assert loaded == manifest
    assert [q.quality for q in loaded.qualities] == ["360p", "720p"]
    assert loaded.qualities[0].url == "https://cdn.example.com/v1.m3u8"
    assert source.get_manifest("v2") is None


def test_store_manifest_source_ignores_malformed(store):
    store.set("videoManifest:bad", {"qualities": [{"bandwidth": 1}]})
    assert StoreManifestSource(store).get_manifest("bad") is None


def test_fallback_manifest_source_order(store):
    primary = StoreManifestSource(store)
    fallback = StaticManifestSource({"v1": {"base_url": "static"}, "v2": {"base_url": "static-2"}})
    primary.put_manifest(ManifestReference(video_id="v1", format="hls", base_url="stored"))

    source = FallbackManifestSource(primary, fallback)
    assert source.get_manifest("v1").base_url == "stored"
    assert source.get_manifest("v2").base_url == "static-2"
    assert source.get_manifest("v3") is None


def test_allow_all_entitlement():
    assert AllowAllEntitlement().has_access("u1", "v1") is True
    assert AllowAllEntitlement().has_access("", "v1") is False


def test_logging_security_signal(caplog):
    with caplog.at_level(logging.WARNING, logger="security"):
        LoggingSecuritySignal().emit("resource_abuse", "medium", {"userId": "u1"}, "u1")

    assert len(caplog.records) == 1
    record = caplog.records[0]
    assert record.name == "security"
    assert record.levelno == logging.WARNING
    assert "resource_abuse" in record.getMessage()
