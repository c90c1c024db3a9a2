from .base import *

DEBUG = True
ALLOWED_HOSTS = ["*"]

# 개발용 샘플 매니페스트 (Redis 에 videoManifest:{id} 가 없을 때)
VIDEO_STATIC_MANIFESTS = {
    "sample-video": {
        "format": "hls",
        "base_url": f"{API_BASE_URL}/hls/sample-video/master.m3u8",
        "qualities": [
            {"quality": "360p", "bandwidth": 800000},
            {"quality": "720p", "bandwidth": 2500000},
            {"quality": "1080p", "bandwidth": 5000000},
        ],
        "duration": 600,
        "thumbnails": [f"{API_BASE_URL}/hls/sample-video/thumb.jpg"],
    },
}

LOGGING["root"]["level"] = "DEBUG"
