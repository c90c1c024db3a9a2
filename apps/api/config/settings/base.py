# PATH: apps/api/config/settings/base.py

from pathlib import Path
from datetime import timedelta
import os

# ==================================================
# BASE
# ==================================================

BASE_DIR = Path(__file__).resolve().parents[4]

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-secret-key")
DEBUG = True
ALLOWED_HOSTS = ["*"]

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")

# ==================================================
# INSTALLED APPS
# ==================================================

INSTALLED_APPS = [
    # Django
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    # REST
    "rest_framework",
    "rest_framework_simplejwt",

    # CORS
    "corsheaders",
]

# ==================================================
# MIDDLEWARE
# ==================================================

MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

# ==================================================
# URL / ASGI
# ==================================================

ROOT_URLCONF = "apps.api.config.urls"

ASGI_APPLICATION = "apps.api.config.asgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

# ==================================================
# DATABASE (인증 / 어드민 전용, 재생 세션은 Redis)
# ==================================================

DATABASES = {
    "default": {
        "ENGINE": os.getenv("DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.getenv("DB_NAME", str(BASE_DIR / "db.sqlite3")),
        "USER": os.getenv("DB_USER", ""),
        "PASSWORD": os.getenv("DB_PASSWORD", ""),
        "HOST": os.getenv("DB_HOST", ""),
        "PORT": os.getenv("DB_PORT", ""),
    }
}

# ==================================================
# GLOBAL
# ==================================================

LANGUAGE_CODE = "ko-kr"
TIME_ZONE = "Asia/Seoul"

USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ==================================================
# DRF
# ==================================================

REST_FRAMEWORK = {
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
        "rest_framework_simplejwt.authentication.JWTAuthentication",
    ],
}

# ==================================================
# JWT
# ==================================================

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(days=1),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=30),
    "AUTH_HEADER_TYPES": ("Bearer",),
}

# ==================================================
# CORS (플레이어 프론트엔드)
# ==================================================

CORS_ALLOW_ALL_ORIGINS = True
CORS_ALLOW_CREDENTIALS = True

# ==================================================
# REDIS (재생 세션 스토어)
# ==================================================
# REDIS_HOST 미설정 시 in-memory store 로 동작 (단일 프로세스 개발용)

REDIS_HOST = os.getenv("REDIS_HOST", "")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD") or None
REDIS_DB = int(os.getenv("REDIS_DB", "0"))
REDIS_SOCKET_TIMEOUT = float(os.getenv("REDIS_SOCKET_TIMEOUT", "2.0"))

# ==================================================
# VIDEO PLAYBACK SESSION
# ==================================================

VIDEO_TOKEN_SECRET = os.getenv("VIDEO_TOKEN_SECRET", "")  # 비어있으면 SECRET_KEY

VIDEO_MAX_CONCURRENT_SESSIONS = int(os.getenv("VIDEO_MAX_CONCURRENT_SESSIONS", "3"))
VIDEO_SESSION_TIMEOUT_SECONDS = int(os.getenv("VIDEO_SESSION_TIMEOUT_SECONDS", "1800"))
VIDEO_SESSION_MAX_DURATION_SECONDS = int(os.getenv("VIDEO_SESSION_MAX_DURATION_SECONDS", "86400"))
VIDEO_TOKEN_EXPIRY_SECONDS = int(os.getenv("VIDEO_TOKEN_EXPIRY_SECONDS", "86400"))

VIDEO_DEFAULT_QUALITY = os.getenv("VIDEO_DEFAULT_QUALITY", "720p")
VIDEO_ABR_LOW_BUFFER_SECONDS = float(os.getenv("VIDEO_ABR_LOW_BUFFER_SECONDS", "5"))
VIDEO_ABR_HIGH_BUFFER_SECONDS = float(os.getenv("VIDEO_ABR_HIGH_BUFFER_SECONDS", "15"))

VIDEO_MAX_HEARTBEAT_GAP_SECONDS = float(os.getenv("VIDEO_MAX_HEARTBEAT_GAP_SECONDS", "60"))
VIDEO_EVENT_LOG_CAPACITY = int(os.getenv("VIDEO_EVENT_LOG_CAPACITY", "100"))
VIDEO_COMPLETION_TOLERANCE_SECONDS = float(os.getenv("VIDEO_COMPLETION_TOLERANCE_SECONDS", "10"))
VIDEO_COMPLETION_THRESHOLD_PERCENT = int(os.getenv("VIDEO_COMPLETION_THRESHOLD_PERCENT", "90"))

VIDEO_ANALYTICS_TTL_SECONDS = int(os.getenv("VIDEO_ANALYTICS_TTL_SECONDS", "86400"))
VIDEO_WATCH_HISTORY_TTL_SECONDS = None

VIDEO_WATERMARK_ENABLED = os.getenv("VIDEO_WATERMARK_ENABLED", "1") == "1"
VIDEO_WATERMARK_TAG = os.getenv("VIDEO_WATERMARK_TAG", "LazyGameDevs")

VIDEO_DISPATCH_QUEUE_SIZE = int(os.getenv("VIDEO_DISPATCH_QUEUE_SIZE", "1000"))

# dotted path, 비어있으면 기본 구현 (AllowAllEntitlement / LoggingSecuritySignal)
VIDEO_ENTITLEMENT_CHECK = os.getenv("VIDEO_ENTITLEMENT_CHECK", "")
VIDEO_SECURITY_SIGNAL = os.getenv("VIDEO_SECURITY_SIGNAL", "")

# 인코딩 파이프라인 연동 전 개발용 매니페스트 {video_id: {...}}
VIDEO_STATIC_MANIFESTS = {}

# ==================================================
# LOGGING
# ==================================================

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {
            "format": "[{levelname}] {asctime} {name}: {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "loggers": {
        "security": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "INFO",
    },
}
