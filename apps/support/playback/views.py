# PATH: apps/support/playback/views.py

import logging
import time

from rest_framework import status
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from src.application.playback.errors import (
    InvalidPlaybackUpdate,
    NotFound,
    PlaybackAccessDenied,
)
from src.application.playback.models import HeartbeatStatus

from .serializers import (
    PlaybackEventRequestSerializer,
    PlaybackHeartbeatRequestSerializer,
    PlaybackSessionCreateRequestSerializer,
    PlaybackSessionResponseSerializer,
    PlaybackSessionStateSerializer,
    PlaybackSessionUpdateRequestSerializer,
    WatchHistoryRecordSerializer,
)
from .services import get_session_manager

logger = logging.getLogger(__name__)

LOW_BUFFER_WARNING_SECONDS = 10
GOOD_BUFFER_SECONDS = 30
ACTIVE_WITHIN_SECONDS = 60
MAX_ANALYTICS_RANGE_DAYS = 90


# ----------------------------------------------------------
# internal helpers
# ----------------------------------------------------------

def _deny(detail: str, *, code=status.HTTP_403_FORBIDDEN):
    return Response({"detail": detail}, status=code)


def _user_id(request) -> str:
    return str(request.user.pk)


def _client_ip(request) -> str:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR") or "unknown"


def _load_owned_session(manager, request, session_id: str):
    """
    세션 조회 + 소유자 검증.

    Returns:
        (session, None) or (None, error Response)
    """
    session = manager.get_session(session_id)
    if session is None:
        return None, _deny("session_not_found", code=status.HTTP_404_NOT_FOUND)

    user_id = _user_id(request)
    if session.user_id != user_id:
        logger.warning(
            "Playback session owner mismatch session_id=%s user_id=%s owner=%s",
            session_id,
            user_id,
            session.user_id,
        )
        manager.emit_security_signal(
            "unauthorized_access",
            {
                "resource": "video_session",
                "sessionId": session_id,
                "attemptedUserId": user_id,
                "actualUserId": session.user_id,
            },
            user_id,
        )
        return None, _deny("access_denied")

    return session, None


def _session_state(session) -> dict:
    data = session.to_dict()
    data["event_count"] = len(session.events)
    return PlaybackSessionStateSerializer(data).data


def _heartbeat_messages(*, quality: str, buffer_health: float, recommended, network_type: str = "") -> list:
    messages = []
    if recommended and recommended != quality:
        messages.append(f"Quality change recommended: {quality} → {recommended}")

    if buffer_health < LOW_BUFFER_WARNING_SECONDS:
        messages.append("Low buffer detected. Consider reducing quality.")
    elif buffer_health > GOOD_BUFFER_SECONDS and quality != "1080p":
        messages.append("Good buffer health. Quality can be increased.")

    if network_type in ("slow-2g", "2g"):
        messages.append("Slow network detected. Consider using 240p quality.")
    return messages


# ==========================================================
# Session Create
# ==========================================================

class PlaybackSessionCreateView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = PlaybackSessionCreateRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        device_info = dict(data.get("device_info") or {})
        device_info.setdefault("userAgent", request.META.get("HTTP_USER_AGENT") or "unknown")
        device_info["ipAddress"] = _client_ip(request)

        manager = get_session_manager()
        try:
            created = manager.create_session(
                video_id=data["video_id"],
                user_id=_user_id(request),
                course_id=data.get("course_id") or None,
                device_info=device_info,
            )
        except PlaybackAccessDenied:
            return _deny("video_access_denied")
        except NotFound:
            return _deny("video_not_found", code=status.HTTP_404_NOT_FOUND)

        session, manifest = created.session, created.manifest
        config = manager.config
        base = config.app_url.rstrip("/")

        return Response(
            PlaybackSessionResponseSerializer({
                "session_id": session.session_id,
                "manifest_url": manifest.base_url,
                "format": manifest.format,
                "qualities": [q.to_dict() for q in manifest.qualities],
                "duration": manifest.duration,
                "thumbnails": list(manifest.thumbnails),
                "access_token": session.access_token,
                "expires_at": manager.tokens.peek_expiry(session.access_token),
                "restrictions": session.restrictions.to_dict(),
                "watermark": session.watermark.to_dict() if session.watermark else None,
                "tracking_url": f"{base}/api/v1/playback/events/",
                "heartbeat_url": f"{base}/api/v1/playback/heartbeat/",
                "player_config": {
                    "autoplay": False,
                    "controls": True,
                    "default_quality": config.default_quality,
                    "enable_quality_selector": True,
                    "enable_fullscreen": True,
                },
            }).data,
            status=status.HTTP_201_CREATED,
        )


# ==========================================================
# Session Detail / Update
# ==========================================================

class PlaybackSessionDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, session_id: str):
        manager = get_session_manager()
        session, error = _load_owned_session(manager, request, session_id)
        if error:
            return error
        return Response(_session_state(session))

    def patch(self, request, session_id: str):
        serializer = PlaybackSessionUpdateRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        manager = get_session_manager()
        _, error = _load_owned_session(manager, request, session_id)
        if error:
            return error

        try:
            session = manager.update_session(session_id, serializer.validated_data)
        except NotFound:
            return _deny("session_not_found", code=status.HTTP_404_NOT_FOUND)
        except InvalidPlaybackUpdate as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        logger.debug(
            "Video streaming session updated session_id=%s updates=%s",
            session_id,
            sorted(serializer.validated_data),
        )
        return Response(_session_state(session))


# ==========================================================
# Session End
# ==========================================================

class PlaybackSessionEndView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, session_id: str):
        manager = get_session_manager()
        _, error = _load_owned_session(manager, request, session_id)
        if error:
            return error

        record = manager.end_session(session_id)
        if record is None:
            return _deny("session_not_found", code=status.HTTP_404_NOT_FOUND)

        return Response(WatchHistoryRecordSerializer(record).data)


# ==========================================================
# Heartbeat
# ==========================================================

class PlaybackHeartbeatView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = PlaybackHeartbeatRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        manager = get_session_manager()
        _, error = _load_owned_session(manager, request, data["session_id"])
        if error:
            return error

        result = manager.process_heartbeat(
            data["session_id"],
            data["position"],
            data["buffer_health"],
            data["quality"],
        )

        if result.status == HeartbeatStatus.INVALID:
            return _deny("session_not_found", code=status.HTTP_404_NOT_FOUND)
        if result.status == HeartbeatStatus.EXPIRED:
            return Response(
                {"detail": "session_expired", "status": result.status.value},
                status=status.HTTP_410_GONE,
            )

        session = manager.get_session(data["session_id"])
        return Response({
            "status": result.status.value,
            "session_id": data["session_id"],
            "server_time": int(time.time() * 1000),
            "recommendations": {
                "quality": result.recommended_quality,
                "messages": _heartbeat_messages(
                    quality=data["quality"],
                    buffer_health=data["buffer_health"],
                    recommended=result.recommended_quality,
                    network_type=data.get("network_type") or "",
                ),
            },
            "analytics": {
                "watch_time": session.watch_time if session else None,
                "completion_percentage": session.completion_percentage if session else None,
            },
        })

    def get(self, request):
        session_id = request.query_params.get("session_id")
        if not session_id:
            return Response({"detail": "session_id_required"}, status=status.HTTP_400_BAD_REQUEST)

        manager = get_session_manager()
        session, error = _load_owned_session(manager, request, session_id)
        if error:
            return error

        now = time.time()
        return Response({
            "session_id": session.session_id,
            "is_active": now - session.last_activity < ACTIVE_WITHIN_SECONDS,
            "session_age": now - session.start_time,
            "time_since_last_activity": now - session.last_activity,
            "current_position": session.current_position,
            "quality": session.quality,
            "watch_time": session.watch_time,
            "completion_percentage": session.completion_percentage,
        })


# ==========================================================
# Events
# ==========================================================

class PlaybackEventView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = PlaybackEventRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        manager = get_session_manager()
        session, error = _load_owned_session(manager, request, data["session_id"])
        if error:
            return error

        metadata = dict(data.get("metadata") or {})
        metadata["userAgent"] = request.META.get("HTTP_USER_AGENT")
        metadata["sessionAge"] = time.time() - session.start_time

        result = manager.track_event(
            data["session_id"],
            data["type"],
            data["position"],
            metadata,
        )
        return Response({
            "session_id": data["session_id"],
            "event_type": data["type"],
            "position": data["position"],
            "recorded": result.recorded,
            "video_completed": result.video_completed,
        })


# ==========================================================
# Analytics (staff)
# ==========================================================

class VideoAnalyticsView(APIView):
    permission_classes = [IsAuthenticated, IsAdminUser]

    def get(self, request, video_id: str):
        try:
            range_days = int(request.query_params.get("range", 7))
        except (TypeError, ValueError):
            return Response({"detail": "invalid_range"}, status=status.HTTP_400_BAD_REQUEST)
        if not 1 <= range_days <= MAX_ANALYTICS_RANGE_DAYS:
            return Response({"detail": "invalid_range"}, status=status.HTTP_400_BAD_REQUEST)

        analytics = get_session_manager().get_video_analytics(video_id, range_days)

        metrics = [m for m in (request.query_params.get("metrics") or "").split(",") if m]
        if metrics:
            analytics = {k: v for k, v in analytics.items() if k in metrics or k in ("video_id", "range_days", "dates")}

        return Response(analytics)


# ==========================================================
# Watch History
# ==========================================================

class WatchHistoryView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        try:
            limit = int(request.query_params.get("limit", 50))
        except (TypeError, ValueError):
            limit = 50

        records = get_session_manager().get_watch_history(_user_id(request), limit=max(1, limit))
        return Response({
            "results": WatchHistoryRecordSerializer(records, many=True).data,
        })
