# PATH: apps/support/playback/serializers.py

from rest_framework import serializers

from src.application.playback.models import QUALITY_LADDER

QUALITY_CHOICES = list(QUALITY_LADDER)


# ========================================================
# Session
# ========================================================

class PlaybackSessionCreateRequestSerializer(serializers.Serializer):
    video_id = serializers.CharField(max_length=128)
    course_id = serializers.CharField(max_length=128, required=False, allow_null=True, allow_blank=True)
    device_info = serializers.DictField(required=False, default=dict)


class PlaybackSessionUpdateRequestSerializer(serializers.Serializer):
    current_position = serializers.FloatField(min_value=0, required=False)
    quality = serializers.ChoiceField(choices=QUALITY_CHOICES, required=False)
    playback_speed = serializers.FloatField(min_value=0.25, max_value=2.0, required=False)
    volume = serializers.FloatField(min_value=0, max_value=1, required=False)
    is_fullscreen = serializers.BooleanField(required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("no_updates")
        return attrs


class PlaybackSessionResponseSerializer(serializers.Serializer):
    session_id = serializers.CharField()
    manifest_url = serializers.CharField()
    format = serializers.CharField()
    qualities = serializers.ListField(child=serializers.DictField())
    duration = serializers.FloatField(allow_null=True)
    thumbnails = serializers.ListField(child=serializers.CharField())
    access_token = serializers.CharField()
    expires_at = serializers.IntegerField(allow_null=True)
    restrictions = serializers.DictField()
    watermark = serializers.DictField(allow_null=True)
    tracking_url = serializers.CharField()
    heartbeat_url = serializers.CharField()
    player_config = serializers.DictField()


class PlaybackSessionStateSerializer(serializers.Serializer):
    session_id = serializers.CharField()
    video_id = serializers.CharField()
    course_id = serializers.CharField(allow_null=True)
    start_time = serializers.FloatField()
    last_activity = serializers.FloatField()
    current_position = serializers.FloatField()
    quality = serializers.CharField()
    playback_speed = serializers.FloatField()
    volume = serializers.FloatField()
    is_fullscreen = serializers.BooleanField()
    watch_time = serializers.FloatField()
    completion_percentage = serializers.IntegerField()
    event_count = serializers.IntegerField()


# ========================================================
# Heartbeat / Events
# ========================================================

class PlaybackHeartbeatRequestSerializer(serializers.Serializer):
    session_id = serializers.CharField(max_length=128)
    position = serializers.FloatField(min_value=0)
    buffer_health = serializers.FloatField(min_value=0, max_value=100)
    quality = serializers.ChoiceField(choices=QUALITY_CHOICES)
    network_type = serializers.CharField(max_length=32, required=False, allow_blank=True)


class PlaybackEventRequestSerializer(serializers.Serializer):
    session_id = serializers.CharField(max_length=128)
    type = serializers.CharField(max_length=64)
    position = serializers.FloatField(min_value=0, required=False, default=0)
    metadata = serializers.DictField(required=False, default=dict)


# ========================================================
# History
# ========================================================

class WatchHistoryRecordSerializer(serializers.Serializer):
    session_id = serializers.CharField()
    video_id = serializers.CharField()
    course_id = serializers.CharField(allow_null=True)
    watch_time = serializers.FloatField()
    completion_percentage = serializers.IntegerField()
    event_count = serializers.IntegerField()
    start_time = serializers.FloatField()
    ended_at = serializers.FloatField()
    session_duration = serializers.FloatField()
    video_duration = serializers.FloatField(allow_null=True)
