from rest_framework import serializers

from .models import VideoCall


class VideoCallSerializer(serializers.ModelSerializer):
    caller_username = serializers.CharField(source="caller.username", read_only=True)
    receiver_username = serializers.CharField(source="receiver.username", read_only=True)
    total_cost = serializers.IntegerField(read_only=True)

    class Meta:
        model = VideoCall
        fields = [
            "id", "chat", "caller", "caller_username", "receiver", "receiver_username",
            "call_type", "status", "end_reason", "is_bot_call", "cost_per_minute",
            "coins_charged", "billed_minutes", "total_cost", "started_at", "ended_at",
            "duration", "created_at",
        ]
        read_only_fields = fields


class InitiateCallSerializer(serializers.Serializer):
    call_type = serializers.ChoiceField(choices=VideoCall.TYPE_CHOICES, default=VideoCall.TYPE_VIDEO)

    def to_internal_value(self, data):
        if "callType" in data and "call_type" not in data:
            data = {"call_type": data.get("callType")}
        return super().to_internal_value(data)
