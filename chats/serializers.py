from rest_framework import serializers

from coinchat_backend.collaborators import get_collaborator
from notifications.services import is_online
from .models import Chat, Message, MessageFile


class MessageFileSerializer(serializers.ModelSerializer):
    url = serializers.SerializerMethodField()

    class Meta:
        model = MessageFile
        fields = ["id", "kind", "url", "original_name", "mime_type", "size", "created_at"]

    def get_url(self, obj):
        return get_collaborator("COINCHAT_FILE_STORAGE").url(obj.path)


class MessageSerializer(serializers.ModelSerializer):
    files = MessageFileSerializer(many=True, read_only=True)
    reply_to = serializers.SerializerMethodField()

    class Meta:
        model = Message
        fields = [
            "id", "chat", "sender", "receiver", "message", "message_type", "sender_type",
            "is_paid", "price", "is_read", "read_at", "status", "reply_to", "files",
            "client_message_id", "created_at",
        ]

    def get_reply_to(self, obj):
        if obj.reply_to_id is None:
            return None
        reply = obj.reply_to
        return {"id": reply.id, "sender": reply.sender_id, "message": reply.message, "status": reply.status}


class SendMessageSerializer(serializers.Serializer):
    """multipart / JSON 양쪽. 클라이언트의 camelCase 필드명도 받는다."""

    message = serializers.CharField(required=False, allow_blank=True, default="", max_length=5000)
    reply_to_message_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    client_message_id = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)

    ALIASES = {
        "replyToMessageId": "reply_to_message_id",
        "clientMessageId": "client_message_id",
    }

    def to_internal_value(self, data):
        normalized = {key: data.get(key) for key in ("message", "reply_to_message_id", "client_message_id") if key in data}
        for alias, name in self.ALIASES.items():
            if alias in data and name not in normalized:
                normalized[name] = data.get(alias)
        return super().to_internal_value(normalized)


class ChatSummarySerializer(serializers.ModelSerializer):
    """요청한 사용자 시점의 채팅방 요약."""

    other_user = serializers.SerializerMethodField()
    unread_count = serializers.SerializerMethodField()
    pinned = serializers.SerializerMethodField()
    status = serializers.SerializerMethodField()
    last_message = serializers.SerializerMethodField()

    class Meta:
        model = Chat
        fields = ["id", "other_user", "unread_count", "pinned", "status", "last_message", "last_message_time", "created_at"]

    @property
    def viewer_id(self):
        return self.context["request"].user.id

    def get_other_user(self, obj):
        other = obj.participant_2 if obj.participant_1_id == self.viewer_id else obj.participant_1
        return {
            "id": other.id,
            "username": other.username,
            "user_type": other.user_type,
            "profile_image": other.profile_image.url if other.profile_image else None,
            "online": is_online(other.id),
        }

    def get_unread_count(self, obj):
        return obj.unread_for(self.viewer_id)

    def get_pinned(self, obj):
        return obj.pinned_for(self.viewer_id)

    def get_status(self, obj):
        return obj.status_for(self.viewer_id)

    def get_last_message(self, obj):
        msg = obj.last_message
        if msg is None:
            return None
        return {"id": msg.id, "message": msg.message, "message_type": msg.message_type, "sender": msg.sender_id}


class OpenChatSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()

    def to_internal_value(self, data):
        if "userId" in data and "user_id" not in data:
            data = {"user_id": data.get("userId")}
        return super().to_internal_value(data)
