import logging

from rest_framework import status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.views import APIView

from coinchat_backend.exceptions import envelope
from . import services
from .models import Chat
from .serializers import ChatSummarySerializer, MessageSerializer, OpenChatSerializer, SendMessageSerializer

logger = logging.getLogger(__name__)


class ChatListView(APIView):
    def get(self, request):
        chats = services.list_chats(request.user)
        data = ChatSummarySerializer(chats, many=True, context={"request": request}).data
        return envelope(True, "Chats fetched", data={"chats": data})

    def post(self, request):
        serializer = OpenChatSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        chat, created = services.open_chat(request.user, serializer.validated_data["user_id"])
        data = ChatSummarySerializer(chat, context={"request": request}).data
        return envelope(
            True,
            "Chat created" if created else "Chat already exists",
            data={"chat": data},
            http_status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class SendMessageView(APIView):
    """
    POST /api/chats/<chat_id>/send-message/
    multipart: message, replyToMessageId, clientMessageId, media(0..N)
    """

    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def post(self, request, chat_id):
        serializer = SendMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        params = serializer.validated_data
        files = request.FILES.getlist("media")

        result = services.send_message(
            request.user,
            chat_id,
            text=params.get("message"),
            files=files,
            reply_to_id=params.get("reply_to_message_id"),
            client_message_id=params.get("client_message_id"),
        )

        message_data = MessageSerializer(result.message).data
        return envelope(
            True,
            "Message already sent" if result.duplicate else "Message sent successfully",
            data={
                "message": message_data,
                "files": message_data["files"],
                "bot_message": MessageSerializer(result.bot_message).data if result.bot_message else None,
                "has_media": bool(message_data["files"]),
                "has_caption": bool(result.message.message) and bool(message_data["files"]),
                "coinsDeducted": result.coins_deducted,
                "newBalance": result.new_balance,
                "duplicate": result.duplicate,
            },
            http_status=status.HTTP_200_OK if result.duplicate else status.HTTP_201_CREATED,
        )


class MessageListView(APIView):
    def get(self, request, chat_id):
        result = services.list_messages(
            request.user, chat_id,
            page=request.query_params.get("page"),
            limit=request.query_params.get("limit"),
        )
        return envelope(True, "Messages fetched", data={
            "messages": MessageSerializer(result["messages"], many=True).data,
            "pagination": result["pagination"],
        })


class MessageCursorView(APIView):
    def get(self, request, chat_id):
        result = services.list_messages_before(
            request.user, chat_id,
            before=request.query_params.get("before"),
            limit=request.query_params.get("limit"),
        )
        return envelope(True, "Messages fetched", data={
            "messages": MessageSerializer(result["messages"], many=True).data,
            "nextCursor": result["nextCursor"],
            "hasMore": result["hasMore"],
        })


class MessageDeleteView(APIView):
    def delete(self, request, chat_id, message_id):
        message = services.delete_message(request.user, chat_id, message_id)
        return envelope(True, "Message deleted", data={"message": MessageSerializer(message).data})


class ChatReadView(APIView):
    def post(self, request, chat_id):
        chat = services.mark_chat_read(request.user, chat_id)
        return envelope(True, "Chat marked as read", data={"chatId": chat.id, "unreadCount": chat.unread_for(request.user.id)})


class ChatActionView(APIView):
    """block / unblock / pin / unpin"""

    chat_action = None

    def post(self, request, chat_id):
        if self.chat_action == "block":
            chat = services.set_chat_status(request.user, chat_id, Chat.STATUS_BLOCKED)
        elif self.chat_action == "unblock":
            chat = services.set_chat_status(request.user, chat_id, Chat.STATUS_ACTIVE)
        elif self.chat_action == "pin":
            chat = services.set_pinned(request.user, chat_id, True)
        else:
            chat = services.set_pinned(request.user, chat_id, False)

        data = ChatSummarySerializer(chat, context={"request": request}).data
        return envelope(True, f"Chat {self.chat_action} done", data={"chat": data})


class ChatDetailView(APIView):
    def delete(self, request, chat_id):
        services.set_chat_status(request.user, chat_id, Chat.STATUS_DELETED)
        return envelope(True, "Chat deleted")
