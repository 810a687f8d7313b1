from django.urls import path

from .views import (
    ChatActionView,
    ChatDetailView,
    ChatListView,
    ChatReadView,
    MessageCursorView,
    MessageDeleteView,
    MessageListView,
    SendMessageView,
)

urlpatterns = [
    path("", ChatListView.as_view(), name="chat-list"),
    path("<int:chat_id>/", ChatDetailView.as_view(), name="chat-detail"),
    path("<int:chat_id>/send-message/", SendMessageView.as_view(), name="send-message"),
    path("<int:chat_id>/messages/", MessageListView.as_view(), name="chat-messages"),
    path("<int:chat_id>/messages/cursor/", MessageCursorView.as_view(), name="chat-messages-cursor"),
    path("<int:chat_id>/messages/<int:message_id>/", MessageDeleteView.as_view(), name="delete-message"),
    path("<int:chat_id>/read/", ChatReadView.as_view(), name="chat-read"),
    path("<int:chat_id>/block/", ChatActionView.as_view(chat_action="block"), name="chat-block"),
    path("<int:chat_id>/unblock/", ChatActionView.as_view(chat_action="unblock"), name="chat-unblock"),
    path("<int:chat_id>/pin/", ChatActionView.as_view(chat_action="pin"), name="chat-pin"),
    path("<int:chat_id>/unpin/", ChatActionView.as_view(chat_action="unpin"), name="chat-unpin"),
]
