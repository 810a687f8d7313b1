from django.urls import path

from .views import (
    AcceptCallView,
    BotInitiateCallView,
    CallHistoryView,
    EndCallView,
    InitiateCallView,
    RejectCallView,
    RingingCallView,
)

urlpatterns = [
    path("chats/<int:chat_id>/video-calls/initiate/", InitiateCallView.as_view(), name="call-initiate"),
    path("chats/<int:chat_id>/video-calls/bot-initiate/", BotInitiateCallView.as_view(), name="call-bot-initiate"),
    path("video-calls/", CallHistoryView.as_view(), name="call-history"),
    path("video-calls/<int:call_id>/ringing/", RingingCallView.as_view(), name="call-ringing"),
    path("video-calls/<int:call_id>/accept/", AcceptCallView.as_view(), name="call-accept"),
    path("video-calls/<int:call_id>/reject/", RejectCallView.as_view(), name="call-reject"),
    path("video-calls/<int:call_id>/end/", EndCallView.as_view(), name="call-end"),
]
