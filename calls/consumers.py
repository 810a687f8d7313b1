import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer

from .models import VideoCall
from .services import call_group

logger = logging.getLogger(__name__)


@database_sync_to_async
def load_answered_call(call_id, user_id):
    call = VideoCall.objects.filter(pk=call_id).first()
    if call is None or not call.is_participant(user_id):
        return None
    if call.status != VideoCall.STATUS_ANSWERED:
        return None
    return call


class CallSignalingConsumer(AsyncWebsocketConsumer):
    """
    WebRTC 시그널링 중계. 수락된 통화의 두 참가자만 들어올 수 있고,
    offer/sdp/ice 메시지는 그대로 상대에게 전달된다.
    """

    async def connect(self):
        self.user = self.scope["user"]
        if self.user.is_anonymous:
            logger.warning("[SIGNALING] Anonymous user attempted connection, rejecting")
            await self.close()
            return

        call_id = self.scope["url_route"]["kwargs"]["call_id"]
        self.call = await load_answered_call(call_id, self.user.id)
        if self.call is None:
            logger.warning(f"[SIGNALING] User {self.user.id} rejected from call {call_id}")
            await self.close()
            return

        self.room_group_name = call_group(self.call.id)
        await self.channel_layer.group_add(self.room_group_name, self.channel_name)
        await self.accept()
        logger.info(f"[CONNECT] User {self.user.id} joined call {self.call.id}")

        other_user_id = self.call.receiver_id if self.user.id == self.call.caller_id else self.call.caller_id

        # 낮은 id 쪽이 offer
        if self.user.id < other_user_id:
            role_self, role_other = "offer", "answer"
        else:
            role_self, role_other = "answer", "offer"

        await self.send(text_data=json.dumps({
            "type": "role_assignment",
            "role": role_self,
        }))
        await self.channel_layer.group_send(
            self.room_group_name,
            {
                "type": "role_assignment_message",
                "role": role_other,
                "sender_id": self.user.id,
            }
        )

    async def role_assignment_message(self, event):
        if event.get("sender_id") == self.user.id:
            return
        await self.send(text_data=json.dumps({
            "type": "role_assignment",
            "role": event["role"],
        }))

    async def disconnect(self, close_code):
        room_group = getattr(self, "room_group_name", None)
        if not room_group:
            return
        await self.channel_layer.group_discard(room_group, self.channel_name)
        await self.channel_layer.group_send(
            room_group,
            {
                "type": "peer_left",
                "user_id": self.user.id,
            }
        )
        logger.info(f"[DISCONNECT] User {self.user.id} left {room_group}")

    async def peer_left(self, event):
        if event["user_id"] == self.user.id:
            return
        await self.send(text_data=json.dumps({"type": "peer_left", "userId": event["user_id"]}))

    async def receive(self, text_data):
        try:
            data = json.loads(text_data)
        except json.JSONDecodeError:
            logger.error(f"Invalid JSON from user {self.user.id}: {text_data}")
            return

        await self.channel_layer.group_send(
            self.room_group_name,
            {
                "type": "signal_message",
                "message": data,
                "sender_channel": self.channel_name,
            }
        )

    async def signal_message(self, event):
        if event["sender_channel"] == self.channel_name:
            return
        await self.send(text_data=json.dumps(event["message"]))

    async def call_ended(self, event):
        await self.send(text_data=json.dumps({"type": "call_ended", **event["payload"]}))
        await self.close()
