import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer

from .services import is_online, mark_offline, mark_online, user_group

logger = logging.getLogger(__name__)


class UserEventsConsumer(AsyncWebsocketConsumer):
    """
    사용자별 이벤트 채널. 새 메시지, 통화 상태 변경 같은 푸시가 이 소켓으로 내려간다.
    연결되어 있는 동안 presence 키를 유지하고 ping 으로 TTL 을 갱신한다.
    """

    async def send_json(self, content):
        try:
            await self.send(text_data=json.dumps(content))
        except Exception as e:
            logger.error(f"Error sending JSON: {e}")

    async def connect(self):
        self.user = self.scope["user"]
        if self.user.is_anonymous:
            logger.warning("[EVENTS] Anonymous user attempted connection, rejecting")
            await self.close()
            return

        self.group_name = user_group(self.user.id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        await database_sync_to_async(mark_online)(self.user.id)
        logger.info(f"[EVENTS] User {self.user.id} connected")

    async def disconnect(self, close_code):
        user = getattr(self, "user", None)
        if user is None or user.is_anonymous:
            return
        await self.channel_layer.group_discard(self.group_name, self.channel_name)
        await database_sync_to_async(mark_offline)(user.id)
        logger.info(f"[EVENTS] User {user.id} disconnected ({close_code})")

    async def receive(self, text_data):
        try:
            data = json.loads(text_data)
        except json.JSONDecodeError:
            logger.error(f"Invalid JSON from user {self.user.id}: {text_data}")
            return

        action = data.get("action")
        if action == "ping":
            await database_sync_to_async(mark_online)(self.user.id)
            await self.send_json({"type": "pong"})
        elif action == "presence":
            user_id = data.get("userId")
            online = await database_sync_to_async(is_online)(user_id)
            await self.send_json({"type": "presence", "userId": user_id, "online": online})
        else:
            logger.warning(f"Unknown action '{action}' from user {self.user.id}")

    async def push_event(self, event):
        payload = event["payload"]
        await self.send_json({"type": payload.get("event"), "data": payload.get("data", {})})
