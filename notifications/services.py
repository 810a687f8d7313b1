import logging
from typing import Iterable

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.core.cache import cache

from coinchat_backend.collaborators import get_collaborator
from coinchat_backend.tasks import run_after_commit

logger = logging.getLogger(__name__)


def user_group(user_id):
    return f"user_{user_id}"


def presence_key(user_id):
    return f"user_online:{user_id}"


class PushSender:
    def send_push(self, user_ids: Iterable[int], payload: dict) -> dict:
        """{"sent": n, "failed": m} 를 돌려준다."""
        raise NotImplementedError


class ChannelLayerPushSender(PushSender):
    """접속 중인 클라이언트(ws/events/)에 channel layer 그룹으로 이벤트를 보낸다."""

    def send_push(self, user_ids, payload):
        channel_layer = get_channel_layer()
        sent = failed = 0
        for user_id in user_ids:
            try:
                async_to_sync(channel_layer.group_send)(
                    user_group(user_id),
                    {"type": "push.event", "payload": payload},
                )
                sent += 1
            except Exception as e:
                failed += 1
                logger.warning(f"Push to user {user_id} failed: {e}")
        return {"sent": sent, "failed": failed}


def _deliver(user_ids, payload):
    result = get_collaborator("COINCHAT_PUSH_SENDER").send_push(user_ids, payload)
    logger.info(f"Push {payload.get('event')} -> {user_ids}: {result}")
    return result


def notify(user_ids, event, data=None):
    """
    커밋 이후 백그라운드로 푸시를 보낸다. 실패해도 호출한 요청에는 영향이 없다.
    """
    ids = [uid for uid in dict.fromkeys(user_ids) if uid]
    if not ids:
        return
    run_after_commit(_deliver, ids, {"event": event, "data": data or {}})


def mark_online(user_id):
    cache.set(presence_key(user_id), True, timeout=settings.PRESENCE_TTL)


def mark_offline(user_id):
    cache.delete(presence_key(user_id))


def is_online(user_id):
    try:
        return bool(cache.get(presence_key(user_id)))
    except Exception as e:
        logger.warning(f"Presence lookup failed for user {user_id}: {e}")
        return False
