import logging
import math
from dataclasses import dataclass
from datetime import timedelta

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from chats.models import Chat
from chats.services import get_chat_for
from coinchat_backend.errors import BusinessRuleError, Conflict, InsufficientCoins, NotFound, PermissionDenied
from coinchat_backend.tasks import run_after_commit
from coins.models import CoinTransaction
from coins.services import debit, lock_user
from notifications.services import notify
from options.services import get_int_option
from .models import VideoCall

logger = logging.getLogger(__name__)

User = get_user_model()

MAX_CALL_SECONDS = 24 * 60 * 60


@dataclass
class Settlement:
    call: VideoCall
    billed_minutes: int
    total_cost: int
    charged_now: int
    shortfall: int
    already_ended: bool = False


def call_group(call_id):
    return f"call_{call_id}"


def _call_payload(call):
    return {
        "callId": call.id,
        "chatId": call.chat_id,
        "callerId": call.caller_id,
        "receiverId": call.receiver_id,
        "callType": call.call_type,
        "status": call.status,
    }


def _broadcast_call_ended(call_id, payload):
    async_to_sync(get_channel_layer().group_send)(
        call_group(call_id),
        {"type": "call.ended", "payload": payload},
    )


def _get_locked_call(call_id):
    call = VideoCall.objects.select_for_update().filter(pk=call_id).first()
    if call is None:
        raise NotFound("Call not found")
    return call


def _invalid_state(call, action):
    return Conflict(
        f"Cannot {action} a call that is {call.status}",
        code="INVALID_CALL_STATE",
        data={"status": call.status},
    )


def _ensure_no_active_call(chat):
    if VideoCall.objects.filter(chat=chat, status__in=VideoCall.ACTIVE_STATUSES).exists():
        raise Conflict("A call is already in progress in this chat", code="CALL_ALREADY_ACTIVE")


# ---------------------------
# 개시
# ---------------------------
def initiate_call(caller, chat_id, call_type=VideoCall.TYPE_VIDEO):
    """
    발신자가 통화를 건다. 최소 잔액을 확인하고 첫 1분 요금을 선차감한다.
    같은 채팅방에 진행 중인 통화가 있으면 409.
    """
    cost = get_int_option("video_call_cost_per_minute", minimum=1)
    minimum = max(get_int_option("video_call_minimum_start_balance", default=cost), cost)

    try:
        with transaction.atomic():
            # 잠금 순서: 사용자 → 채팅방 (send_message 와 동일)
            user = lock_user(caller.id)
            chat = get_chat_for(caller, chat_id, lock=True)
            if chat.status_for(caller.id) == Chat.STATUS_BLOCKED:
                raise PermissionDenied("You have blocked this chat")
            _ensure_no_active_call(chat)

            if user.coins < minimum:
                raise InsufficientCoins(required=minimum, current=user.coins)

            call = VideoCall.objects.create(
                chat=chat,
                caller_id=caller.id,
                receiver_id=chat.other_participant_id(caller.id),
                call_type=call_type,
                status=VideoCall.STATUS_INITIATED,
                cost_per_minute=cost,
            )
            ledger = debit(
                caller.id,
                cost,
                reason=CoinTransaction.REASON_VIDEO_CALL,
                reference_id=call.id,
                note="Prepaid first minute",
                locked_user=user,
            )
            call.coins_charged = cost
            call.save(update_fields=["coins_charged", "updated_at"])
    except IntegrityError:
        raise Conflict("A call is already in progress in this chat", code="CALL_ALREADY_ACTIVE")

    logger.info(f"Call {call.id} initiated by user {caller.id} in chat {chat.id} (prepaid={cost})")
    notify([call.receiver_id], "call_incoming", _call_payload(call))
    return call, ledger.new_balance


def bot_initiate_call(user, chat_id, call_type=VideoCall.TYPE_VIDEO):
    """봇이 사용자에게 거는 통화. 요금이 없다."""
    try:
        with transaction.atomic():
            chat = get_chat_for(user, chat_id, lock=True)
            bot_id = chat.other_participant_id(user.id)
            if not User.objects.filter(pk=bot_id, user_type=User.TYPE_BOT).exists():
                raise BusinessRuleError("The other participant is not a bot", code="NOT_A_BOT_CHAT")
            _ensure_no_active_call(chat)

            call = VideoCall.objects.create(
                chat=chat,
                caller_id=bot_id,
                receiver_id=user.id,
                call_type=call_type,
                status=VideoCall.STATUS_INITIATED,
                is_bot_call=True,
                cost_per_minute=0,
            )
    except IntegrityError:
        raise Conflict("A call is already in progress in this chat", code="CALL_ALREADY_ACTIVE")

    logger.info(f"Bot call {call.id} initiated to user {user.id} in chat {chat.id}")
    notify([user.id], "call_incoming", _call_payload(call))
    return call


# ---------------------------
# 수신자 전이
# ---------------------------
def mark_ringing(user, call_id):
    with transaction.atomic():
        call = _get_locked_call(call_id)
        if call.receiver_id != user.id:
            raise PermissionDenied("Only the receiver can report ringing")
        if call.status in (VideoCall.STATUS_RINGING, VideoCall.STATUS_ANSWERED):
            return call
        if call.status != VideoCall.STATUS_INITIATED:
            raise _invalid_state(call, "ring")
        call.status = VideoCall.STATUS_RINGING
        call.save(update_fields=["status", "updated_at"])

    notify([call.caller_id], "call_ringing", _call_payload(call))
    return call


def accept_call(user, call_id):
    """
    수신자만 수락할 수 있다. 과금 시계는 수락 시점부터 시작하며 수락 자체는 과금하지 않는다.
    이미 수락된 통화를 다시 수락하면 현재 상태를 그대로 돌려준다.
    """
    with transaction.atomic():
        call = _get_locked_call(call_id)
        if call.receiver_id != user.id:
            raise PermissionDenied("Only the receiver can accept this call")
        if call.status == VideoCall.STATUS_ANSWERED:
            return call
        if call.status not in (VideoCall.STATUS_INITIATED, VideoCall.STATUS_RINGING):
            raise _invalid_state(call, "accept")

        call.status = VideoCall.STATUS_ANSWERED
        call.started_at = timezone.now()
        call.save(update_fields=["status", "started_at", "updated_at"])

    logger.info(f"Call {call.id} answered by user {user.id}")
    notify([call.caller_id], "call_accepted", _call_payload(call))
    return call


def reject_call(user, call_id):
    with transaction.atomic():
        call = _get_locked_call(call_id)
        if call.receiver_id != user.id:
            raise PermissionDenied("Only the receiver can reject this call")
        if call.status == VideoCall.STATUS_REJECTED:
            return call
        if call.status not in (VideoCall.STATUS_INITIATED, VideoCall.STATUS_RINGING):
            raise _invalid_state(call, "reject")

        call.status = VideoCall.STATUS_REJECTED
        call.end_reason = VideoCall.END_REJECTED
        call.ended_at = timezone.now()
        call.save(update_fields=["status", "end_reason", "ended_at", "updated_at"])

    logger.info(f"Call {call.id} rejected by user {user.id}")
    notify([call.caller_id], "call_rejected", _call_payload(call))
    return call


# ---------------------------
# 종료 / 정산
# ---------------------------
def billable_seconds(call, now):
    if call.started_at is None:
        return 0
    elapsed = int((now - call.started_at).total_seconds())
    return min(max(elapsed, 0), MAX_CALL_SECONDS)


def billed_minutes_for(call, seconds):
    """수락된 적 있는 통화는 최소 1분, 아니면 0분."""
    if call.started_at is None:
        return 0
    return max(1, math.ceil(seconds / 60))


def end_call(user, call_id):
    """
    참가자 누구나 종료할 수 있다. 누가 끝내든 정산은 발신자에게 청구된다.

    청구액 = min(발신자 잔액, max(0, 총요금 - 선차감액)). 잔액이 모자라면 부족분은
    받지 않는다 (잔액은 음수가 되지 않는다). 이미 끝난 통화는 저장된 값을 그대로 돌려준다.
    """
    with transaction.atomic():
        call = _get_locked_call(call_id)
        if not call.is_participant(user.id):
            raise PermissionDenied("You are not a participant of this call")

        if call.is_terminal:
            return Settlement(
                call=call,
                billed_minutes=call.billed_minutes,
                total_cost=call.total_cost,
                charged_now=0,
                shortfall=max(0, call.total_cost - call.coins_charged),
                already_ended=True,
            )

        now = timezone.now()
        seconds = billable_seconds(call, now)
        minutes = billed_minutes_for(call, seconds)
        total = minutes * call.cost_per_minute
        remaining = max(0, total - call.coins_charged)

        charged_now = 0
        if remaining > 0:
            caller = lock_user(call.caller_id)
            charged_now = min(caller.coins, remaining)
            debit(
                caller.id,
                charged_now,
                reason=CoinTransaction.REASON_VIDEO_CALL,
                reference_id=call.id,
                note=f"Call settlement ({minutes} min)",
                locked_user=caller,
            )

        call.status = VideoCall.STATUS_ENDED
        call.end_reason = VideoCall.END_CALLER if user.id == call.caller_id else VideoCall.END_RECEIVER
        call.ended_at = now
        call.duration = seconds
        call.billed_minutes = minutes
        call.coins_charged += charged_now
        call.save(update_fields=[
            "status", "end_reason", "ended_at", "duration", "billed_minutes", "coins_charged", "updated_at",
        ])

    shortfall = remaining - charged_now
    if shortfall:
        logger.warning(f"Call {call.id} settled with shortfall {shortfall} (caller {call.caller_id})")
    logger.info(f"Call {call.id} ended by user {user.id}: {seconds}s, {minutes} min, charged {charged_now}")

    payload = _call_payload(call)
    payload.update({"duration": call.duration, "coinsCharged": call.coins_charged, "endReason": call.end_reason})
    notify([call.caller_id, call.receiver_id], "call_ended", payload)
    run_after_commit(_broadcast_call_ended, call.id, payload)

    return Settlement(
        call=call,
        billed_minutes=minutes,
        total_cost=total,
        charged_now=charged_now,
        shortfall=shortfall,
    )


def expire_stale_calls(now=None):
    """응답 없이 타임아웃을 넘긴 initiated/ringing 통화를 missed 로 닫는다. 선차감은 유지."""
    now = now or timezone.now()
    timeout = get_int_option("video_call_ring_timeout_seconds", minimum=1)
    cutoff = now - timedelta(seconds=timeout)

    stale_ids = list(
        VideoCall.objects.filter(
            status__in=(VideoCall.STATUS_INITIATED, VideoCall.STATUS_RINGING),
            created_at__lt=cutoff,
        ).values_list("id", flat=True)
    )

    expired = 0
    for call_id in stale_ids:
        with transaction.atomic():
            call = VideoCall.objects.select_for_update().get(pk=call_id)
            if call.status not in (VideoCall.STATUS_INITIATED, VideoCall.STATUS_RINGING):
                continue
            call.status = VideoCall.STATUS_MISSED
            call.end_reason = VideoCall.END_MISSED
            call.ended_at = now
            call.save(update_fields=["status", "end_reason", "ended_at", "updated_at"])
        expired += 1
        notify([call.caller_id, call.receiver_id], "call_missed", _call_payload(call))

    if expired:
        logger.info(f"Expired {expired} unanswered call(s)")
    return expired


def call_history(user):
    return (
        VideoCall.objects.filter(Q(caller=user) | Q(receiver=user))
        .select_related("caller", "receiver")
        .order_by("-created_at", "-id")
    )
