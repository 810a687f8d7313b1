import logging
from dataclasses import dataclass, field
from typing import List, Optional

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import F, Q
from django.utils import timezone

from coinchat_backend.collaborators import get_collaborator
from coinchat_backend.errors import Conflict, InsufficientCoins, NotFound, PermissionDenied, ValidationFailed
from coinchat_backend.tasks import run_after_commit
from coins.models import CoinTransaction
from coins.services import debit, lock_user
from notifications.services import notify
from options.services import get_int_option
from .media import validate_files
from .models import Chat, Message, MessageFile

logger = logging.getLogger(__name__)

User = get_user_model()

AUTO_REPLY_HISTORY = 10


@dataclass
class SendResult:
    message: Message
    files: List[MessageFile] = field(default_factory=list)
    coins_deducted: int = 0
    new_balance: int = 0
    bot_message: Optional[Message] = None
    duplicate: bool = False


# ---------------------------
# 조회 / 권한
# ---------------------------
def get_chat_for(user, chat_id, lock=False):
    """참가자만 채팅방에 접근할 수 있다. 없으면 404, 참가자가 아니면 403."""
    qs = Chat.objects.select_for_update() if lock else Chat.objects
    chat = qs.filter(pk=chat_id).first()
    if chat is None:
        raise NotFound("Chat not found")
    if chat.side_of(user.id) is None:
        raise PermissionDenied("You are not a participant of this chat")
    return chat


def open_chat(user, other_user_id):
    """두 사용자 사이의 채팅방을 찾거나 만든다."""
    if other_user_id == user.id:
        raise ValidationFailed("You cannot chat with yourself")
    if not User.objects.filter(pk=other_user_id, is_active=True).exists():
        raise NotFound("User not found")

    pair = Q(participant_1=user, participant_2_id=other_user_id) | Q(participant_1_id=other_user_id, participant_2=user)
    chat = Chat.objects.filter(pair).first()
    if chat:
        return chat, False
    try:
        with transaction.atomic():
            return Chat.objects.create(participant_1=user, participant_2_id=other_user_id), True
    except IntegrityError:
        return Chat.objects.get(pair), False


def _parse_id(value):
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# ---------------------------
# 안읽음 카운터
# ---------------------------
def unread_count(chat, user_id):
    """원본 데이터 기준 안읽음 수: 해당 사용자에게 온, 삭제되지 않은 안읽은 메시지."""
    return (
        Message.objects.filter(chat=chat, receiver_id=user_id, is_read=False)
        .exclude(status=Message.STATUS_DELETED)
        .count()
    )


def recompute_unread(chat):
    """두 참가자의 카운터를 메시지 테이블에서 다시 계산한다. chat 행이 잠긴 상태에서 호출."""
    chat.unread_count_p1 = unread_count(chat, chat.participant_1_id)
    chat.unread_count_p2 = unread_count(chat, chat.participant_2_id)
    return chat


def _mark_read(chat, user_id):
    now = timezone.now()
    return (
        Message.objects.filter(chat=chat, receiver_id=user_id, is_read=False)
        .exclude(status=Message.STATUS_DELETED)
        .update(is_read=True, read_at=now, status=Message.STATUS_READ, updated_at=now)
    )


def mark_chat_read(user, chat_id):
    with transaction.atomic():
        chat = get_chat_for(user, chat_id, lock=True)
        updated = _mark_read(chat, user.id)
        recompute_unread(chat)
        chat.save(update_fields=["unread_count_p1", "unread_count_p2", "updated_at"])

    if updated:
        notify([chat.other_participant_id(user.id)], "messages_read", {"chatId": chat.id, "readerId": user.id})
    return chat


# ---------------------------
# 메시지 전송
# ---------------------------
def _store_files(message, validated, storage, stored_paths):
    rows = []
    folder = f"chat_media/{message.chat_id}/{message.id}"
    for item in validated:
        stored = storage.store(item.upload, folder, item.extension)
        stored_paths.append(stored.path)
        rows.append(MessageFile.objects.create(
            message=message,
            kind=item.kind,
            path=stored.path,
            original_name=item.name[:255],
            mime_type=item.mime,
            size=item.size,
        ))
    return rows


def _discard_files(storage, paths):
    for path in paths:
        try:
            storage.delete(path)
        except Exception as e:
            logger.error(f"Failed to delete orphan file {path}: {e}")


def _replayed_send(sender, chat, client_message_id):
    """같은 clientMessageId 로 이미 저장된 메시지가 있으면 그 결과를 돌려준다. 다른 채팅방 것이면 409."""
    existing = Message.objects.filter(sender=sender, client_message_id=client_message_id).first()
    if existing is None:
        return None
    if existing.chat_id != chat.id:
        logger.warning(
            f"clientMessageId {client_message_id} of user {sender.id} belongs to chat {existing.chat_id}, not {chat.id}"
        )
        raise Conflict(
            "clientMessageId was already used in another chat",
            code="CLIENT_MESSAGE_ID_REUSED",
        )
    logger.info(f"Duplicate send ignored: user={sender.id} clientMessageId={client_message_id}")
    return SendResult(
        message=existing,
        files=list(existing.files.all()),
        new_balance=User.objects.values_list("coins", flat=True).get(pk=sender.id),
        duplicate=True,
    )


def send_message(sender, chat_id, text=None, files=None, reply_to_id=None, client_message_id=None):
    """
    유료 메시지 전송.

    검증(파일 포함)은 트랜잭션 전에 끝낸다. 트랜잭션 안에서 발신자 잠금 → 잔액 확인 →
    메시지 생성 → 파일 저장 → 차감 → 카운터 재계산 순으로 진행하고, 중간에 실패하면
    이미 저장된 파일을 지운 뒤 전체를 롤백한다.
    """
    text = (text or "").strip()
    files = list(files or [])
    if not text and not files:
        raise ValidationFailed("Message text or media is required")

    client_message_id = (client_message_id or "").strip() or None
    if client_message_id and len(client_message_id) > 64:
        raise ValidationFailed("clientMessageId must be at most 64 characters")

    validated = validate_files(files)
    cost = get_int_option("cost_per_message")

    chat = get_chat_for(sender, chat_id)
    if chat.status_for(sender.id) == Chat.STATUS_BLOCKED:
        raise PermissionDenied("You have blocked this chat")
    receiver_id = chat.other_participant_id(sender.id)

    if client_message_id:
        replayed = _replayed_send(sender, chat, client_message_id)
        if replayed is not None:
            return replayed

    storage = get_collaborator("COINCHAT_FILE_STORAGE")
    stored_paths = []
    try:
        with transaction.atomic():
            locked_sender = lock_user(sender.id)
            if locked_sender.coins < cost:
                raise InsufficientCoins(required=cost, current=locked_sender.coins)

            chat = Chat.objects.select_for_update().get(pk=chat.pk)

            reply_to = None
            reply_id = _parse_id(reply_to_id)
            if reply_id is not None:
                reply_to = Message.objects.filter(pk=reply_id, chat=chat).first()
                if reply_to is None:
                    logger.info(f"Reply target {reply_to_id} not in chat {chat.id}, dropping reference")

            message = Message.objects.create(
                chat=chat,
                sender_id=sender.id,
                receiver_id=receiver_id,
                message=text,
                reply_to=reply_to,
                message_type=validated[0].kind if validated else Message.TYPE_TEXT,
                sender_type=Message.SENDER_REAL,
                is_paid=cost > 0,
                price=cost,
                client_message_id=client_message_id,
            )

            saved_files = _store_files(message, validated, storage, stored_paths)

            ledger = debit(
                sender.id,
                cost,
                reason=CoinTransaction.REASON_MESSAGE,
                reference_id=message.id,
                locked_user=locked_sender,
            )

            # 보내는 행위 = 스레드를 봤다는 뜻
            _mark_read(chat, sender.id)
            chat.last_message = message
            chat.last_message_time = message.created_at
            for side in ("p1", "p2"):
                if getattr(chat, f"status_{side}") == Chat.STATUS_DELETED:
                    setattr(chat, f"status_{side}", Chat.STATUS_ACTIVE)
            recompute_unread(chat)
            chat.save()
    except IntegrityError:
        _discard_files(storage, stored_paths)
        if client_message_id:
            replayed = _replayed_send(sender, chat, client_message_id)
            if replayed is not None:
                return replayed
        raise
    except Exception:
        _discard_files(storage, stored_paths)
        raise

    logger.info(f"Message {message.id} sent in chat {chat.id} by user {sender.id} (cost={cost})")

    notify([receiver_id], "new_message", {"chatId": chat.id, "messageId": message.id, "senderId": sender.id})
    if User.objects.filter(pk=receiver_id, user_type=User.TYPE_BOT).exists():
        run_after_commit(generate_auto_reply, chat.id, message.id)

    return SendResult(
        message=message,
        files=saved_files,
        coins_deducted=cost,
        new_balance=ledger.new_balance,
        bot_message=Message.objects.filter(reply_to=message, sender_type=Message.SENDER_BOT).first(),
    )


def generate_auto_reply(chat_id, message_id):
    """봇 상대에게 보낸 메시지에 대한 자동응답. 백그라운드에서 실행된다."""
    message = Message.objects.select_related("chat").get(pk=message_id)
    history = [
        ("bot" if m.sender_type == Message.SENDER_BOT else "user", m.message)
        for m in reversed(
            Message.objects.filter(chat_id=chat_id, id__lt=message_id)
            .exclude(status=Message.STATUS_DELETED)
            .exclude(message="")
            .order_by("-created_at", "-id")[:AUTO_REPLY_HISTORY]
        )
    ]

    text = get_collaborator("COINCHAT_REPLY_GENERATOR").generate_reply(chat_id, message.message, history=history)
    if not text:
        logger.warning(f"Empty auto-reply for message {message_id}, skipping")
        return None

    with transaction.atomic():
        chat = Chat.objects.select_for_update().get(pk=chat_id)
        reply = Message.objects.create(
            chat=chat,
            sender_id=message.receiver_id,
            receiver_id=message.sender_id,
            message=text,
            reply_to=message,
            message_type=Message.TYPE_TEXT,
            sender_type=Message.SENDER_BOT,
            is_paid=False,
            price=0,
        )
        chat.last_message = reply
        chat.last_message_time = reply.created_at
        recompute_unread(chat)
        chat.save(update_fields=["last_message", "last_message_time", "unread_count_p1", "unread_count_p2", "updated_at"])

    logger.info(f"Bot reply {reply.id} stored for message {message_id}")
    notify([message.sender_id], "new_message", {"chatId": chat_id, "messageId": reply.id, "senderId": message.receiver_id})
    return reply


# ---------------------------
# 메시지 조회
# ---------------------------
def _read_and_recompute(user, chat_id):
    with transaction.atomic():
        chat = get_chat_for(user, chat_id, lock=True)
        if _mark_read(chat, user.id) or chat.unread_for(user.id):
            recompute_unread(chat)
            chat.save(update_fields=["unread_count_p1", "unread_count_p2", "updated_at"])
    return chat


def _page_limit(limit):
    default = get_int_option("messages_per_page", minimum=1)
    value = _parse_id(limit)
    if value is None or value < 1:
        return default
    return min(value, 100)


def list_messages(user, chat_id, page=1, limit=None):
    """오프셋 페이지네이션 (최신순). 조회와 동시에 읽음 처리."""
    chat = _read_and_recompute(user, chat_id)
    limit = _page_limit(limit)
    page = max(_parse_id(page) or 1, 1)

    qs = Message.objects.filter(chat=chat).select_related("reply_to").prefetch_related("files")
    total = qs.count()
    offset = (page - 1) * limit
    messages = list(qs.order_by("-created_at", "-id")[offset:offset + limit])
    return {
        "messages": messages,
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": (total + limit - 1) // limit,
        },
    }


def list_messages_before(user, chat_id, before=None, limit=None):
    """커서 페이지네이션: before(메시지 id) 보다 오래된 메시지를 최신순으로."""
    chat = _read_and_recompute(user, chat_id)
    limit = _page_limit(limit)

    qs = Message.objects.filter(chat=chat).select_related("reply_to").prefetch_related("files")
    cursor = _parse_id(before)
    if cursor is not None:
        qs = qs.filter(id__lt=cursor)
    rows = list(qs.order_by("-id")[:limit + 1])
    has_more = len(rows) > limit
    rows = rows[:limit]
    return {
        "messages": rows,
        "nextCursor": rows[-1].id if has_more and rows else None,
        "hasMore": has_more,
    }


# ---------------------------
# 삭제 / 방 상태
# ---------------------------
def delete_message(user, chat_id, message_id):
    """보낸 사람만 삭제 가능. 내용은 대체 문구로 바뀌고 첨부 파일은 스토리지에서 지운다."""
    storage = get_collaborator("COINCHAT_FILE_STORAGE")
    with transaction.atomic():
        chat = get_chat_for(user, chat_id, lock=True)
        message = Message.objects.select_for_update().filter(pk=message_id, chat=chat).first()
        if message is None:
            raise NotFound("Message not found")
        if message.sender_id != user.id:
            raise PermissionDenied("You can only delete your own messages")
        if message.is_deleted:
            return message

        paths = list(message.files.values_list("path", flat=True))
        message.files.all().delete()
        message.status = Message.STATUS_DELETED
        message.message = Message.DELETED_PLACEHOLDER
        message.save(update_fields=["status", "message", "updated_at"])

        recompute_unread(chat)
        chat.save(update_fields=["unread_count_p1", "unread_count_p2", "updated_at"])
        transaction.on_commit(lambda: _discard_files(storage, paths))

    notify([message.receiver_id], "message_deleted", {"chatId": chat.id, "messageId": message.id})
    return message


def set_chat_status(user, chat_id, status):
    with transaction.atomic():
        chat = get_chat_for(user, chat_id, lock=True)
        field_name = f"status_{chat.side_of(user.id)}"
        setattr(chat, field_name, status)
        chat.save(update_fields=[field_name, "updated_at"])
    logger.info(f"Chat {chat.id} status for user {user.id} -> {status}")
    return chat


def set_pinned(user, chat_id, pinned):
    with transaction.atomic():
        chat = get_chat_for(user, chat_id, lock=True)
        field_name = f"pin_{chat.side_of(user.id)}"
        setattr(chat, field_name, pinned)
        chat.save(update_fields=[field_name, "updated_at"])
    return chat


def list_chats(user):
    visible = (
        Q(participant_1=user) & ~Q(status_p1=Chat.STATUS_DELETED)
    ) | (
        Q(participant_2=user) & ~Q(status_p2=Chat.STATUS_DELETED)
    )
    chats = list(
        Chat.objects.filter(visible)
        .select_related("participant_1", "participant_2", "last_message")
        .order_by(F("last_message_time").desc(nulls_last=True), "-id")
    )
    # 고정된 방을 먼저 (정렬 안정성으로 시간순 유지)
    chats.sort(key=lambda c: not c.pinned_for(user.id))
    return chats
