from django.db import models
from django.conf import settings
from django.db.models import Q


class Chat(models.Model):
    """
    1:1 대화방. 한 행이 두 참가자의 서로 다른 시점(차단/삭제/고정/안읽음)을
    _p1 / _p2 필드로 나눠 담는다.
    """

    STATUS_ACTIVE = "active"
    STATUS_BLOCKED = "blocked"
    STATUS_DELETED = "deleted"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_BLOCKED, "Blocked"),
        (STATUS_DELETED, "Deleted"),
    ]

    participant_1 = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="chats_as_p1")
    participant_2 = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="chats_as_p2")
    last_message = models.ForeignKey("Message", on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    last_message_time = models.DateTimeField(null=True, blank=True)
    unread_count_p1 = models.PositiveIntegerField(default=0)
    unread_count_p2 = models.PositiveIntegerField(default=0)
    status_p1 = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    status_p2 = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    pin_p1 = models.BooleanField(default=False)
    pin_p2 = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["participant_1", "participant_2"], name="unique_chat_pair"),
        ]
        indexes = [
            models.Index(fields=["last_message_time"], name="chat_last_msg_time_idx"),
        ]

    def side_of(self, user_id):
        """'p1' / 'p2' / None"""
        if self.participant_1_id == user_id:
            return "p1"
        if self.participant_2_id == user_id:
            return "p2"
        return None

    def other_participant_id(self, user_id):
        return self.participant_2_id if self.participant_1_id == user_id else self.participant_1_id

    def status_for(self, user_id):
        return getattr(self, f"status_{self.side_of(user_id)}")

    def unread_for(self, user_id):
        return getattr(self, f"unread_count_{self.side_of(user_id)}")

    def pinned_for(self, user_id):
        return getattr(self, f"pin_{self.side_of(user_id)}")

    def __str__(self):
        return f"Chat {self.id} ({self.participant_1_id}, {self.participant_2_id})"


class Message(models.Model):
    TYPE_TEXT = "text"
    TYPE_IMAGE = "image"
    TYPE_AUDIO = "audio"
    TYPE_VIDEO = "video"
    TYPE_FILE = "file"
    TYPE_CHOICES = [
        (TYPE_TEXT, "Text"),
        (TYPE_IMAGE, "Image"),
        (TYPE_AUDIO, "Audio"),
        (TYPE_VIDEO, "Video"),
        (TYPE_FILE, "File"),
    ]

    SENDER_REAL = "real"
    SENDER_BOT = "bot"
    SENDER_TYPE_CHOICES = [
        (SENDER_REAL, "Real"),
        (SENDER_BOT, "Bot"),
    ]

    # sent -> delivered -> read -> deleted (역행 없음, deleted 는 종단)
    STATUS_SENT = "sent"
    STATUS_DELIVERED = "delivered"
    STATUS_READ = "read"
    STATUS_DELETED = "deleted"
    STATUS_CHOICES = [
        (STATUS_SENT, "Sent"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_READ, "Read"),
        (STATUS_DELETED, "Deleted"),
    ]

    DELETED_PLACEHOLDER = "This message was deleted"

    chat = models.ForeignKey(Chat, on_delete=models.CASCADE, related_name="messages")
    sender = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="sent_messages")
    receiver = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="received_messages")
    message = models.TextField(blank=True, default="")
    reply_to = models.ForeignKey("self", on_delete=models.SET_NULL, null=True, blank=True, related_name="replies")
    message_type = models.CharField(max_length=10, choices=TYPE_CHOICES, default=TYPE_TEXT)
    sender_type = models.CharField(max_length=10, choices=SENDER_TYPE_CHOICES, default=SENDER_REAL)
    # 발송 시점에 확정된 가격 (이후 재계산하지 않음)
    is_paid = models.BooleanField(default=False)
    price = models.PositiveIntegerField(default=0)
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_SENT)
    client_message_id = models.CharField(max_length=64, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["sender", "client_message_id"],
                condition=Q(client_message_id__isnull=False),
                name="unique_client_message_id_per_sender",
            ),
        ]
        indexes = [
            models.Index(fields=["chat", "created_at"], name="message_chat_created_idx"),
            models.Index(fields=["chat", "receiver", "is_read"], name="message_chat_unread_idx"),
        ]

    @property
    def is_deleted(self):
        return self.status == self.STATUS_DELETED

    def __str__(self):
        return f"Message {self.id} in chat {self.chat_id}"


class MessageFile(models.Model):
    KIND_CHOICES = [
        ("image", "Image"),
        ("audio", "Audio"),
        ("video", "Video"),
        ("file", "File"),
    ]

    message = models.ForeignKey(Message, on_delete=models.CASCADE, related_name="files")
    kind = models.CharField(max_length=10, choices=KIND_CHOICES)
    path = models.CharField(max_length=500)
    original_name = models.CharField(max_length=255, blank=True)
    mime_type = models.CharField(max_length=100)
    size = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.path
