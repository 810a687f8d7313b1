from django.conf import settings
from django.db import models
from django.db.models import Q


class VideoCall(models.Model):
    """
    통화 상태 머신.
    initiated -> ringing -> answered -> ended
    initiated/ringing -> rejected | missed
    ended / rejected / missed 는 종단 상태.
    """

    TYPE_VIDEO = "video"
    TYPE_AUDIO = "audio"
    TYPE_CHOICES = [
        (TYPE_VIDEO, "Video"),
        (TYPE_AUDIO, "Audio"),
    ]

    STATUS_INITIATED = "initiated"
    STATUS_RINGING = "ringing"
    STATUS_ANSWERED = "answered"
    STATUS_ENDED = "ended"
    STATUS_REJECTED = "rejected"
    STATUS_MISSED = "missed"
    STATUS_CHOICES = [
        (STATUS_INITIATED, "Initiated"),
        (STATUS_RINGING, "Ringing"),
        (STATUS_ANSWERED, "Answered"),
        (STATUS_ENDED, "Ended"),
        (STATUS_REJECTED, "Rejected"),
        (STATUS_MISSED, "Missed"),
    ]
    ACTIVE_STATUSES = (STATUS_INITIATED, STATUS_RINGING, STATUS_ANSWERED)
    TERMINAL_STATUSES = (STATUS_ENDED, STATUS_REJECTED, STATUS_MISSED)

    END_REJECTED = "rejected"
    END_CALLER = "caller_ended"
    END_RECEIVER = "receiver_ended"
    END_MISSED = "missed"
    END_REASON_CHOICES = [
        (END_REJECTED, "Rejected"),
        (END_CALLER, "Caller ended"),
        (END_RECEIVER, "Receiver ended"),
        (END_MISSED, "Missed"),
    ]

    chat = models.ForeignKey("chats.Chat", on_delete=models.CASCADE, related_name="calls")
    caller = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="outgoing_calls")
    receiver = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="incoming_calls")
    call_type = models.CharField(max_length=10, choices=TYPE_CHOICES, default=TYPE_VIDEO)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_INITIATED)
    end_reason = models.CharField(max_length=20, choices=END_REASON_CHOICES, blank=True, default="")
    is_bot_call = models.BooleanField(default=False)

    # 개시 시점의 분당 요금 (봇 통화는 0)
    cost_per_minute = models.PositiveIntegerField(default=0)
    # 지금까지 실제로 차감된 누적액. 감소하지 않는다.
    coins_charged = models.PositiveIntegerField(default=0)
    billed_minutes = models.PositiveIntegerField(default=0)

    started_at = models.DateTimeField(null=True, blank=True)
    ended_at = models.DateTimeField(null=True, blank=True)
    duration = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["chat"],
                condition=Q(status__in=["initiated", "ringing", "answered"]),
                name="one_active_call_per_chat",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "created_at"], name="call_status_created_idx"),
        ]

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    @property
    def total_cost(self):
        return self.billed_minutes * self.cost_per_minute

    def is_participant(self, user_id):
        return user_id in (self.caller_id, self.receiver_id)

    def __str__(self):
        return f"Call {self.id} ({self.caller_id} -> {self.receiver_id}, {self.status})"
