from django.db import models
from django.conf import settings


class CoinTransaction(models.Model):
    """
    코인 원장 (append-only).

    잔액 변경 1건당 정확히 1행이 같은 트랜잭션 안에서 기록된다. 생성 후에는
    status 를 completed -> refunded 로 바꾸는 것 외에는 수정할 수 없다.
    """

    DIRECTION_SPEND = "spend"
    DIRECTION_CREDIT = "credit"
    DIRECTION_CHOICES = [
        (DIRECTION_SPEND, "Spend"),
        (DIRECTION_CREDIT, "Credit"),
    ]

    REASON_MESSAGE = "message"
    REASON_VIDEO_CALL = "video_call"
    REASON_PURCHASE = "purchase"
    REASON_AD_REWARD = "ad_reward"
    REASON_SIGNUP_BONUS = "signup_bonus"
    REASON_REFUND = "refund"
    REASON_ADMIN_ADJUSTMENT = "admin_adjustment"
    REASON_CHOICES = [
        (REASON_MESSAGE, "Message"),
        (REASON_VIDEO_CALL, "Video call"),
        (REASON_PURCHASE, "Purchase"),
        (REASON_AD_REWARD, "Ad reward"),
        (REASON_SIGNUP_BONUS, "Signup bonus"),
        (REASON_REFUND, "Refund"),
        (REASON_ADMIN_ADJUSTMENT, "Admin adjustment"),
    ]

    STATUS_COMPLETED = "completed"
    STATUS_REFUNDED = "refunded"
    STATUS_CHOICES = [
        (STATUS_COMPLETED, "Completed"),
        (STATUS_REFUNDED, "Refunded"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="coin_transactions")
    amount = models.PositiveIntegerField()
    direction = models.CharField(max_length=10, choices=DIRECTION_CHOICES)
    reason = models.CharField(max_length=20, choices=REASON_CHOICES)
    reference_id = models.CharField(max_length=100, blank=True, default="")
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_COMPLETED)
    balance_after = models.PositiveIntegerField()
    note = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user", "created_at"], name="coin_tx_user_created_idx"),
            models.Index(fields=["reason", "reference_id"], name="coin_tx_reason_ref_idx"),
        ]

    @property
    def signed_amount(self):
        return self.amount if self.direction == self.DIRECTION_CREDIT else -self.amount

    def save(self, *args, **kwargs):
        if self.pk is not None and list(kwargs.get("update_fields") or []) != ["status"]:
            raise ValueError("Ledger entries are immutable; only status may change.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Ledger entries cannot be deleted.")

    def __str__(self):
        return f"{self.user_id} {self.direction} {self.amount} coins ({self.reason})"


class CoinPackage(models.Model):
    STATUS_ACTIVE = "active"
    STATUS_INACTIVE = "inactive"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_INACTIVE, "Inactive"),
    ]

    name = models.CharField(max_length=100)
    coins = models.PositiveIntegerField()
    price = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=3, default="USD")
    play_product_id = models.CharField(max_length=100, unique=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    sold_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["coins"]

    def __str__(self):
        return f"{self.name} ({self.coins} coins)"


class PurchaseTransaction(models.Model):
    STATUS_PENDING = "pending"
    STATUS_COMPLETED = "completed"
    STATUS_FAILED = "failed"
    STATUS_REFUNDED = "refunded"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_FAILED, "Failed"),
        (STATUS_REFUNDED, "Refunded"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="purchases")
    package = models.ForeignKey(CoinPackage, on_delete=models.PROTECT, related_name="purchases")
    product_id = models.CharField(max_length=100)
    purchase_token = models.CharField(max_length=500, unique=True)
    order_id = models.CharField(max_length=200, blank=True, default="")
    coins_received = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)
    purchase_state = models.IntegerField(null=True, blank=True)
    acknowledged = models.BooleanField(default=False)
    raw_response = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Purchase {self.purchase_token[:12]}… ({self.status})"


class AdView(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="ad_views")
    transaction_id = models.CharField(max_length=200, unique=True)
    ad_unit = models.CharField(max_length=200, blank=True)
    reward_item = models.CharField(max_length=100, blank=True)
    reward_coins = models.PositiveIntegerField(default=0)
    provider = models.CharField(max_length=50, default="admob")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=["user", "created_at"], name="adview_user_created_idx")]
