from django.contrib import admin, messages

from coinchat_backend.errors import ServiceError
from .models import AdView, CoinPackage, CoinTransaction, PurchaseTransaction
from .services import refund


@admin.register(CoinTransaction)
class CoinTransactionAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "direction", "amount", "reason", "reference_id", "status", "balance_after", "created_at")
    list_filter = ("direction", "reason", "status")
    search_fields = ("user__username", "reference_id")
    actions = ["refund_selected"]

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.action(description="Refund selected spend transactions")
    def refund_selected(self, request, queryset):
        for entry in queryset.filter(direction=CoinTransaction.DIRECTION_SPEND):
            try:
                refund(entry.id, note=f"Admin refund by {request.user}")
            except ServiceError as e:
                self.message_user(request, f"#{entry.id}: {e.message}", level=messages.ERROR)


@admin.register(CoinPackage)
class CoinPackageAdmin(admin.ModelAdmin):
    list_display = ("name", "coins", "price", "currency", "play_product_id", "status", "sold_count")
    list_filter = ("status",)


@admin.register(PurchaseTransaction)
class PurchaseTransactionAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "product_id", "status", "coins_received", "acknowledged", "created_at")
    list_filter = ("status", "acknowledged")
    search_fields = ("purchase_token", "order_id", "user__username")
    readonly_fields = ("raw_response",)


@admin.register(AdView)
class AdViewAdmin(admin.ModelAdmin):
    list_display = ("user", "transaction_id", "reward_coins", "provider", "created_at")
