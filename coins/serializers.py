from rest_framework import serializers
from django.contrib.auth import get_user_model
from .models import CoinPackage, CoinTransaction, PurchaseTransaction

User = get_user_model()


class WalletSerializer(serializers.ModelSerializer):
    balance = serializers.IntegerField(source="coins")

    class Meta:
        model = User
        fields = ["balance"]


class TransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = CoinTransaction
        fields = ["id", "amount", "direction", "reason", "reference_id", "status", "balance_after", "note", "created_at"]


class CoinPackageSerializer(serializers.ModelSerializer):
    class Meta:
        model = CoinPackage
        fields = ["id", "name", "coins", "price", "currency", "play_product_id"]


class PurchaseTransactionSerializer(serializers.ModelSerializer):
    package_name = serializers.CharField(source="package.name", read_only=True)

    class Meta:
        model = PurchaseTransaction
        fields = ["id", "package_name", "product_id", "order_id", "coins_received", "status", "acknowledged", "created_at"]


class GooglePlayVerifySerializer(serializers.Serializer):
    """productId/purchaseToken (앱) 과 product_id/purchase_token 둘 다 받는다."""

    product_id = serializers.CharField(min_length=3, max_length=100)
    purchase_token = serializers.CharField(max_length=500)
    order_id = serializers.CharField(max_length=200, required=False, allow_blank=True, allow_null=True)

    ALIASES = {"productId": "product_id", "purchaseToken": "purchase_token", "orderId": "order_id"}

    def to_internal_value(self, data):
        normalized = {self.ALIASES.get(key, key): value for key, value in data.items()}
        return super().to_internal_value(normalized)
