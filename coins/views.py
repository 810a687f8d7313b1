import logging

from rest_framework import generics, permissions, status
from rest_framework.views import APIView

from coinchat_backend.errors import ValidationFailed
from coinchat_backend.exceptions import envelope
from coinchat_backend.pagination import EnvelopePagination
from . import ads
from .models import CoinPackage, CoinTransaction, PurchaseTransaction
from .purchases import verify_purchase
from .serializers import (
    CoinPackageSerializer,
    GooglePlayVerifySerializer,
    PurchaseTransactionSerializer,
    TransactionSerializer,
    WalletSerializer,
)

logger = logging.getLogger(__name__)


class WalletView(APIView):
    def get(self, request):
        return envelope(True, "Wallet fetched", data=WalletSerializer(request.user).data)


class TransactionListView(generics.ListAPIView):
    serializer_class = TransactionSerializer
    pagination_class = EnvelopePagination

    def get_queryset(self):
        return CoinTransaction.objects.filter(user=self.request.user).order_by("-created_at", "-id")


class PurchaseListView(generics.ListAPIView):
    """구매 내역. ?status=pending|completed|failed|refunded 로 거를 수 있다."""

    serializer_class = PurchaseTransactionSerializer
    pagination_class = EnvelopePagination

    def get_queryset(self):
        qs = PurchaseTransaction.objects.filter(user=self.request.user).select_related("package")
        status_filter = self.request.query_params.get("status")
        if status_filter:
            allowed = dict(PurchaseTransaction.STATUS_CHOICES)
            if status_filter not in allowed:
                raise ValidationFailed(f"status must be one of: {', '.join(allowed)}")
            qs = qs.filter(status=status_filter)
        return qs.order_by("-created_at", "-id")


class CoinPackageListView(generics.ListAPIView):
    serializer_class = CoinPackageSerializer
    pagination_class = None

    def get_queryset(self):
        return CoinPackage.objects.filter(status=CoinPackage.STATUS_ACTIVE)

    def list(self, request, *args, **kwargs):
        data = self.get_serializer(self.get_queryset(), many=True).data
        return envelope(True, "Coin packages fetched", data={"packages": data})


class GooglePlayVerifyView(APIView):
    """
    앱에서 Google purchaseToken 을 전송하면 서버 검증 후 코인 충전
    """

    def post(self, request):
        serializer = GooglePlayVerifySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        params = serializer.validated_data

        result = verify_purchase(
            request.user,
            product_id=params["product_id"],
            purchase_token=params["purchase_token"],
            order_id=params.get("order_id"),
        )

        purchase = PurchaseTransactionSerializer(result.purchase).data if result.purchase else None
        if result.already_processed:
            return envelope(True, "Already processed", data={
                "granted": False,
                "alreadyProcessed": True,
                "coins": result.coins,
                "purchase": purchase,
            })

        return envelope(True, "Purchase verified and coins credited", data={
            "granted": True,
            "alreadyProcessed": False,
            "coins": result.coins,
            "newBalance": result.new_balance,
            "shouldConsume": True,
            "purchase": purchase,
        })


class AdStatusView(APIView):
    def get(self, request):
        return envelope(True, "Ad status fetched successfully.", data=ads.ad_status(request.user))


class RewardedAdSSVView(APIView):
    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    REQUIRED_FIELDS = ["ad_unit", "reward_item", "transaction_id", "signature", "key_id", "user_id"]

    def get(self, request):
        data = request.query_params
        for field in self.REQUIRED_FIELDS:
            if field not in data:
                logger.warning(f"SSV callback missing required field: {field}")
                raise ValidationFailed(f"{field} is required")

        try:
            ads.verify_ssv_signature(request.META.get("QUERY_STRING", ""), data["signature"], data["key_id"])
        except ads.InvalidSignature as e:
            logger.error(f"SSV signature verification failed: {e}")
            return envelope(False, "Invalid signature", http_status=status.HTTP_400_BAD_REQUEST)

        user_id = ads.resolve_ssv_user(data["user_id"])
        already, balance = ads.grant_ad_reward(
            user_id,
            transaction_id=data["transaction_id"],
            ad_unit=data["ad_unit"],
            reward_item=data["reward_item"],
        )
        message = "Already processed" if already else "Reward granted"
        return envelope(True, message, data={"alreadyProcessed": already, "newBalance": balance})
