from django.urls import path
from .views import (
    AdStatusView,
    CoinPackageListView,
    PurchaseListView,
    RewardedAdSSVView,
    TransactionListView,
    WalletView,
)

urlpatterns = [
    path("wallet/", WalletView.as_view(), name="wallet"),
    path("transactions/", TransactionListView.as_view(), name="transactions"),
    path("packages/", CoinPackageListView.as_view(), name="coin-packages"),
    path("purchases/", PurchaseListView.as_view(), name="purchases"),
    path("ads/status/", AdStatusView.as_view(), name="ad-status"),
    path("ads/ssv/", RewardedAdSSVView.as_view(), name="rewarded-ad-ssv"),
]
