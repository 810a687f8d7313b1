from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from coins.google_play import PURCHASE_STATE_PENDING
from coins.models import CoinPackage, CoinTransaction, PurchaseTransaction
from coins.services import credit, debit
from coins.tests.fakes import FakePurchaseVerifier

User = get_user_model()


class CoinAPITests(TestCase):
    def setUp(self):
        FakePurchaseVerifier.reset()
        self.user = User.objects.create_user(username="carol", password="pass1234")
        CoinPackage.objects.create(name="500 coins", coins=500, price=Decimal("4.99"), play_product_id="coins_500")
        CoinPackage.objects.create(
            name="Old", coins=50, price=Decimal("0.99"), play_product_id="coins_50",
            status=CoinPackage.STATUS_INACTIVE,
        )
        self.client = APIClient()

        # JWT 토큰 발급
        refresh = RefreshToken.for_user(self.user)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")

    def test_wallet_initial(self):
        res = self.client.get("/api/coins/wallet/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["data"]["balance"], 0)

    def test_wallet_requires_auth(self):
        res = APIClient().get("/api/coins/wallet/")
        self.assertEqual(res.status_code, 401)
        self.assertFalse(res.data["success"])

    def test_packages_only_active(self):
        res = self.client.get("/api/coins/packages/")
        self.assertEqual(res.status_code, 200)
        ids = [p["play_product_id"] for p in res.data["data"]["packages"]]
        self.assertEqual(ids, ["coins_500"])

    def test_google_play_verify_and_replay(self):
        payload = {"productId": "coins_500", "purchaseToken": "tok-123"}
        first = self.client.post("/api/billing/google-play/verify/", payload, format="json")
        self.assertEqual(first.status_code, 200)
        self.assertTrue(first.data["data"]["granted"])
        self.assertEqual(first.data["data"]["newBalance"], 500)

        second = self.client.post("/api/billing/google-play/verify/", payload, format="json")
        self.assertEqual(second.status_code, 200)
        self.assertTrue(second.data["data"]["alreadyProcessed"])
        self.assertEqual(second.data["message"], "Already processed")

        self.user.refresh_from_db()
        self.assertEqual(self.user.coins, 500)

    def test_google_play_pending_returns_code(self):
        FakePurchaseVerifier.state = PURCHASE_STATE_PENDING
        res = self.client.post(
            "/api/billing/google-play/verify/",
            {"product_id": "coins_500", "purchase_token": "tok-wait-1"},
            format="json",
        )
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["code"], "PURCHASE_PENDING")
        self.assertEqual(res.data["data"], {"purchaseState": PURCHASE_STATE_PENDING})

    def test_google_play_missing_token(self):
        res = self.client.post("/api/billing/google-play/verify/", {"productId": "coins_500"}, format="json")
        self.assertEqual(res.status_code, 400)
        self.assertFalse(res.data["success"])
        self.assertIn("purchase_token", res.data["message"])

    def test_transactions_list(self):
        credit(self.user.id, 100, reason=CoinTransaction.REASON_PURCHASE)
        debit(self.user.id, 10, reason=CoinTransaction.REASON_MESSAGE, reference_id=1)

        res = self.client.get("/api/coins/transactions/?limit=1")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["data"]["pagination"]["total"], 2)
        self.assertEqual(len(res.data["data"]["results"]), 1)
        self.assertEqual(res.data["data"]["results"][0]["reason"], CoinTransaction.REASON_MESSAGE)

    def test_purchase_history_filtered_by_status(self):
        package = CoinPackage.objects.get(play_product_id="coins_500")
        other = User.objects.create_user(username="dave", password="pass1234")
        PurchaseTransaction.objects.create(
            user=self.user, package=package, product_id="coins_500", purchase_token="tok-done",
            coins_received=500, status=PurchaseTransaction.STATUS_COMPLETED,
        )
        PurchaseTransaction.objects.create(
            user=self.user, package=package, product_id="coins_500", purchase_token="tok-wait",
        )
        PurchaseTransaction.objects.create(
            user=other, package=package, product_id="coins_500", purchase_token="tok-other",
            status=PurchaseTransaction.STATUS_COMPLETED,
        )

        res = self.client.get("/api/coins/purchases/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["data"]["pagination"]["total"], 2)

        res = self.client.get("/api/coins/purchases/?status=completed&limit=10")
        self.assertEqual(res.status_code, 200)
        results = res.data["data"]["results"]
        self.assertEqual(len(results), 1)
        self.assertEqual(results[0]["coins_received"], 500)
        self.assertEqual(results[0]["package_name"], "500 coins")

    def test_purchase_history_rejects_unknown_status(self):
        res = self.client.get("/api/coins/purchases/?status=bogus")
        self.assertEqual(res.status_code, 400)
        self.assertFalse(res.data["success"])
