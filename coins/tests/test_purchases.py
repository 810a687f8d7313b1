from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import IntegrityError
from django.test import TestCase

from coinchat_backend.errors import BusinessRuleError, PermissionDenied, ServiceError
from coins import purchases
from coins.google_play import PURCHASE_STATE_CANCELLED, PURCHASE_STATE_PENDING
from coins.models import CoinPackage, CoinTransaction, PurchaseTransaction
from coins.purchases import verify_purchase
from coins.services import reconcile
from coins.tests.fakes import FakePurchaseVerifier

User = get_user_model()


class PurchaseVerificationTests(TestCase):
    def setUp(self):
        FakePurchaseVerifier.reset()
        self.user = User.objects.create_user(username="dave", password="pass1234")
        self.package = CoinPackage.objects.create(
            name="500 coins", coins=500, price=Decimal("4.99"), play_product_id="coins_500"
        )

    def test_grant_then_replay_is_already_processed(self):
        first = verify_purchase(self.user, "coins_500", "tok-123")
        self.assertTrue(first.granted)
        self.assertEqual(first.coins, 500)
        self.assertEqual(first.new_balance, 500)

        second = verify_purchase(self.user, "coins_500", "tok-123")
        self.assertFalse(second.granted)
        self.assertTrue(second.already_processed)

        self.user.refresh_from_db()
        self.assertEqual(self.user.coins, 500)
        self.assertEqual(CoinTransaction.objects.filter(reason=CoinTransaction.REASON_PURCHASE).count(), 1)
        self.assertEqual(len(FakePurchaseVerifier.verify_calls), 1)

        purchase = PurchaseTransaction.objects.get(purchase_token="tok-123")
        self.assertEqual(purchase.status, PurchaseTransaction.STATUS_COMPLETED)
        self.assertTrue(purchase.acknowledged)
        self.package.refresh_from_db()
        self.assertEqual(self.package.sold_count, 1)
        self.assertTrue(reconcile(self.user.id)["consistent"])

    def test_pending_purchase_not_credited(self):
        FakePurchaseVerifier.state = PURCHASE_STATE_PENDING
        with self.assertRaises(BusinessRuleError) as ctx:
            verify_purchase(self.user, "coins_500", "tok-pending")

        self.assertEqual(ctx.exception.code, "PURCHASE_PENDING")
        purchase = PurchaseTransaction.objects.get(purchase_token="tok-pending")
        self.assertEqual(purchase.status, PurchaseTransaction.STATUS_PENDING)
        self.user.refresh_from_db()
        self.assertEqual(self.user.coins, 0)

        # 결제가 완료된 뒤 재시도하면 지급된다
        FakePurchaseVerifier.state = 0
        result = verify_purchase(self.user, "coins_500", "tok-pending")
        self.assertTrue(result.granted)

    def test_cancelled_purchase_marked_failed(self):
        FakePurchaseVerifier.state = PURCHASE_STATE_CANCELLED
        with self.assertRaises(BusinessRuleError) as ctx:
            verify_purchase(self.user, "coins_500", "tok-cancelled")

        self.assertEqual(ctx.exception.code, "PURCHASE_NOT_COMPLETED")
        self.assertEqual(
            PurchaseTransaction.objects.get(purchase_token="tok-cancelled").status,
            PurchaseTransaction.STATUS_FAILED,
        )
        self.assertFalse(CoinTransaction.objects.exists())

    def test_verifier_unreachable_leaves_row_pending(self):
        FakePurchaseVerifier.unreachable = True
        with self.assertRaises(ServiceError) as ctx:
            verify_purchase(self.user, "coins_500", "tok-down")

        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(
            PurchaseTransaction.objects.get(purchase_token="tok-down").status,
            PurchaseTransaction.STATUS_PENDING,
        )

    def test_acknowledge_failure_keeps_grant(self):
        FakePurchaseVerifier.ack_fails = True
        result = verify_purchase(self.user, "coins_500", "tok-noack")

        self.assertTrue(result.granted)
        purchase = PurchaseTransaction.objects.get(purchase_token="tok-noack")
        self.assertEqual(purchase.status, PurchaseTransaction.STATUS_COMPLETED)
        self.assertFalse(purchase.acknowledged)
        self.user.refresh_from_db()
        self.assertEqual(self.user.coins, 500)

    def test_token_of_another_user_rejected(self):
        verify_purchase(self.user, "coins_500", "tok-shared")
        other = User.objects.create_user(username="eve", password="pass1234")

        with self.assertRaises(PermissionDenied):
            verify_purchase(other, "coins_500", "tok-shared")
        other.refresh_from_db()
        self.assertEqual(other.coins, 0)

    def test_lost_insert_race_is_already_processed(self):
        PurchaseTransaction.objects.create(
            user=self.user, package=self.package, product_id="coins_500",
            purchase_token="tok-race", coins_received=500,
            status=PurchaseTransaction.STATUS_COMPLETED,
        )
        with mock.patch.object(purchases.PurchaseTransaction.objects, "create", side_effect=IntegrityError):
            with mock.patch.object(purchases.PurchaseTransaction.objects, "filter") as mocked_filter:
                mocked_filter.return_value.first.side_effect = [
                    None,
                    PurchaseTransaction.objects.get(purchase_token="tok-race"),
                ]
                result = verify_purchase(self.user, "coins_500", "tok-race")

        self.assertTrue(result.already_processed)
        self.assertEqual(FakePurchaseVerifier.verify_calls, [])

    def test_unknown_package(self):
        with self.assertRaises(ServiceError) as ctx:
            verify_purchase(self.user, "coins_999", "tok-unknown")
        self.assertEqual(ctx.exception.status_code, 404)
