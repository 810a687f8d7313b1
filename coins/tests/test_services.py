from django.contrib.auth import get_user_model
from django.test import TestCase

from coinchat_backend.errors import BusinessRuleError, InsufficientCoins
from coins.models import CoinTransaction
from coins.services import admin_adjust, credit, debit, reconcile, refund

User = get_user_model()


class LedgerTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="bob", password="pass1234")

    def test_credit_increases_balance_and_writes_entry(self):
        result = credit(self.user.id, 150, reason=CoinTransaction.REASON_PURCHASE, reference_id="p-1")
        self.assertEqual(result.new_balance, 150)
        self.user.refresh_from_db()
        self.assertEqual(self.user.coins, 150)

        entry = CoinTransaction.objects.get(user=self.user)
        self.assertEqual(entry.amount, 150)
        self.assertEqual(entry.direction, CoinTransaction.DIRECTION_CREDIT)
        self.assertEqual(entry.reference_id, "p-1")
        self.assertEqual(entry.balance_after, 150)

    def test_debit_success(self):
        credit(self.user.id, 100, reason=CoinTransaction.REASON_PURCHASE)
        result = debit(self.user.id, 60, reason=CoinTransaction.REASON_MESSAGE, reference_id=7)
        self.assertEqual(result.new_balance, 40)
        self.assertEqual(result.transaction.reference_id, "7")
        self.assertEqual(result.transaction.signed_amount, -60)

    def test_debit_insufficient_changes_nothing(self):
        credit(self.user.id, 5, reason=CoinTransaction.REASON_PURCHASE)
        with self.assertRaises(InsufficientCoins) as ctx:
            debit(self.user.id, 10, reason=CoinTransaction.REASON_MESSAGE)

        self.assertEqual(ctx.exception.code, "INSUFFICIENT_COINS")
        self.assertEqual(ctx.exception.data, {"required": 10, "current": 5})
        self.user.refresh_from_db()
        self.assertEqual(self.user.coins, 5)
        self.assertEqual(CoinTransaction.objects.filter(user=self.user).count(), 1)

    def test_zero_amount_writes_no_entry(self):
        result = debit(self.user.id, 0, reason=CoinTransaction.REASON_MESSAGE)
        self.assertEqual(result.new_balance, 0)
        self.assertIsNone(result.transaction)
        self.assertFalse(CoinTransaction.objects.exists())

    def test_negative_amount_rejected(self):
        with self.assertRaises(ValueError):
            credit(self.user.id, -1, reason=CoinTransaction.REASON_PURCHASE)

    def test_balance_never_negative_over_sequence(self):
        credit(self.user.id, 30, reason=CoinTransaction.REASON_PURCHASE)
        for amount in [10, 15, 10, 5, 1]:
            try:
                debit(self.user.id, amount, reason=CoinTransaction.REASON_MESSAGE)
            except InsufficientCoins:
                pass
            self.user.refresh_from_db()
            self.assertGreaterEqual(self.user.coins, 0)
        self.assertEqual(self.user.coins, 0)

    def test_reconcile_matches_balance(self):
        credit(self.user.id, 100, reason=CoinTransaction.REASON_PURCHASE)
        debit(self.user.id, 30, reason=CoinTransaction.REASON_MESSAGE)
        admin_adjust(self.user.id, -20, note="correction")
        admin_adjust(self.user.id, 5, note="goodwill")

        report = reconcile(self.user.id)
        self.assertEqual(report["balance"], 55)
        self.assertEqual(report["ledger_sum"], 55)
        self.assertTrue(report["consistent"])

    def test_refund_is_idempotent(self):
        credit(self.user.id, 50, reason=CoinTransaction.REASON_PURCHASE)
        spent = debit(self.user.id, 20, reason=CoinTransaction.REASON_MESSAGE).transaction

        first = refund(spent.id)
        second = refund(spent.id)

        self.assertEqual(first.new_balance, 50)
        self.assertEqual(second.new_balance, 50)
        spent.refresh_from_db()
        self.assertEqual(spent.status, CoinTransaction.STATUS_REFUNDED)
        self.assertEqual(CoinTransaction.objects.filter(reason=CoinTransaction.REASON_REFUND).count(), 1)
        self.assertTrue(reconcile(self.user.id)["consistent"])

    def test_refund_credit_rejected(self):
        entry = credit(self.user.id, 50, reason=CoinTransaction.REASON_PURCHASE).transaction
        with self.assertRaises(BusinessRuleError):
            refund(entry.id)


class LedgerImmutabilityTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="carol", password="pass1234")
        self.entry = credit(self.user.id, 10, reason=CoinTransaction.REASON_PURCHASE).transaction

    def test_update_rejected(self):
        self.entry.amount = 999
        with self.assertRaises(ValueError):
            self.entry.save()

    def test_delete_rejected(self):
        with self.assertRaises(ValueError):
            self.entry.delete()

    def test_status_only_update_allowed(self):
        self.entry.status = CoinTransaction.STATUS_REFUNDED
        self.entry.save(update_fields=["status"])
        self.entry.refresh_from_db()
        self.assertEqual(self.entry.status, CoinTransaction.STATUS_REFUNDED)
