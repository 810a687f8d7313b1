import logging
from dataclasses import dataclass
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Case, IntegerField, Sum, When, F

from coinchat_backend.errors import BusinessRuleError, InsufficientCoins, NotFound
from .models import CoinTransaction

logger = logging.getLogger(__name__)

User = get_user_model()


@dataclass
class LedgerResult:
    new_balance: int
    transaction: Optional[CoinTransaction] = None


def lock_user(user_id):
    """사용자 행을 SELECT ... FOR UPDATE 로 잠근다. 반드시 atomic 블록 안에서 호출."""
    try:
        return User.objects.select_for_update().get(pk=user_id)
    except User.DoesNotExist:
        raise NotFound("User not found")


def _check_amount(amount):
    amount = int(amount)
    if amount < 0:
        raise ValueError("Coin amount must not be negative")
    return amount


def debit(user_id, amount, reason, reference_id="", note="", locked_user=None):
    """
    잔액 차감 + 원장 기록.

    잔액이 부족하면 InsufficientCoins 를 던지고 아무것도 바꾸지 않는다. 호출자가
    이미 열어둔 트랜잭션 안이라면 그 트랜잭션 전체가 롤백되어야 한다.
    amount == 0 이면 잔액/원장 모두 건드리지 않는다.
    """
    amount = _check_amount(amount)

    with transaction.atomic():
        user = locked_user if locked_user is not None else lock_user(user_id)
        if amount == 0:
            return LedgerResult(new_balance=user.coins)
        if user.coins < amount:
            logger.warning(f"Insufficient coins: user={user.id} required={amount} current={user.coins}")
            raise InsufficientCoins(required=amount, current=user.coins)

        user.coins -= amount
        user.save(update_fields=["coins"])
        entry = CoinTransaction.objects.create(
            user=user,
            amount=amount,
            direction=CoinTransaction.DIRECTION_SPEND,
            reason=reason,
            reference_id=str(reference_id or ""),
            balance_after=user.coins,
            note=note or "",
        )

    logger.info(f"Debit: user={user.id} amount={amount} reason={reason} ref={reference_id} balance={user.coins}")
    return LedgerResult(new_balance=user.coins, transaction=entry)


def credit(user_id, amount, reason, reference_id="", note="", locked_user=None):
    """잔액 증가 + 원장 기록. amount == 0 이면 아무 일도 하지 않는다."""
    amount = _check_amount(amount)

    with transaction.atomic():
        user = locked_user if locked_user is not None else lock_user(user_id)
        if amount == 0:
            return LedgerResult(new_balance=user.coins)

        user.coins += amount
        user.save(update_fields=["coins"])
        entry = CoinTransaction.objects.create(
            user=user,
            amount=amount,
            direction=CoinTransaction.DIRECTION_CREDIT,
            reason=reason,
            reference_id=str(reference_id or ""),
            balance_after=user.coins,
            note=note or "",
        )

    logger.info(f"Credit: user={user.id} amount={amount} reason={reason} ref={reference_id} balance={user.coins}")
    return LedgerResult(new_balance=user.coins, transaction=entry)


def refund(transaction_id, note=""):
    """
    완료된 차감 건을 환불한다: 금액을 되돌려주는 credit 을 쓰고 원래 건을
    refunded 로 바꾼다. 이미 환불된 건이면 현재 잔액만 돌려준다.
    """
    with transaction.atomic():
        try:
            entry = CoinTransaction.objects.select_for_update().get(pk=transaction_id)
        except CoinTransaction.DoesNotExist:
            raise NotFound("Transaction not found")

        if entry.direction != CoinTransaction.DIRECTION_SPEND:
            raise BusinessRuleError("Only spend transactions can be refunded", code="NOT_REFUNDABLE")

        user = lock_user(entry.user_id)
        if entry.status == CoinTransaction.STATUS_REFUNDED:
            return LedgerResult(new_balance=user.coins)

        result = credit(
            user.id,
            entry.amount,
            reason=CoinTransaction.REASON_REFUND,
            reference_id=str(entry.id),
            note=note or f"Refund of transaction {entry.id}",
            locked_user=user,
        )
        entry.status = CoinTransaction.STATUS_REFUNDED
        entry.save(update_fields=["status"])

    logger.info(f"Refunded transaction {entry.id} for user {entry.user_id}")
    return result


def admin_adjust(user_id, delta, note=""):
    """관리자 수동 조정. delta 가 음수면 차감 (잔액 부족 시 실패)."""
    delta = int(delta)
    if delta >= 0:
        return credit(user_id, delta, reason=CoinTransaction.REASON_ADMIN_ADJUSTMENT, note=note)
    return debit(user_id, -delta, reason=CoinTransaction.REASON_ADMIN_ADJUSTMENT, note=note)


def reconcile(user_id):
    """원장 합계와 현재 잔액 비교 (가입 시 잔액 0 기준)."""
    user = User.objects.filter(pk=user_id).only("coins").first()
    if user is None:
        raise NotFound("User not found")

    ledger_sum = CoinTransaction.objects.filter(user_id=user_id).aggregate(
        total=Sum(
            Case(
                When(direction=CoinTransaction.DIRECTION_CREDIT, then=F("amount")),
                default=-F("amount"),
                output_field=IntegerField(),
            )
        )
    )["total"] or 0

    return {
        "balance": user.coins,
        "ledger_sum": ledger_sum,
        "consistent": ledger_sum == user.coins,
    }
