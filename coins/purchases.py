"""
인앱 결제 검증 및 코인 지급.

purchase_token 이 멱등성 키다. 같은 토큰은 몇 번을 보내도 코인이 한 번만
지급된다 (unique 제약 + 행 잠금).
"""
import logging
from dataclasses import dataclass
from typing import Optional

from django.db import IntegrityError, transaction
from django.db.models import F

from coinchat_backend.collaborators import get_collaborator
from coinchat_backend.errors import BusinessRuleError, NotFound, PermissionDenied, ServiceError
from .google_play import PURCHASE_STATE_PENDING, PurchaseVerificationError
from .models import CoinPackage, CoinTransaction, PurchaseTransaction
from .services import credit, lock_user

logger = logging.getLogger(__name__)


@dataclass
class PurchaseResult:
    granted: bool
    coins: int
    already_processed: bool
    purchase: Optional[PurchaseTransaction] = None
    new_balance: Optional[int] = None


def _already_processed(purchase):
    return PurchaseResult(
        granted=False,
        coins=purchase.coins_received if purchase else 0,
        already_processed=True,
        purchase=purchase,
    )


def _find_or_create_pending(user, package, product_id, purchase_token, order_id):
    existing = PurchaseTransaction.objects.filter(purchase_token=purchase_token).first()
    if existing is not None:
        return existing, False
    try:
        with transaction.atomic():
            purchase = PurchaseTransaction.objects.create(
                user=user,
                package=package,
                product_id=product_id,
                purchase_token=purchase_token,
                order_id=order_id or "",
                coins_received=package.coins,
                status=PurchaseTransaction.STATUS_PENDING,
            )
        return purchase, True
    except IntegrityError:
        # 동일 토큰의 동시 요청에 밀림
        logger.info(f"Purchase token race lost for user {user.id}, treating as already processed")
        return None, False


def verify_purchase(user, product_id, purchase_token, order_id=None):
    package = CoinPackage.objects.filter(
        play_product_id=product_id, status=CoinPackage.STATUS_ACTIVE
    ).first()
    if package is None:
        raise NotFound("Coin package not found or inactive")

    purchase, _ = _find_or_create_pending(user, package, product_id, purchase_token, order_id)
    if purchase is None:
        return _already_processed(PurchaseTransaction.objects.filter(purchase_token=purchase_token).first())
    if purchase.user_id != user.id:
        logger.warning(f"User {user.id} submitted purchase token owned by user {purchase.user_id}")
        raise PermissionDenied("This purchase belongs to another account")
    if purchase.status == PurchaseTransaction.STATUS_COMPLETED:
        return _already_processed(purchase)

    verifier = get_collaborator("COINCHAT_PURCHASE_VERIFIER")
    try:
        receipt = verifier.verify(product_id, purchase_token)
    except PurchaseVerificationError as e:
        logger.error(f"Purchase verification unavailable for purchase {purchase.id}: {e}")
        raise ServiceError("Could not verify purchase, please try again later")

    if not receipt.is_purchased:
        status = (
            PurchaseTransaction.STATUS_PENDING
            if receipt.purchase_state == PURCHASE_STATE_PENDING
            else PurchaseTransaction.STATUS_FAILED
        )
        PurchaseTransaction.objects.filter(pk=purchase.pk).exclude(
            status=PurchaseTransaction.STATUS_COMPLETED
        ).update(
            status=status,
            purchase_state=receipt.purchase_state,
            raw_response=receipt.raw,
            order_id=receipt.order_id or purchase.order_id,
        )
        logger.warning(f"Purchase {purchase.id} not grantable: state={receipt.purchase_state}")
        if status == PurchaseTransaction.STATUS_PENDING:
            raise BusinessRuleError(
                "Purchase is pending. Try again later.",
                code="PURCHASE_PENDING",
                data={"purchaseState": receipt.purchase_state},
            )
        raise BusinessRuleError(
            "Purchase not completed or cancelled.",
            code="PURCHASE_NOT_COMPLETED",
            data={"purchaseState": receipt.purchase_state},
        )

    with transaction.atomic():
        locked = PurchaseTransaction.objects.select_for_update().get(pk=purchase.pk)
        if locked.status == PurchaseTransaction.STATUS_COMPLETED:
            return _already_processed(locked)

        owner = lock_user(user.id)
        result = credit(
            owner.id,
            package.coins,
            reason=CoinTransaction.REASON_PURCHASE,
            reference_id=str(locked.id),
            note=f"Purchase {package.play_product_id}",
            locked_user=owner,
        )
        locked.status = PurchaseTransaction.STATUS_COMPLETED
        locked.purchase_state = receipt.purchase_state
        locked.raw_response = receipt.raw
        locked.order_id = receipt.order_id or locked.order_id
        locked.coins_received = package.coins
        locked.acknowledged = receipt.acknowledgement_state == 1
        locked.save()
        CoinPackage.objects.filter(pk=package.pk).update(sold_count=F("sold_count") + 1)

    logger.info(f"Purchase {locked.id} completed: user={user.id} coins={package.coins}")

    if not locked.acknowledged:
        _acknowledge(verifier, locked)

    return PurchaseResult(
        granted=True,
        coins=package.coins,
        already_processed=False,
        purchase=locked,
        new_balance=result.new_balance,
    )


def _acknowledge(verifier, purchase):
    """지급 커밋 이후 제공자에 확인 통보. 실패해도 지급은 유지되고 로그만 남긴다."""
    try:
        verifier.acknowledge(purchase.product_id, purchase.purchase_token)
    except Exception as e:
        logger.error(
            f"Acknowledge failed for purchase {purchase.id} (token {purchase.purchase_token[:12]}…): {e}",
            exc_info=True,
        )
        return
    PurchaseTransaction.objects.filter(pk=purchase.pk).update(acknowledged=True)
    purchase.acknowledged = True
