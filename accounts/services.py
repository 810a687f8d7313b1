import logging

from django.contrib.auth import get_user_model
from django.db import transaction

from coins.models import CoinTransaction
from coins.services import credit
from options.services import get_int_option

logger = logging.getLogger(__name__)
User = get_user_model()


def register_user(username, password, **fields):
    """
    신규 회원 생성. 프로모션 코인(signup_bonus_coins)이 설정되어 있으면
    같은 트랜잭션에서 원장을 통해 지급한다.
    """
    bonus = get_int_option("signup_bonus_coins")

    with transaction.atomic():
        user = User.objects.create_user(username=username, password=password, **fields)
        if bonus > 0:
            credit(
                user.id,
                bonus,
                reason=CoinTransaction.REASON_SIGNUP_BONUS,
                reference_id=str(user.id),
                note="Signup bonus",
            )
            user.refresh_from_db(fields=["coins"])

    logger.info(f"New user registered: id={user.id}, bonus={bonus}")
    return user
