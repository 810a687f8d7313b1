"""
보상형 광고 (AdMob SSV) 코인 지급.

AdMob 은 콜백 쿼리 스트링 끝에 signature, key_id 를 붙인다. 서명 대상은
``&signature=`` 앞까지의 원본 쿼리 스트링이고, 서명은 DER 인코딩된
ECDSA(P-256, SHA-256) 이다.
"""
import base64
import logging
from datetime import datetime, time, timedelta
from urllib.parse import unquote

from Crypto.Hash import SHA256
from Crypto.PublicKey import ECC
from Crypto.Signature import DSS
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.utils import timezone

from coinchat_backend.errors import BusinessRuleError, NotFound, ValidationFailed
from options.services import get_int_option
from .models import AdView, CoinTransaction
from .services import credit, lock_user

logger = logging.getLogger(__name__)

User = get_user_model()


class InvalidSignature(Exception):
    pass


def base64_urlsafe_decode(s):
    """Base64 URL-safe 디코딩 함수"""
    s = s.encode() if isinstance(s, str) else s
    s = s.replace(b'-', b'+').replace(b'_', b'/')
    padding = b'=' * (-len(s) % 4)
    return base64.b64decode(s + padding)


def verify_ssv_signature(query_string, signature_b64, key_id):
    if settings.SKIP_ADMOB_SIGNATURE_VERIFICATION:
        logger.warning("Skipping AdMob signature verification due to development setting")
        return

    pem = settings.ADMOB_PUBLIC_KEYS.get(str(key_id))
    if not pem:
        raise InvalidSignature(f"Unknown key_id {key_id}")

    marker = "&signature="
    if marker not in query_string:
        raise InvalidSignature("signature is not part of the query string")
    message = query_string.split(marker, 1)[0]

    try:
        public_key = ECC.import_key(pem)
        verifier = DSS.new(public_key, 'fips-186-3', encoding='der')
        verifier.verify(SHA256.new(message.encode('utf-8')), base64_urlsafe_decode(unquote(signature_b64)))
    except (ValueError, TypeError) as e:
        raise InvalidSignature(str(e)) from e


def _today_range():
    today = timezone.localdate()
    start = timezone.make_aware(datetime.combine(today, time.min))
    return start, start + timedelta(days=1)


def ad_status(user):
    max_daily = get_int_option("max_daily_ad_views")
    reward_coins = get_int_option("ad_reward_coins")
    start, end = _today_range()
    used_today = AdView.objects.filter(user=user, created_at__gte=start, created_at__lt=end).count()
    remaining = max(max_daily - used_today, 0)
    return {
        "maxDaily": max_daily,
        "usedToday": used_today,
        "remaining": remaining,
        "canWatch": remaining > 0,
        "rewardCoins": reward_coins,
    }


def grant_ad_reward(user_id, transaction_id, ad_unit="", reward_item="", provider="admob"):
    """
    광고 시청 보상 지급. 같은 transaction_id 는 한 번만 지급되며 재전송 시
    (already_processed=True, 잔액) 를 돌려준다.
    """
    if not transaction_id:
        raise ValidationFailed("transaction_id is required")

    existing = AdView.objects.filter(transaction_id=transaction_id).first()
    if existing is not None:
        return True, User.objects.get(pk=existing.user_id).coins

    max_daily = get_int_option("max_daily_ad_views")
    reward_coins = get_int_option("ad_reward_coins")
    start, end = _today_range()

    try:
        with transaction.atomic():
            user = lock_user(user_id)
            used_today = AdView.objects.filter(user=user, created_at__gte=start, created_at__lt=end).count()
            if used_today >= max_daily:
                raise BusinessRuleError(
                    "Daily ad limit reached. Come back tomorrow!",
                    code="AD_LIMIT_REACHED",
                    data={"maxDaily": max_daily, "usedToday": used_today},
                )
            AdView.objects.create(
                user=user,
                transaction_id=transaction_id,
                ad_unit=ad_unit,
                reward_item=reward_item,
                reward_coins=reward_coins,
                provider=provider,
            )
            result = credit(
                user.id,
                reward_coins,
                reason=CoinTransaction.REASON_AD_REWARD,
                reference_id=transaction_id,
                note=f"Reward from {provider} {reward_item}".strip(),
                locked_user=user,
            )
    except IntegrityError:
        logger.info(f"Ad reward {transaction_id} already processed (race)")
        return True, User.objects.get(pk=user_id).coins

    logger.info(f"Ad reward granted for user {user_id}: {reward_coins} coins, balance={result.new_balance}")
    return False, result.new_balance


def resolve_ssv_user(raw_user_id):
    try:
        user_id = int(raw_user_id)
    except (TypeError, ValueError):
        raise ValidationFailed("user_id must be an integer")
    if not User.objects.filter(pk=user_id, is_active=True).exists():
        raise NotFound("User not found")
    return user_id
