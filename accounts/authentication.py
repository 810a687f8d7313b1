import logging

from django.utils import timezone
from rest_framework import exceptions
from rest_framework_simplejwt.authentication import JWTAuthentication

logger = logging.getLogger(__name__)

# last_active 갱신 주기 (매 요청마다 쓰지 않도록)
LAST_ACTIVE_RESOLUTION_SECONDS = 60


class SessionJWTAuthentication(JWTAuthentication):
    """
    Bearer 토큰 세션 검증기.

    모든 뷰에 DEFAULT_AUTHENTICATION_CLASSES 로 주입된다. 비활성 계정과
    봇 계정은 토큰이 유효해도 거절한다 (401).
    """

    def get_user(self, validated_token):
        user = super().get_user(validated_token)
        if user.is_bot:
            logger.warning(f"Bot account {user.id} attempted API access")
            raise exceptions.AuthenticationFailed("Bot accounts cannot sign in.", code="bot_account")
        self._touch(user)
        return user

    def _touch(self, user):
        now = timezone.now()
        if user.last_active and (now - user.last_active).total_seconds() < LAST_ACTIVE_RESOLUTION_SECONDS:
            return
        type(user).objects.filter(pk=user.pk).update(last_active=now)
        user.last_active = now
