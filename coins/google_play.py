"""
Google Play 인앱 결제 영수증 검증 클라이언트.

Android Publisher REST API (purchases.products) 를 서비스 계정으로 호출한다.
purchaseState: 0 구매 완료, 1 취소, 2 대기.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests
from django.conf import settings
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account

logger = logging.getLogger(__name__)

PURCHASE_STATE_PURCHASED = 0
PURCHASE_STATE_CANCELLED = 1
PURCHASE_STATE_PENDING = 2


class PurchaseVerificationError(Exception):
    """결제 제공자에 연결할 수 없거나 응답을 해석할 수 없음."""


@dataclass
class PurchaseReceipt:
    purchase_state: int
    order_id: Optional[str] = None
    acknowledgement_state: int = 0
    consumption_state: int = 0
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_purchased(self):
        return self.purchase_state == PURCHASE_STATE_PURCHASED


class PurchaseVerifier:
    def verify(self, product_id, purchase_token) -> PurchaseReceipt:
        raise NotImplementedError

    def acknowledge(self, product_id, purchase_token) -> None:
        raise NotImplementedError


class GooglePlayVerifier(PurchaseVerifier):
    SCOPES = ["https://www.googleapis.com/auth/androidpublisher"]
    BASE_URL = (
        "https://androidpublisher.googleapis.com/androidpublisher/v3/applications/"
        "{package}/purchases/products/{product}/tokens/{token}"
    )

    def __init__(self, package_name=None, service_account_file=None, timeout=None):
        self.package_name = package_name or settings.GOOGLE_PLAY_PACKAGE_NAME
        self.service_account_file = service_account_file or settings.GOOGLE_PLAY_SERVICE_ACCOUNT_FILE
        self.timeout = timeout or settings.GOOGLE_PLAY_TIMEOUT
        self._session = None

    def _get_session(self):
        if self._session is None:
            if not self.package_name or not self.service_account_file:
                raise PurchaseVerificationError("Google Play credentials are not configured")
            credentials = service_account.Credentials.from_service_account_file(
                self.service_account_file, scopes=self.SCOPES
            )
            self._session = AuthorizedSession(credentials)
        return self._session

    def _url(self, product_id, purchase_token):
        return self.BASE_URL.format(package=self.package_name, product=product_id, token=purchase_token)

    def verify(self, product_id, purchase_token):
        try:
            res = self._get_session().get(self._url(product_id, purchase_token), timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Google Play verify request failed: {e}")
            raise PurchaseVerificationError(str(e)) from e

        if res.status_code != 200:
            logger.warning(f"Google Play verify returned {res.status_code}: {res.text[:300]}")
            raise PurchaseVerificationError(f"Google Play responded with {res.status_code}")

        data = res.json()
        return PurchaseReceipt(
            purchase_state=int(data.get("purchaseState", PURCHASE_STATE_CANCELLED)),
            order_id=data.get("orderId"),
            acknowledgement_state=int(data.get("acknowledgementState", 0)),
            consumption_state=int(data.get("consumptionState", 0)),
            raw=data,
        )

    def acknowledge(self, product_id, purchase_token):
        try:
            res = self._get_session().post(
                self._url(product_id, purchase_token) + ":acknowledge",
                json={},
                timeout=self.timeout,
            )
            res.raise_for_status()
        except requests.RequestException as e:
            raise PurchaseVerificationError(str(e)) from e
