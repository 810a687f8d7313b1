import base64

from Crypto.Hash import SHA256
from Crypto.PublicKey import ECC
from Crypto.Signature import DSS
from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from coinchat_backend.errors import BusinessRuleError
from coins.ads import grant_ad_reward
from coins.models import AdView, CoinTransaction
from options.services import set_option

User = get_user_model()

KEY_ID = "3335741209"
PRIVATE_KEY = ECC.generate(curve="P-256")
PUBLIC_PEM = PRIVATE_KEY.public_key().export_key(format="PEM")


def signed_query(user_id, transaction_id, key=PRIVATE_KEY):
    message = (
        f"ad_network=5450213213286189855&ad_unit=1234567890&reward_amount=5"
        f"&reward_item=coins&timestamp=1700000000000&transaction_id={transaction_id}&user_id={user_id}"
    )
    signature = DSS.new(key, "fips-186-3", encoding="der").sign(SHA256.new(message.encode()))
    encoded = base64.urlsafe_b64encode(signature).rstrip(b"=").decode()
    return f"{message}&signature={encoded}&key_id={KEY_ID}"


class AdRewardServiceTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="frank", password="pass1234")

    def test_reward_granted_once_per_transaction(self):
        already, balance = grant_ad_reward(self.user.id, "tx-1")
        self.assertFalse(already)
        self.assertEqual(balance, 5)

        already, balance = grant_ad_reward(self.user.id, "tx-1")
        self.assertTrue(already)
        self.assertEqual(balance, 5)
        self.assertEqual(CoinTransaction.objects.filter(reason=CoinTransaction.REASON_AD_REWARD).count(), 1)

    def test_daily_limit(self):
        set_option("max_daily_ad_views", 2)
        grant_ad_reward(self.user.id, "tx-a")
        grant_ad_reward(self.user.id, "tx-b")

        with self.assertRaises(BusinessRuleError) as ctx:
            grant_ad_reward(self.user.id, "tx-c")
        self.assertEqual(ctx.exception.code, "AD_LIMIT_REACHED")
        self.assertEqual(AdView.objects.filter(user=self.user).count(), 2)
        self.user.refresh_from_db()
        self.assertEqual(self.user.coins, 10)


@override_settings(ADMOB_PUBLIC_KEYS={KEY_ID: PUBLIC_PEM}, SKIP_ADMOB_SIGNATURE_VERIFICATION=False)
class RewardedAdSSVViewTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="grace", password="pass1234")
        self.client = APIClient()

    def test_valid_signature_grants_reward(self):
        res = self.client.get("/api/coins/ads/ssv/?" + signed_query(self.user.id, "ssv-1"))
        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.data["success"])
        self.assertEqual(res.data["data"]["newBalance"], 5)

        replay = self.client.get("/api/coins/ads/ssv/?" + signed_query(self.user.id, "ssv-1"))
        self.assertEqual(replay.status_code, 200)
        self.assertTrue(replay.data["data"]["alreadyProcessed"])
        self.user.refresh_from_db()
        self.assertEqual(self.user.coins, 5)

    def test_signature_from_other_key_rejected(self):
        other_key = ECC.generate(curve="P-256")
        res = self.client.get("/api/coins/ads/ssv/?" + signed_query(self.user.id, "ssv-2", key=other_key))
        self.assertEqual(res.status_code, 400)
        self.assertFalse(res.data["success"])
        self.assertFalse(AdView.objects.exists())

    def test_missing_fields(self):
        res = self.client.get("/api/coins/ads/ssv/?transaction_id=x")
        self.assertEqual(res.status_code, 400)

    def test_ad_status(self):
        refresh = RefreshToken.for_user(self.user)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        grant_ad_reward(self.user.id, "tx-status")

        res = self.client.get("/api/coins/ads/status/")
        self.assertEqual(res.status_code, 200)
        data = res.data["data"]
        self.assertEqual(data["usedToday"], 1)
        self.assertEqual(data["remaining"], data["maxDaily"] - 1)
        self.assertTrue(data["canWatch"])
