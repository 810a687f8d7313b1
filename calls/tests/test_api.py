from datetime import timedelta

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from calls.models import VideoCall
from chats.models import Chat
from coins.models import CoinTransaction
from coins.services import credit
from options.services import set_option

User = get_user_model()


def auth_client(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


class CallAPITests(TestCase):
    def setUp(self):
        self.caller = User.objects.create_user(username="ian", password="pass1234")
        self.receiver = User.objects.create_user(username="jane", password="pass1234")
        self.chat = Chat.objects.create(participant_1=self.caller, participant_2=self.receiver)
        set_option("video_call_cost_per_minute", 25)
        set_option("video_call_minimum_start_balance", 25)
        self.caller_client = auth_client(self.caller)
        self.receiver_client = auth_client(self.receiver)

    def test_full_call_flow(self):
        credit(self.caller.id, 25, reason=CoinTransaction.REASON_PURCHASE)

        res = self.caller_client.post(f"/api/chats/{self.chat.id}/video-calls/initiate/", {}, format="json")
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["data"]["newBalance"], 0)
        call_id = res.data["data"]["call"]["id"]

        res = self.receiver_client.post(f"/api/video-calls/{call_id}/ringing/")
        self.assertEqual(res.data["data"]["call"]["status"], VideoCall.STATUS_RINGING)

        res = self.receiver_client.post(f"/api/video-calls/{call_id}/accept/")
        self.assertEqual(res.status_code, 200)
        VideoCall.objects.filter(pk=call_id).update(started_at=timezone.now() - timedelta(seconds=70))

        res = self.caller_client.post(f"/api/video-calls/{call_id}/end/")
        self.assertEqual(res.status_code, 200)
        data = res.data["data"]
        self.assertEqual(data["billedMinutes"], 2)
        self.assertEqual(data["chargedNow"], 0)
        self.assertEqual(data["call"]["coins_charged"], 25)

        again = self.receiver_client.post(f"/api/video-calls/{call_id}/end/")
        self.assertEqual(again.status_code, 200)
        self.assertTrue(again.data["data"]["alreadyEnded"])

    def test_initiate_conflict(self):
        credit(self.caller.id, 100, reason=CoinTransaction.REASON_PURCHASE)
        self.caller_client.post(f"/api/chats/{self.chat.id}/video-calls/initiate/", {}, format="json")
        res = self.caller_client.post(f"/api/chats/{self.chat.id}/video-calls/initiate/", {}, format="json")
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["code"], "CALL_ALREADY_ACTIVE")

    def test_initiate_insufficient(self):
        res = self.caller_client.post(f"/api/chats/{self.chat.id}/video-calls/initiate/", {}, format="json")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["code"], "INSUFFICIENT_COINS")

    def test_caller_cannot_accept(self):
        credit(self.caller.id, 25, reason=CoinTransaction.REASON_PURCHASE)
        res = self.caller_client.post(f"/api/chats/{self.chat.id}/video-calls/initiate/", {}, format="json")
        call_id = res.data["data"]["call"]["id"]
        res = self.caller_client.post(f"/api/video-calls/{call_id}/accept/")
        self.assertEqual(res.status_code, 403)

    def test_unknown_call(self):
        res = self.caller_client.post("/api/video-calls/9999/end/")
        self.assertEqual(res.status_code, 404)

    def test_history(self):
        credit(self.caller.id, 100, reason=CoinTransaction.REASON_PURCHASE)
        res = self.caller_client.post(
            f"/api/chats/{self.chat.id}/video-calls/initiate/", {"callType": "audio"}, format="json"
        )
        self.assertEqual(res.data["data"]["call"]["call_type"], "audio")

        res = self.receiver_client.get("/api/video-calls/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["data"]["pagination"]["total"], 1)
