from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from chats.models import Chat, Message
from chats.tests.fakes import FakeReplyGenerator, MemoryFileStorage
from coins.models import CoinTransaction
from coins.services import credit

User = get_user_model()


def auth_client(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


class ChatAPITests(TestCase):
    def setUp(self):
        FakeReplyGenerator.reset()
        MemoryFileStorage.reset()
        self.alice = User.objects.create_user(username="alice", password="pass1234")
        self.bob = User.objects.create_user(username="bob", password="pass1234")
        self.chat = Chat.objects.create(participant_1=self.alice, participant_2=self.bob)
        self.client = auth_client(self.alice)

    def test_send_message_insufficient_coins_envelope(self):
        credit(self.alice.id, 5, reason=CoinTransaction.REASON_PURCHASE)
        res = self.client.post(f"/api/chats/{self.chat.id}/send-message/", {"message": "hi"}, format="multipart")

        self.assertEqual(res.status_code, 400)
        self.assertFalse(res.data["success"])
        self.assertEqual(res.data["code"], "INSUFFICIENT_COINS")
        self.assertEqual(res.data["data"], {"required": 10, "current": 5})
        self.assertFalse(Message.objects.exists())

    def test_send_message_with_media(self):
        credit(self.alice.id, 50, reason=CoinTransaction.REASON_PURCHASE)
        image = SimpleUploadedFile("p.png", b"\x89PNG\r\n\x1a\n" + b"\x00" * 64, content_type="image/png")
        res = self.client.post(
            f"/api/chats/{self.chat.id}/send-message/",
            {"message": "look", "media": image, "clientMessageId": "m-1"},
            format="multipart",
        )

        self.assertEqual(res.status_code, 201)
        data = res.data["data"]
        self.assertTrue(data["has_media"])
        self.assertTrue(data["has_caption"])
        self.assertIsNone(data["bot_message"])
        self.assertEqual(data["newBalance"], 40)
        self.assertTrue(data["files"][0]["url"].startswith("/media/chat_media/"))

        replay = self.client.post(
            f"/api/chats/{self.chat.id}/send-message/",
            {"message": "look", "clientMessageId": "m-1"},
            format="multipart",
        )
        self.assertEqual(replay.status_code, 200)
        self.assertTrue(replay.data["data"]["duplicate"])

    def test_send_message_not_participant(self):
        stranger = User.objects.create_user(username="mallory", password="pass1234")
        res = auth_client(stranger).post(f"/api/chats/{self.chat.id}/send-message/", {"message": "hi"}, format="json")
        self.assertEqual(res.status_code, 403)

    def test_send_message_missing_chat(self):
        res = self.client.post("/api/chats/9999/send-message/", {"message": "hi"}, format="json")
        self.assertEqual(res.status_code, 404)

    def test_fetch_messages_resets_unread(self):
        Chat.objects.filter(pk=self.chat.pk).update(unread_count_p2=3)
        for i in range(3):
            Message.objects.create(chat=self.chat, sender=self.alice, receiver=self.bob, message=f"m{i}")

        res = auth_client(self.bob).get(f"/api/chats/{self.chat.id}/messages/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.data["data"]["messages"]), 3)
        self.chat.refresh_from_db()
        self.assertEqual(self.chat.unread_count_p2, 0)

    def test_cursor_endpoint(self):
        for i in range(3):
            Message.objects.create(chat=self.chat, sender=self.bob, receiver=self.alice, message=f"m{i}")
        res = self.client.get(f"/api/chats/{self.chat.id}/messages/cursor/?limit=2")
        self.assertEqual(res.status_code, 200)
        self.assertIsNotNone(res.data["data"]["nextCursor"])

    def test_chat_list_and_pin(self):
        carol = User.objects.create_user(username="carol", password="pass1234")
        other = Chat.objects.create(participant_1=carol, participant_2=self.alice)

        self.client.post(f"/api/chats/{other.id}/pin/")
        res = self.client.get("/api/chats/")
        self.assertEqual(res.status_code, 200)
        chats = res.data["data"]["chats"]
        self.assertEqual(chats[0]["id"], other.id)
        self.assertTrue(chats[0]["pinned"])
        self.assertEqual(chats[0]["other_user"]["username"], "carol")

    def test_open_chat(self):
        carol = User.objects.create_user(username="carol", password="pass1234")
        res = self.client.post("/api/chats/", {"userId": carol.id}, format="json")
        self.assertEqual(res.status_code, 201)

        again = auth_client(carol).post("/api/chats/", {"userId": self.alice.id}, format="json")
        self.assertEqual(again.status_code, 200)
        self.assertEqual(again.data["data"]["chat"]["id"], res.data["data"]["chat"]["id"])

    def test_delete_chat_hides_it(self):
        res = self.client.delete(f"/api/chats/{self.chat.id}/")
        self.assertEqual(res.status_code, 200)
        listed = self.client.get("/api/chats/")
        self.assertEqual(listed.data["data"]["chats"], [])

    def test_block_then_send_forbidden(self):
        credit(self.alice.id, 50, reason=CoinTransaction.REASON_PURCHASE)
        self.client.post(f"/api/chats/{self.chat.id}/block/")
        res = self.client.post(f"/api/chats/{self.chat.id}/send-message/", {"message": "hi"}, format="json")
        self.assertEqual(res.status_code, 403)

        self.client.post(f"/api/chats/{self.chat.id}/unblock/")
        res = self.client.post(f"/api/chats/{self.chat.id}/send-message/", {"message": "hi"}, format="json")
        self.assertEqual(res.status_code, 201)

    def test_delete_message_endpoint(self):
        message = Message.objects.create(chat=self.chat, sender=self.alice, receiver=self.bob, message="oops")
        res = self.client.delete(f"/api/chats/{self.chat.id}/messages/{message.id}/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["data"]["message"]["message"], Message.DELETED_PLACEHOLDER)
