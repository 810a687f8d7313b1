import pytest
from asgiref.sync import sync_to_async
from channels.testing import WebsocketCommunicator
from django.contrib.auth import get_user_model
from rest_framework_simplejwt.tokens import RefreshToken

from coinchat_backend.asgi import application
from notifications.services import ChannelLayerPushSender, is_online

User = get_user_model()


@sync_to_async
def create_user(username):
    return User.objects.create_user(username=username, password="pass")


@sync_to_async
def get_token_for_user(user):
    return str(RefreshToken.for_user(user).access_token)


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_events_socket_receives_push_and_tracks_presence():
    user = await create_user("nina")
    token = await get_token_for_user(user)

    communicator = WebsocketCommunicator(application, f"/ws/events/?token={token}")
    connected, _ = await communicator.connect()
    assert connected
    assert await sync_to_async(is_online)(user.id)

    result = await sync_to_async(ChannelLayerPushSender().send_push)(
        [user.id], {"event": "new_message", "data": {"chatId": 1}}
    )
    assert result == {"sent": 1, "failed": 0}

    res = await communicator.receive_json_from()
    assert res == {"type": "new_message", "data": {"chatId": 1}}

    await communicator.send_json_to({"action": "ping"})
    assert await communicator.receive_json_from() == {"type": "pong"}

    await communicator.disconnect()
    assert not await sync_to_async(is_online)(user.id)


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_presence_query():
    nina = await create_user("nina")
    omar = await create_user("omar")

    comm_nina = WebsocketCommunicator(application, f"/ws/events/?token={await get_token_for_user(nina)}")
    comm_omar = WebsocketCommunicator(application, f"/ws/events/?token={await get_token_for_user(omar)}")
    assert (await comm_nina.connect())[0]
    assert (await comm_omar.connect())[0]

    await comm_nina.send_json_to({"action": "presence", "userId": omar.id})
    res = await comm_nina.receive_json_from()
    assert res == {"type": "presence", "userId": omar.id, "online": True}

    await comm_nina.disconnect()
    await comm_omar.disconnect()


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_anonymous_rejected():
    communicator = WebsocketCommunicator(application, "/ws/events/")
    connected, _ = await communicator.connect()
    assert not connected


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_invalid_token_rejected():
    communicator = WebsocketCommunicator(application, "/ws/events/?token=not-a-jwt")
    connected, _ = await communicator.connect()
    assert not connected
