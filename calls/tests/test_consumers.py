import pytest
from asgiref.sync import sync_to_async
from channels.testing import WebsocketCommunicator
from django.contrib.auth import get_user_model
from rest_framework_simplejwt.tokens import RefreshToken

from calls import services
from chats.models import Chat
from coinchat_backend.asgi import application
from coins.models import CoinTransaction
from coins.services import credit

User = get_user_model()


@sync_to_async
def create_call(answered=True):
    caller = User.objects.create_user(username="caller", password="pass")
    receiver = User.objects.create_user(username="receiver", password="pass")
    chat = Chat.objects.create(participant_1=caller, participant_2=receiver)
    credit(caller.id, 100, reason=CoinTransaction.REASON_PURCHASE)
    call, _ = services.initiate_call(caller, chat.id)
    if answered:
        services.accept_call(receiver, call.id)
    return call, caller, receiver


@sync_to_async
def get_token_for_user(user):
    return str(RefreshToken.for_user(user).access_token)


async def connect(call, user):
    token = await get_token_for_user(user)
    communicator = WebsocketCommunicator(application, f"/ws/calls/{call.id}/?token={token}")
    connected, _ = await communicator.connect()
    return communicator, connected


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_signaling_roles_relay_and_end():
    call, caller, receiver = await create_call()

    comm_caller, ok1 = await connect(call, caller)
    assert ok1
    res = await comm_caller.receive_json_from()
    assert res == {"type": "role_assignment", "role": "offer"}

    comm_receiver, ok2 = await connect(call, receiver)
    assert ok2
    res = await comm_receiver.receive_json_from()
    assert res == {"type": "role_assignment", "role": "answer"}
    res = await comm_caller.receive_json_from()
    assert res == {"type": "role_assignment", "role": "offer"}

    await comm_caller.send_json_to({"type": "offer", "sdp": "v=0"})
    res = await comm_receiver.receive_json_from()
    assert res == {"type": "offer", "sdp": "v=0"}
    assert await comm_caller.receive_nothing()

    await sync_to_async(services.end_call)(receiver, call.id)
    ended = await comm_caller.receive_json_from()
    assert ended["type"] == "call_ended"
    assert ended["callId"] == call.id

    await comm_caller.disconnect()
    await comm_receiver.disconnect()


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_unanswered_call_rejected():
    call, caller, _ = await create_call(answered=False)
    communicator, connected = await connect(call, caller)
    assert not connected


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_outsider_rejected():
    call, _, _ = await create_call()
    outsider = await sync_to_async(User.objects.create_user)(username="outsider", password="pass")
    communicator, connected = await connect(call, outsider)
    assert not connected


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_anonymous_rejected():
    call, _, _ = await create_call()
    communicator = WebsocketCommunicator(application, f"/ws/calls/{call.id}/")
    connected, _ = await communicator.connect()
    assert not connected
