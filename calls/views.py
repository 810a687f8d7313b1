import logging

from rest_framework import generics, status
from rest_framework.views import APIView

from coinchat_backend.exceptions import envelope
from coinchat_backend.pagination import EnvelopePagination
from . import services
from .serializers import InitiateCallSerializer, VideoCallSerializer

logger = logging.getLogger(__name__)


class InitiateCallView(APIView):
    def post(self, request, chat_id):
        serializer = InitiateCallSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        call, new_balance = services.initiate_call(request.user, chat_id, serializer.validated_data["call_type"])
        return envelope(
            True,
            "Call initiated",
            data={"call": VideoCallSerializer(call).data, "coinsCharged": call.coins_charged, "newBalance": new_balance},
            http_status=status.HTTP_201_CREATED,
        )


class BotInitiateCallView(APIView):
    def post(self, request, chat_id):
        serializer = InitiateCallSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        call = services.bot_initiate_call(request.user, chat_id, serializer.validated_data["call_type"])
        return envelope(True, "Call initiated", data={"call": VideoCallSerializer(call).data}, http_status=status.HTTP_201_CREATED)


class RingingCallView(APIView):
    def post(self, request, call_id):
        call = services.mark_ringing(request.user, call_id)
        return envelope(True, "Call ringing", data={"call": VideoCallSerializer(call).data})


class AcceptCallView(APIView):
    def post(self, request, call_id):
        call = services.accept_call(request.user, call_id)
        return envelope(True, "Call accepted", data={"call": VideoCallSerializer(call).data})


class RejectCallView(APIView):
    def post(self, request, call_id):
        call = services.reject_call(request.user, call_id)
        return envelope(True, "Call rejected", data={"call": VideoCallSerializer(call).data})


class EndCallView(APIView):
    def post(self, request, call_id):
        result = services.end_call(request.user, call_id)
        return envelope(
            True,
            "Call already ended" if result.already_ended else "Call ended",
            data={
                "call": VideoCallSerializer(result.call).data,
                "billedMinutes": result.billed_minutes,
                "totalCost": result.total_cost,
                "chargedNow": result.charged_now,
                "shortfall": result.shortfall,
                "alreadyEnded": result.already_ended,
            },
        )


class CallHistoryView(generics.ListAPIView):
    serializer_class = VideoCallSerializer
    pagination_class = EnvelopePagination

    def get_queryset(self):
        return services.call_history(self.request.user)
