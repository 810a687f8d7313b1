import logging
from rest_framework import status, permissions
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.generics import RetrieveUpdateAPIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView

from coinchat_backend.exceptions import envelope
from .serializers import (
    CustomTokenObtainPairSerializer,
    SignUpSerializer,
    UserSerializer,
    UserUpdateSerializer,
)
from .services import register_user

logger = logging.getLogger(__name__)


class SignUpView(APIView):
    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = SignUpSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = register_user(**serializer.validated_data)

        refresh = RefreshToken.for_user(user)
        return envelope(True, "Signup successful", data={
            "user": UserSerializer(user).data,
            "access": str(refresh.access_token),
            "refresh": str(refresh),
        }, http_status=status.HTTP_201_CREATED)


class LoginView(TokenObtainPairView):
    authentication_classes = []
    permission_classes = [permissions.AllowAny]
    serializer_class = CustomTokenObtainPairSerializer


class LogoutView(APIView):
    def post(self, request):
        refresh_token = request.data.get("refresh")
        if not refresh_token:
            logger.warning("Logout without refresh token")
            return envelope(False, "Refresh token is required", http_status=status.HTTP_400_BAD_REQUEST)

        try:
            token = RefreshToken(refresh_token)
            token.blacklist()
        except TokenError as e:
            logger.warning(f"Logout failed for user {request.user.id}: {e}")
            return envelope(False, f"Invalid token: {e}", http_status=status.HTTP_400_BAD_REQUEST)

        logger.info(f"User {request.user.id} logged out")
        return envelope(True, "Logged out", http_status=status.HTTP_205_RESET_CONTENT)


class UserProfileView(RetrieveUpdateAPIView):
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    http_method_names = ["get", "patch", "put"]

    def get_serializer_class(self):
        if self.request.method in ["PUT", "PATCH"]:
            return UserUpdateSerializer
        return UserSerializer

    def get_object(self):
        return self.request.user

    def update(self, request, *args, **kwargs):
        kwargs["partial"] = True
        super().update(request, *args, **kwargs)
        return Response(UserSerializer(self.get_object()).data)
