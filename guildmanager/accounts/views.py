import logging

from django.contrib.auth import authenticate
from rest_framework import generics, status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import AuthenticationFailed
from rest_framework_simplejwt.tokens import RefreshToken, AccessToken, TokenError

from .authentication import read_token_type
from .models import BlacklistedAccessToken
from .permissions import IsGuildAdmin
from .serializers import AdminSerializer, LoginSerializer, LogoutSerializer

logger = logging.getLogger(__name__)


class LoginView(generics.GenericAPIView):
    """
    POST /api/auth/login/  {"username": ..., "password": ...}
    Only staff accounts (guild admins) receive tokens.
    """
    permission_classes = [AllowAny]
    authentication_classes = []
    serializer_class = LoginSerializer

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response({
                "error": "Username and password required",
                "errors": serializer.errors,
            }, status=status.HTTP_400_BAD_REQUEST)

        user = authenticate(
            username=serializer.validated_data['username'],
            password=serializer.validated_data['password'],
        )
        if user is None or not user.is_staff:
            logger.info("Rejected login for %s", serializer.validated_data['username'])
            return Response({"error": "Invalid credentials"}, status=status.HTTP_401_UNAUTHORIZED)

        refresh = RefreshToken.for_user(user)
        return Response({
            "token": str(refresh.access_token),
            "refresh": str(refresh),
            "admin": AdminSerializer(user).data,
        }, status=status.HTTP_200_OK)


class VerifyView(APIView):
    """GET /api/auth/verify/ -> the admin behind the bearer token."""
    permission_classes = [IsGuildAdmin]

    def get(self, request):
        return Response({"admin": AdminSerializer(request.user).data}, status=status.HTTP_200_OK)


class LogoutView(APIView):
    """
    POST /api/auth/logout/
    Revokes the bearer access token; a refresh token in the body is blacklisted too.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = LogoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        auth_header = request.META.get('HTTP_AUTHORIZATION', '')
        if not auth_header.startswith('Bearer '):
            return Response({"error": "Invalid authorization header"}, status=status.HTTP_400_BAD_REQUEST)

        token = AccessToken(auth_header.split(" ")[1])
        BlacklistedAccessToken.revoke(token)

        raw_refresh = serializer.validated_data.get('refresh')
        if raw_refresh:
            try:
                if read_token_type(raw_refresh) != "refresh":
                    return Response({"error": "Unsupported token type"}, status=status.HTTP_400_BAD_REQUEST)
                RefreshToken(raw_refresh).blacklist()
            except (TokenError, AuthenticationFailed) as e:
                return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({"message": "Logged out"}, status=status.HTTP_205_RESET_CONTENT)
