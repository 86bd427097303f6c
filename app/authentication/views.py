"""
Authentication views.

Token issuance uses djangorestframework-simplejwt. The marketplace
registration and profile flows live outside this service; only what the
credits API needs to authenticate callers is exposed here.
"""

from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.views import TokenObtainPairView

from authentication.serializers import TokenObtainSerializer, UserSerializer


class TokenObtainView(TokenObtainPairView):
    """
    POST /api/v1/auth/token/

    Exchange email and password for an access/refresh token pair.
    """

    serializer_class = TokenObtainSerializer


class MeView(APIView):
    """GET /api/v1/auth/me/ - the authenticated user."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="auth_me",
        summary="Current user",
        tags=["Auth"],
        responses={200: UserSerializer},
    )
    def get(self, request):
        return Response(UserSerializer(request.user).data)
