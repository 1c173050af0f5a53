# labflow/iam/api/auth.py

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from labflow.iam.api.schema_serializers import (
    LoginRequestSerializer,
    LoginResponseSerializer,
    LogoutResponseSerializer,
    RegisterRequestSerializer,
    RegisterResponseSerializer,
    UserSerializer,
    ValidateResponseSerializer,
)
from labflow.iam.services.accounts import AccountService, list_users
from labflow.iam.services.sessions import get_session_store

logger = logging.getLogger(__name__)


class _PublicView(APIView):
    """
    Endpoints reachable without a session. Stale session headers sent by a
    client must not turn these into 401s, so authentication is skipped.
    """
    permission_classes = [AllowAny]

    def perform_authentication(self, request):
        pass


class RegisterView(_PublicView):
    @extend_schema(request=RegisterRequestSerializer, responses={201: RegisterResponseSerializer}, tags=["Auth"])
    def post(self, request):
        ser = RegisterRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            user = AccountService.register(**ser.validated_data)
        except ValueError as e:
            raise DRFValidationError({"username": [str(e)]})
        except DjangoValidationError as e:
            raise DRFValidationError({"password": list(e.messages)})

        return Response(
            {"message": "Registration successful.", "user": UserSerializer(user).data},
            status=status.HTTP_201_CREATED,
        )


class LoginView(_PublicView):
    @extend_schema(request=LoginRequestSerializer, responses={200: LoginResponseSerializer}, tags=["Auth"])
    def post(self, request):
        ser = LoginRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        user, session = get_session_store().login(
            username=ser.validated_data["username"],
            password=ser.validated_data["password"],
            user_agent=request.META.get("HTTP_USER_AGENT", ""),
        )

        return Response(
            {
                "message": "Login successful.",
                "session_id": session.session_id,
                "user": UserSerializer(user).data,
            },
            status=status.HTTP_200_OK,
        )


class LogoutView(APIView):
    """
    Ends the caller's session. Only a valid (session, username) pair can end
    a session; anything else is already signed out and still gets 200.
    """
    permission_classes = [AllowAny]

    def perform_authentication(self, request):
        # deferred to post() so a bad pair answers 200 instead of 401
        pass

    @extend_schema(request=None, responses={200: LogoutResponseSerializer}, tags=["Auth"])
    def post(self, request):
        try:
            user = request.user
        except AuthenticationFailed:
            user = None

        if user is not None and user.is_authenticated:
            get_session_store().logout(user.get_username())

        return Response({"message": "Logged out."}, status=status.HTTP_200_OK)


class ValidateView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=None, responses={200: ValidateResponseSerializer}, tags=["Auth"])
    def get(self, request):
        return Response({"valid": True, "user": UserSerializer(request.user).data}, status=status.HTTP_200_OK)


class UsersView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: UserSerializer(many=True)}, tags=["Auth"])
    def get(self, request):
        return Response(UserSerializer(list_users(), many=True).data, status=status.HTTP_200_OK)
