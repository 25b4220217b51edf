from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from . import services
from .permissions import IsAuthenticatedViewer, RefreshTokenAuthentication
from .serializers import ForgotPasswordIn, LogInIn, ResetPasswordIn, SignUpIn, UserOut
from .tokens import PASSWORD_RESET, decode_token


class SignUpView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        ser = SignUpIn(data=request.data)
        ser.is_valid(raise_exception=True)
        result = services.signup(**ser.validated_data)
        payload = {
            "access_token": result["access_token"],
            "refresh_token": result["refresh_token"],
            "user": UserOut(result["user"]).data,
        }
        return Response(payload, status=status.HTTP_201_CREATED)


class LogInView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        ser = LogInIn(data=request.data)
        ser.is_valid(raise_exception=True)
        tokens = services.login(ser.validated_data["email"], ser.validated_data["password"])
        return Response(tokens, status=status.HTTP_200_OK)


class LogOutView(APIView):
    permission_classes = [IsAuthenticatedViewer]

    def delete(self, request):
        services.logout(request.user)
        return Response(status=status.HTTP_200_OK)


class RefreshView(APIView):
    authentication_classes = [RefreshTokenAuthentication]
    permission_classes = [IsAuthenticatedViewer]

    def post(self, request):
        tokens = services.refresh_tokens(request.user, request.auth)
        return Response(tokens, status=status.HTTP_200_OK)


class ForgotPasswordView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        ser = ForgotPasswordIn(data=request.data)
        ser.is_valid(raise_exception=True)
        return Response(services.forgot_password(ser.validated_data["email"]), status=status.HTTP_200_OK)


class ResetPasswordView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        ser = ResetPasswordIn(data=request.data)
        ser.is_valid(raise_exception=True)
        viewer = decode_token(PASSWORD_RESET, ser.validated_data["reset_password_token"])
        result = services.reset_password(viewer, ser.validated_data["new_password"])
        return Response(result, status=status.HTTP_200_OK)
