from rest_framework import serializers

from .models import User


class SignUpIn(serializers.Serializer):
    email = serializers.EmailField(max_length=254)
    password = serializers.CharField(min_length=8, trim_whitespace=False)
    first_name = serializers.CharField(max_length=100)
    last_name = serializers.CharField(max_length=100)
    phone = serializers.RegexField(r"^\+?[\d\s-]{7,20}$", max_length=20)


class LogInIn(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(trim_whitespace=False)


class ForgotPasswordIn(serializers.Serializer):
    email = serializers.EmailField()


class ResetPasswordIn(serializers.Serializer):
    reset_password_token = serializers.CharField()
    new_password = serializers.CharField(min_length=8, trim_whitespace=False)


class UserOut(serializers.ModelSerializer):
    role = serializers.CharField(source="role.name")

    class Meta:
        model = User
        fields = ("id", "email", "first_name", "last_name", "phone", "role", "created_at")
