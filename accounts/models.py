import uuid

from django.contrib.auth.hashers import check_password, make_password
from django.db import models


class RoleName(models.TextChoices):
    CLIENT = "client", "Client"
    MANAGER = "manager", "Manager"


# --- Role Model ---
class Role(models.Model):
    name = models.CharField(max_length=20, unique=True, choices=RoleName.choices)

    def __str__(self):
        return self.name


# --- User Model ---
class User(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(max_length=254, unique=True)
    password = models.CharField(max_length=128)
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    phone = models.CharField(max_length=20)
    role = models.ForeignKey(Role, on_delete=models.PROTECT, related_name="users")
    # Hashed like a password; the raw refresh token only lives client-side.
    refresh_token = models.CharField(max_length=128, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.email

    def set_password(self, raw_password):
        self.password = make_password(raw_password)

    def check_password(self, raw_password):
        return check_password(raw_password, self.password)

    def set_refresh_token(self, raw_token):
        self.refresh_token = make_password(raw_token) if raw_token else None

    def check_refresh_token(self, raw_token):
        if not self.refresh_token or not raw_token:
            return False
        return check_password(raw_token, self.refresh_token)
