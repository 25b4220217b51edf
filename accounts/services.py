import logging
from urllib.parse import urlencode

from django.conf import settings
from django.db import transaction

from shop.models import Cart
from storefront.errors import Conflict, Forbidden, NotFound, Unauthorized

from .mail import send_password_reset_mail
from .models import Role, RoleName, User
from .tokens import PASSWORD_RESET, generate_tokens, sign_token, viewer_for

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "A password-reset link has been sent to the email you specified"


def get_role(name):
    role, _ = Role.objects.get_or_create(name=name)
    return role


def find_by_email(email):
    return User.objects.select_related("role").filter(email__iexact=email).first()


def find_by_id(user_id):
    return User.objects.select_related("role").filter(pk=user_id).first()


@transaction.atomic
def create_user(*, email, password, first_name, last_name, phone, role=RoleName.CLIENT):
    """Create a user together with the cart every user owns."""
    if User.objects.filter(email__iexact=email).exists():
        raise Conflict(f"Email '{email}' already exists.")

    user = User(
        email=email,
        first_name=first_name,
        last_name=last_name,
        phone=phone,
        role=get_role(role),
    )
    user.set_password(password)
    user.save()
    Cart.objects.create(user=user)
    logger.info("Created %s account %s", role, user.id)
    return user


def _issue_tokens(user):
    tokens = generate_tokens(viewer_for(user))
    user.set_refresh_token(tokens["refresh_token"])
    user.save(update_fields=["refresh_token", "updated_at"])
    return tokens


def signup(**data):
    user = create_user(**data)
    return {**_issue_tokens(user), "user": user}


def login(email, password):
    user = find_by_email(email)
    if user is None:
        raise NotFound(
            "No user with such email exists",
            description="An account with the provided email does not exist.",
        )
    if not user.check_password(password):
        raise Unauthorized("Invalid credentials", description="Credentials provided are incorrect")
    return _issue_tokens(user)


def logout(viewer):
    User.objects.filter(pk=viewer.id, refresh_token__isnull=False).update(refresh_token=None)


def refresh_tokens(viewer, refresh_token):
    user = find_by_id(viewer.id)
    if user is None or not user.check_refresh_token(refresh_token):
        raise Forbidden("Access denied", description="Cannot perform action.")
    return _issue_tokens(user)


def forgot_password(email):
    # Unknown emails get the same answer so account existence does not leak.
    user = find_by_email(email)
    if user is not None:
        token = sign_token(PASSWORD_RESET, viewer_for(user))
        reset_url = f"{settings.FRONTEND_URL}/reset-password?{urlencode({'token': token})}"
        send_password_reset_mail(user.email, reset_url)
        logger.info("Password reset requested for %s", user.id)
    return {"message": FORGOT_PASSWORD_MESSAGE}


def reset_password(viewer, new_password):
    user = find_by_id(viewer.id)
    if user is None:
        raise NotFound("User not found")
    user.set_password(new_password)
    user.save(update_fields=["password", "updated_at"])
    return {"message": "Password reset was successful"}
