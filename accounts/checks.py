from django.conf import settings
from django.core.checks import Error, Tags, Warning, register

MIN_SECRET_LENGTH = 32

TOKEN_SECRETS = (
    "ACCESS_TOKEN_SECRET",
    "REFRESH_TOKEN_SECRET",
    "PASSWORD_RESET_TOKEN_SECRET",
)

GATEWAY_KEYS = (
    "STRIPE_API_KEY",
    "STRIPE_WEBHOOK_SECRET",
    "CLOUDINARY_CLOUD_NAME",
    "CLOUDINARY_API_KEY",
    "CLOUDINARY_API_SECRET",
)


@register(Tags.security, deploy=True)
def check_token_secrets(app_configs, **kwargs):
    errors = []
    for name in TOKEN_SECRETS:
        value = getattr(settings, name, "")
        if len(value) < MIN_SECRET_LENGTH:
            errors.append(
                Error(
                    f"{name} must be set to at least {MIN_SECRET_LENGTH} characters.",
                    id="accounts.E001",
                )
            )
    return errors


@register(deploy=True)
def check_gateway_keys(app_configs, **kwargs):
    return [
        Warning(f"{name} is not set.", id="accounts.W001")
        for name in GATEWAY_KEYS
        if not getattr(settings, name, "")
    ]
