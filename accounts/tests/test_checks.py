from accounts.checks import check_gateway_keys, check_token_secrets


def test_short_token_secrets_are_errors(settings):
    settings.REFRESH_TOKEN_SECRET = "too-short"

    errors = check_token_secrets(None)

    assert [e.id for e in errors] == ["accounts.E001"]
    assert "REFRESH_TOKEN_SECRET" in errors[0].msg


def test_missing_gateway_keys_are_warnings(settings):
    settings.STRIPE_API_KEY = "sk_test_123"
    settings.STRIPE_WEBHOOK_SECRET = "whsec_123"
    settings.CLOUDINARY_CLOUD_NAME = "demo"
    settings.CLOUDINARY_API_KEY = ""
    settings.CLOUDINARY_API_SECRET = "secret"

    warnings = check_gateway_keys(None)

    assert [w.msg for w in warnings] == ["CLOUDINARY_API_KEY is not set."]
