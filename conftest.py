import json
from decimal import Decimal

import pytest

from accounts import services as account_services
from accounts.models import RoleName
from accounts.tokens import ACCESS, sign_token, viewer_for
from shop import gateways
from shop.models import CartItem, Product
from storefront.errors import PaymentGatewayError, Unauthorized

VALID_SIGNATURE = "t=1,v1=valid-signature"


@pytest.fixture(autouse=True)
def storefront_settings(settings):
    settings.ACCESS_TOKEN_SECRET = "access-token-secret-for-tests-0123456789"
    settings.REFRESH_TOKEN_SECRET = "refresh-token-secret-for-tests-0123456789"
    settings.PASSWORD_RESET_TOKEN_SECRET = "reset-token-secret-for-tests-0123456789"
    settings.ACCESS_TOKEN_EXPIRES_IN = "15m"
    settings.FRONTEND_URL = "https://shop.example.com"
    settings.PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
    return settings


class FakeGateway:
    """Stands in for Stripe: records intents and accepts one known signature."""

    def __init__(self):
        self.calls = []
        self.fail = False

    def create_payment_intent(self, amount, currency, metadata):
        if self.fail:
            raise PaymentGatewayError()
        self.calls.append({"amount": amount, "currency": currency, "metadata": metadata})
        number = len(self.calls)
        return gateways.CreatedPaymentIntent(id=f"pi_test_{number}", client_secret=f"pi_test_{number}_secret")

    def construct_event(self, payload, signature):
        if signature != VALID_SIGNATURE:
            raise Unauthorized("Invalid webhook signature")
        return json.loads(payload)


@pytest.fixture
def fake_gateway(monkeypatch):
    gateway = FakeGateway()
    monkeypatch.setattr(gateways, "get_payment_gateway", lambda: gateway)
    return gateway


def _make_user(email, role=RoleName.CLIENT):
    return account_services.create_user(
        email=email,
        password="correct-horse-battery",
        first_name="Jane",
        last_name="Doe",
        phone="+15555550100",
        role=role,
    )


@pytest.fixture
def client_user(db):
    return _make_user("john@example.com")


@pytest.fixture
def other_client(db):
    return _make_user("mary@example.com")


@pytest.fixture
def manager_user(db):
    return _make_user("boss@example.com", role=RoleName.MANAGER)


@pytest.fixture
def customer(client_user):
    return viewer_for(client_user)


@pytest.fixture
def manager(manager_user):
    return viewer_for(manager_user)


@pytest.fixture
def make_product(db):
    def make(name="Shirt", price="10.00", stock=5, is_active=True, **extra):
        return Product.objects.create(name=name, price=Decimal(price), stock=stock, is_active=is_active, **extra)
    return make


@pytest.fixture
def add_to_cart():
    def add(user, product, quantity):
        return CartItem.objects.create(cart=user.cart, product=product, quantity=quantity)
    return add


def bearer(user):
    return {"HTTP_AUTHORIZATION": f"Bearer {sign_token(ACCESS, viewer_for(user))}"}


@pytest.fixture
def auth_header():
    return bearer


@pytest.fixture
def gql(client):
    def run(query, variables=None, user=None):
        body = {"query": query}
        if variables is not None:
            body["variables"] = variables
        headers = bearer(user) if user is not None else {}
        response = client.post("/graphql/", json.dumps(body), content_type="application/json", **headers)
        return response.json()
    return run
