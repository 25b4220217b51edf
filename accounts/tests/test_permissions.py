from datetime import timedelta

import jwt
import pytest
from django.test import RequestFactory

from accounts.models import RoleName
from accounts.permissions import authorize, get_viewer, is_manager
from accounts.tokens import ACCESS, ALGORITHM, REFRESH, Viewer, decode_token, parse_lifetime, sign_token
from storefront.errors import Forbidden, Unauthorized

CLIENT_VIEWER = Viewer(id="0b6f8f8e-3c43-4b59-9d0e-6c1f0c7f3a11", email="john@example.com", role=RoleName.CLIENT)
MANAGER_VIEWER = Viewer(id="5a1d2e57-9a34-4c1e-8f0d-1f1a6f0e2b22", email="boss@example.com", role=RoleName.MANAGER)


@pytest.fixture
def rf():
    return RequestFactory()


def request_with(rf, authorization=None):
    if authorization is None:
        return rf.post("/graphql/")
    return rf.post("/graphql/", HTTP_AUTHORIZATION=authorization)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("30s", timedelta(seconds=30)),
        ("10m", timedelta(minutes=10)),
        ("3h", timedelta(hours=3)),
        ("1d", timedelta(days=1)),
        ("45", timedelta(seconds=45)),
        (90, timedelta(seconds=90)),
    ],
)
def test_parse_lifetime(value, expected):
    assert parse_lifetime(value) == expected


def test_parse_lifetime_rejects_garbage():
    with pytest.raises(ValueError):
        parse_lifetime("soon")


def test_token_round_trip_keeps_claims():
    token = sign_token(ACCESS, CLIENT_VIEWER)

    assert decode_token(ACCESS, token) == CLIENT_VIEWER


def test_token_kinds_are_not_interchangeable():
    with pytest.raises(Unauthorized):
        decode_token(REFRESH, sign_token(ACCESS, CLIENT_VIEWER))


def test_token_type_claim_is_checked(settings):
    # Signed with the right secret but claiming another purpose.
    token = jwt.encode({**CLIENT_VIEWER.claims(), "type": REFRESH}, settings.ACCESS_TOKEN_SECRET, algorithm=ALGORITHM)

    with pytest.raises(Unauthorized):
        decode_token(ACCESS, token)


def test_expired_token(settings):
    settings.ACCESS_TOKEN_EXPIRES_IN = "0s"
    token = sign_token(ACCESS, CLIENT_VIEWER)

    with pytest.raises(Unauthorized) as excinfo:
        decode_token(ACCESS, token)

    assert excinfo.value.message == "Token has expired"


def test_anonymous_request_has_no_viewer(rf):
    assert get_viewer(request_with(rf)) is None


def test_viewer_is_read_from_bearer_token(rf):
    request = request_with(rf, f"Bearer {sign_token(ACCESS, CLIENT_VIEWER)}")

    assert get_viewer(request) == CLIENT_VIEWER


@pytest.mark.parametrize("header", ["Token abc", "Bearer", "Bearer a b"])
def test_malformed_header_is_unauthorized(rf, header):
    with pytest.raises(Unauthorized):
        get_viewer(request_with(rf, header))


def test_authorize_requires_a_viewer(rf):
    with pytest.raises(Unauthorized):
        authorize(request_with(rf), RoleName.CLIENT)


def test_authorize_checks_role(rf):
    request = request_with(rf, f"Bearer {sign_token(ACCESS, MANAGER_VIEWER)}")

    assert authorize(request, RoleName.MANAGER) == MANAGER_VIEWER
    assert authorize(request) == MANAGER_VIEWER
    with pytest.raises(Forbidden):
        authorize(request, RoleName.CLIENT)


def test_is_manager():
    assert is_manager(MANAGER_VIEWER)
    assert not is_manager(CLIENT_VIEWER)
    assert not is_manager(None)
