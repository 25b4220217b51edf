import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from django.conf import settings

from storefront.errors import Unauthorized

ALGORITHM = "HS256"

ACCESS = "access"
REFRESH = "refresh"
PASSWORD_RESET = "password_reset"

# token kind -> (secret setting, lifetime setting)
TOKEN_SETTINGS = {
    ACCESS: ("ACCESS_TOKEN_SECRET", "ACCESS_TOKEN_EXPIRES_IN"),
    REFRESH: ("REFRESH_TOKEN_SECRET", "REFRESH_TOKEN_EXPIRES_IN"),
    PASSWORD_RESET: ("PASSWORD_RESET_TOKEN_SECRET", "PASSWORD_RESET_TOKEN_EXPIRES_IN"),
}

_LIFETIME_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_lifetime(value):
    """Parse lifetimes written like ``30s``, ``10m``, ``3h`` or plain seconds."""
    if isinstance(value, timedelta):
        return value
    match = _LIFETIME_RE.match(str(value))
    if not match:
        raise ValueError(f"Invalid token lifetime: {value!r}")
    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * _UNITS[unit])


@dataclass(frozen=True)
class Viewer:
    """Identity and role claims carried by a verified token."""

    id: str
    email: str
    role: str

    @property
    def is_authenticated(self):
        return True

    def claims(self):
        return {"id": self.id, "email": self.email, "role": self.role}


def viewer_for(user):
    return Viewer(id=str(user.id), email=user.email, role=user.role.name)


def _secret_for(kind):
    secret_name, _ = TOKEN_SETTINGS[kind]
    return getattr(settings, secret_name)


def sign_token(kind, viewer, **extra):
    _, lifetime_name = TOKEN_SETTINGS[kind]
    now = datetime.now(tz=timezone.utc)
    payload = {
        **viewer.claims(),
        **extra,
        "type": kind,
        "iat": now,
        "exp": now + parse_lifetime(getattr(settings, lifetime_name)),
    }
    return jwt.encode(payload, _secret_for(kind), algorithm=ALGORITHM)


def decode_token(kind, token):
    """Verify ``token`` as a ``kind`` token and return its viewer."""
    try:
        payload = jwt.decode(token, _secret_for(kind), algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError as exc:
        raise Unauthorized("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise Unauthorized("Invalid token") from exc

    if payload.get("type") != kind:
        raise Unauthorized("Invalid token")
    try:
        return Viewer(id=payload["id"], email=payload["email"], role=payload["role"])
    except KeyError as exc:
        raise Unauthorized("Invalid token") from exc


def generate_tokens(viewer):
    access_token = sign_token(ACCESS, viewer)
    refresh_token = sign_token(REFRESH, viewer)
    return {"access_token": access_token, "refresh_token": refresh_token}
