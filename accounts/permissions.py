"""
Access control for both API surfaces.

GraphQL resolvers call ``authorize`` (or ``get_viewer`` for public fields)
before touching a service. REST views rely on ``BearerTokenAuthentication``
plus the role permissions at the bottom of this module.
"""
from rest_framework import authentication, permissions

from storefront.errors import Forbidden, Unauthorized

from .models import RoleName
from .tokens import ACCESS, REFRESH, decode_token

BEARER_PREFIX = "bearer"
_VIEWER_CACHE_ATTR = "_storefront_viewer"


def bearer_token(request):
    header = request.META.get("HTTP_AUTHORIZATION", "")
    if not header:
        return None
    parts = header.split()
    if len(parts) != 2 or parts[0].lower() != BEARER_PREFIX:
        raise Unauthorized("Malformed authorization header")
    return parts[1]


def get_viewer(request, kind=ACCESS):
    """Return the caller's ``Viewer``, or None for anonymous requests."""
    if kind == ACCESS and hasattr(request, _VIEWER_CACHE_ATTR):
        return getattr(request, _VIEWER_CACHE_ATTR)
    token = bearer_token(request)
    viewer = decode_token(kind, token) if token else None
    if kind == ACCESS:
        setattr(request, _VIEWER_CACHE_ATTR, viewer)
    return viewer


def authorize(request, *roles):
    """Require an authenticated caller holding one of ``roles``."""
    viewer = get_viewer(request)
    if viewer is None:
        raise Unauthorized()
    if roles and viewer.role not in roles:
        raise Forbidden()
    return viewer


def is_manager(viewer):
    return viewer is not None and viewer.role == RoleName.MANAGER


class BearerTokenAuthentication(authentication.BaseAuthentication):
    token_kind = ACCESS

    def authenticate(self, request):
        token = bearer_token(request)
        if token is None:
            return None
        return decode_token(self.token_kind, token), token

    def authenticate_header(self, request):
        return "Bearer"


class RefreshTokenAuthentication(BearerTokenAuthentication):
    token_kind = REFRESH


class HasRole(permissions.BasePermission):
    roles = ()

    def has_permission(self, request, view):
        viewer = request.user
        if viewer is None:
            raise Unauthorized()
        if self.roles and viewer.role not in self.roles:
            raise Forbidden()
        return True


class IsAuthenticatedViewer(HasRole):
    roles = ()


class IsClient(HasRole):
    roles = (RoleName.CLIENT,)
