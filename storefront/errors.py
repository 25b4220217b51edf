"""
Error taxonomy shared by the GraphQL and REST surfaces.

Services raise ``ShopError`` subclasses directly. Database-layer failures are
translated at the boundary: the graphene middleware below wraps every
resolver and ``storefront.exception_handlers`` wraps every REST view.
"""
import logging

from django.core.exceptions import ObjectDoesNotExist, ValidationError
from django.db import IntegrityError
from django.db.models import ProtectedError, RestrictedError

logger = logging.getLogger(__name__)


class ShopError(Exception):
    code = "INTERNAL"
    status_code = 500
    default_message = "Something went wrong."

    def __init__(self, message=None, description=None):
        self.message = message or self.default_message
        self.description = description
        super().__init__(self.message)

    @property
    def extensions(self):
        # graphql-core copies this onto the located error it reports.
        extensions = {"code": self.code}
        if self.description:
            extensions["description"] = self.description
        return extensions

    def as_dict(self):
        data = {"code": self.code, "detail": self.message}
        if self.description:
            data["description"] = self.description
        return data


class BadRequest(ShopError):
    code = "BAD_REQUEST"
    status_code = 400
    default_message = "Invalid request was sent."


class Unauthorized(ShopError):
    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Authentication is required."


class Forbidden(ShopError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "Server refused to perform action due to insufficient rights."


class NotFound(ShopError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Record not found."


class Conflict(ShopError):
    code = "CONFLICT"
    status_code = 409
    default_message = "Request conflicts with the current state of the resource."


class PaymentGatewayError(ShopError):
    code = "PAYMENT_GATEWAY_ERROR"
    status_code = 502
    default_message = "The payment provider could not process the request."


class EmptyCartError(BadRequest):
    default_message = "Cart is empty"


class InsufficientStockError(Conflict):
    default_message = "Not enough stock available"


# --- Database error translation ---

# SQLSTATE codes (Postgres); SQLite only reports them through the message.
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
NOT_NULL_VIOLATION = "23502"
CHECK_VIOLATION = "23514"


def _sqlstate_from(exc):
    for candidate in (exc, getattr(exc, "__cause__", None)):
        if candidate is None:
            continue
        code = getattr(candidate, "pgcode", None) or getattr(candidate, "sqlstate", None)
        if code:
            return code
    return None


def _translate_integrity_error(exc):
    code = _sqlstate_from(exc)
    message = str(exc).lower()
    if code == UNIQUE_VIOLATION or "unique" in message:
        return Conflict("Unique constraint failed")
    if code == FOREIGN_KEY_VIOLATION or "foreign key" in message:
        return BadRequest("Foreign key constraint failed.")
    if code == NOT_NULL_VIOLATION or "not null" in message:
        return BadRequest("Null constraint violation on non-null field.")
    if code == CHECK_VIOLATION or "check constraint" in message:
        return BadRequest("A database constraint failed.")
    return BadRequest("A database constraint failed.")


def translate_db_error(exc):
    """Map a data-layer exception onto the taxonomy, or return None."""
    if isinstance(exc, ShopError):
        return exc
    if isinstance(exc, (ProtectedError, RestrictedError)):
        return Conflict("Change will break relation between models.")
    if isinstance(exc, IntegrityError):
        return _translate_integrity_error(exc)
    if isinstance(exc, ObjectDoesNotExist):
        return NotFound("Record to update/delete does not exist.")
    if isinstance(exc, ValidationError):
        return BadRequest("Invalid value for field.", description="; ".join(exc.messages))
    return None


class DatabaseErrorMiddleware:
    """Graphene middleware translating ORM exceptions raised by resolvers."""

    def resolve(self, next, root, info, **args):
        try:
            return next(root, info, **args)
        except ShopError:
            raise
        except Exception as exc:
            translated = translate_db_error(exc)
            if translated is None:
                raise
            logger.debug("Translated %s into %s", type(exc).__name__, translated.code)
            raise translated from exc
