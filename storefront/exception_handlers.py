from rest_framework import exceptions as drf_exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .errors import BadRequest, Conflict, Forbidden, NotFound, Unauthorized, translate_db_error

STATUS_CODES = {
    400: BadRequest.code,
    401: Unauthorized.code,
    403: Forbidden.code,
    404: NotFound.code,
    405: "METHOD_NOT_ALLOWED",
    409: Conflict.code,
    415: "UNSUPPORTED_MEDIA_TYPE",
}


def api_exception_handler(exc, context):
    """Render taxonomy errors as ``{"code", "detail"}`` with their HTTP status."""
    translated = translate_db_error(exc)
    if translated is not None:
        return Response(translated.as_dict(), status=translated.status_code)

    response = exception_handler(exc, context)
    if response is None:
        return None
    if isinstance(exc, drf_exceptions.ValidationError):
        response.data = {
            "code": BadRequest.code,
            "detail": BadRequest.default_message,
            "errors": response.data,
        }
    elif isinstance(exc, drf_exceptions.APIException):
        response.data = {
            "code": STATUS_CODES.get(response.status_code, "ERROR"),
            "detail": str(exc.detail),
        }
    return response
