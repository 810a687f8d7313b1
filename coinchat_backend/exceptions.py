import logging

from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .errors import ServiceError

logger = logging.getLogger(__name__)


def envelope(success, message, data=None, code=None, http_status=status.HTTP_200_OK):
    body = {"success": success, "message": message, "data": data}
    if code:
        body["code"] = code
    return Response(body, status=http_status)


def _first_error(detail):
    """ValidationError.detail 에서 사람이 읽을 첫 메시지를 꺼낸다."""
    if isinstance(detail, dict):
        for field, value in detail.items():
            message = _first_error(value)
            if field == "non_field_errors":
                return message
            return f"{field}: {message}"
    if isinstance(detail, (list, tuple)) and detail:
        return _first_error(detail[0])
    return str(detail)


def api_exception_handler(exc, context):
    view = context.get("view")
    view_name = view.__class__.__name__ if view else "unknown"

    if isinstance(exc, ServiceError):
        if exc.status_code >= 500:
            logger.error(f"[{view_name}] {exc.message}")
        else:
            logger.warning(f"[{view_name}] {exc.status_code} {exc.code or ''} {exc.message}")
        return envelope(False, exc.message, data=exc.data, code=exc.code, http_status=exc.status_code)

    if isinstance(exc, Http404):
        exc = exceptions.NotFound()

    response = exception_handler(exc, context)
    if response is not None:
        if isinstance(exc, exceptions.ValidationError):
            message = _first_error(exc.detail)
            data = exc.detail if isinstance(exc.detail, dict) else None
        else:
            message = str(exc.detail) if hasattr(exc, "detail") else str(exc)
            data = None
        response.data = {"success": False, "message": message, "data": data}
        return response

    logger.error(f"[{view_name}] Unhandled error: {exc}", exc_info=exc)
    return envelope(
        False,
        "Something went wrong",
        http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
