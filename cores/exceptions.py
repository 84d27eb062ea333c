# cores/exceptions.py
import logging

from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class Unauthorized(APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"
    default_code = "unauthorized"


class Forbidden(APIException):
    """Authenticated, but not entitled: wrong owner, grade mismatch, closed window."""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You are not allowed to perform this action"
    default_code = "forbidden"


class NotFound(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"
    default_code = "not_found"


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"
    default_code = "conflict"


class Expired(APIException):
    status_code = status.HTTP_410_GONE
    default_detail = "Expired"
    default_code = "expired"


class ValidationFailed(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"
    default_code = "invalid"


class InternalError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"
    default_code = "internal"


class ExamConfigurationError(InternalError):
    """Question bank / exam setup is inconsistent; needs an admin, not a retry."""
    default_detail = "Exam configuration error. Please contact support."
    default_code = "exam_configuration"


class PaymentGatewayError(InternalError):
    default_detail = "Failed to create payment order"
    default_code = "payment_gateway"


def _first_message(detail):
    # Serializer errors arrive as nested dicts/lists; surface the first one
    if isinstance(detail, dict):
        for field, value in detail.items():
            message = _first_message(value)
            if field in ("non_field_errors", "detail"):
                return message
            return f"{field}: {message}"
        return "Invalid request"
    if isinstance(detail, list):
        return _first_message(detail[0]) if detail else "Invalid request"
    return str(detail)


def api_exception_handler(exc, context):
    """
    Renders every failure as {"success": false, "error": "..."}.

    Anything that is not an APIException is a bug or an infrastructure failure
    (database, gateway): it is logged with its traceback and the caller only
    gets a generic message.
    """
    response = exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        logger.exception(
            "Unhandled error in %s", view.__class__.__name__ if view else "request"
        )
        return Response(
            {"success": False, "error": InternalError.default_detail},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, ValidationError):
        message = _first_message(exc.detail)
    else:
        message = _first_message(getattr(exc, "detail", response.data))

    if response.status_code >= 500:
        logger.error("Request failed with %s: %s", response.status_code, message)

    response.data = {"success": False, "error": message}
    return response
