"""Maps domain errors to HTTP responses.

Installed as REST_FRAMEWORK["EXCEPTION_HANDLER"], so views simply let
DomainError propagate.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from enrollments.domain.errors import DomainError, ErrorCode

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    ErrorCode.AUTHENTICATION_REQUIRED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.COURSE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ENROLLMENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.COURSE_CANCELLED: status.HTTP_409_CONFLICT,
    ErrorCode.COURSE_FULL: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_ENROLLED: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_STATUS_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorCode.ENROLLMENT_CANCELLED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_PHONE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_COURSE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.PROOF_TOO_LARGE: status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    ErrorCode.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.SUBSCRIPTION_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.NOTIFICATION_FAILED: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.INVALID_RECORD: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def domain_exception_handler(exc, context):
    if not isinstance(exc, DomainError):
        return exception_handler(exc, context)

    http_status = STATUS_BY_CODE.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if http_status >= 500:
        logger.error("Request failed with %s", exc)
    return Response({"code": exc.code.value, "message": exc.message}, status=http_status)
