"""DRF exception handler that renders domain errors.

Service functions raise ``shared.domain.exceptions`` types and never see a
request; this is the single place they are turned into HTTP responses.
"""

from __future__ import annotations

import structlog
from rest_framework import status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler as drf_exception_handler  # type: ignore

from shared.domain.exceptions import (
    ConflictError,
    DomainError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
)


def status_for(exc: DomainError) -> int:
    for error_type, http_status in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return http_status
    return status.HTTP_400_BAD_REQUEST


def domain_exception_handler(exc, context):  # type: ignore
    if isinstance(exc, DomainError):
        http_status = status_for(exc)
        view = context.get("view")
        logger.info(
            "api.domain_error",
            code=exc.code,
            detail=exc.message,
            view=view.__class__.__name__ if view else None,
            status=http_status,
        )
        body = {"detail": exc.message, "code": exc.code}
        if exc.context:
            body["context"] = {key: str(value) for key, value in exc.context.items()}
        return Response(body, status=http_status)
    return drf_exception_handler(exc, context)
