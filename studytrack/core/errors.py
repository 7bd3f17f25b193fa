"""
Custom exception hierarchy for StudyTrack.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class StudyTrackError(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "server_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class UnauthorizedError(StudyTrackError):
    http_status = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"

    def __init__(self):
        super().__init__(message="Authentication required.")


class InvalidPayloadError(StudyTrackError):
    http_status = status.HTTP_400_BAD_REQUEST
    code = "invalid_payload"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message=message, details=details)


class PlanNotFoundError(StudyTrackError):
    """Plan is missing, owned by someone else, not active, or soft-deleted."""
    http_status = status.HTTP_404_NOT_FOUND
    code = "not_found"

    def __init__(self, plan_id: int):
        super().__init__(
            message=f"Study plan {plan_id} not found.",
            details={"plan_id": plan_id},
        )


class InvalidDayError(StudyTrackError):
    http_status = status.HTTP_400_BAD_REQUEST
    code = "invalid_day"

    def __init__(self, plan_id: int, day_number: int):
        super().__init__(
            message=f"Day {day_number} not found in plan {plan_id}.",
            details={"plan_id": plan_id, "day_number": day_number},
        )


class ActivePlanExistsError(StudyTrackError):
    http_status = status.HTTP_409_CONFLICT
    code = "conflict"

    def __init__(self, plan_id: int):
        super().__init__(
            message="You already have an active study plan. Complete or delete it first.",
            details={"active_plan_id": plan_id},
        )


class CircleNotFoundError(StudyTrackError):
    http_status = status.HTTP_404_NOT_FOUND
    code = "not_found"

    def __init__(self, circle_id: int):
        super().__init__(
            message=f"Circle {circle_id} not found.",
            details={"circle_id": circle_id},
        )


class CircleAccessDeniedError(StudyTrackError):
    http_status = status.HTTP_403_FORBIDDEN
    code = "forbidden"

    def __init__(self, circle_id: int):
        super().__init__(
            message="Only circle members can view this circle.",
            details={"circle_id": circle_id},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def studytrack_exception_handler(request: Request, exc: StudyTrackError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 400 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "code": InvalidPayloadError.code,
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": StudyTrackError.code,
            "message": "An unexpected error occurred.",
        },
    )
