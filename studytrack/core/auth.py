"""
Caller identity.

Authentication happens upstream; the identity provider forwards the opaque
user id in a header (settings.AUTH_USER_HEADER). Its format is never checked,
only whether it owns the resources it touches.
"""
from fastapi import Request

from studytrack.core.config import settings
from studytrack.core.errors import UnauthorizedError


def get_current_user_id(request: Request) -> str:
    user_id = (request.headers.get(settings.AUTH_USER_HEADER) or "").strip()
    if not user_id:
        raise UnauthorizedError()
    return user_id
