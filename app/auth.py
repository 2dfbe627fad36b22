import enum

from fastapi import Depends, Request

from app.errors import AuthenticationError, AuthorizationError
from app.session_client import SessionProviderClient, SessionUser


class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"


EDIT_ROLES = {Role.ADMIN.value, Role.EDITOR.value}

_session_client = None


def get_session_client() -> SessionProviderClient:
    global _session_client
    if _session_client is None:
        _session_client = SessionProviderClient()
    return _session_client


async def close_session_client() -> None:
    global _session_client
    if _session_client is not None:
        await _session_client.close()
        _session_client = None


async def get_current_user(
    request: Request,
    client: SessionProviderClient = Depends(get_session_client),
) -> SessionUser | None:
    return await client.get_session(
        authorization=request.headers.get("authorization"),
        cookie=request.headers.get("cookie"),
    )


async def require_editor_role(
    user: SessionUser | None = Depends(get_current_user),
) -> SessionUser:
    """Accepts ADMIN or EDITOR sessions."""
    if user is None:
        raise AuthenticationError()
    if user.role not in EDIT_ROLES:
        raise AuthorizationError()
    return user


async def require_admin_role(
    user: SessionUser | None = Depends(get_current_user),
) -> SessionUser:
    """Accepts ADMIN sessions only. Every mutating endpoint depends on this."""
    if user is None:
        raise AuthenticationError()
    if user.role != Role.ADMIN.value:
        raise AuthorizationError("Admin privileges required")
    return user
