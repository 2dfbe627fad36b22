from unittest.mock import AsyncMock, MagicMock

import pytest

from app.auth import get_current_user, require_admin_role, require_editor_role
from app.errors import AuthenticationError, AuthorizationError
from app.session_client import SessionUser

ADMIN = SessionUser(id="a", role="ADMIN")
EDITOR = SessionUser(id="e", role="EDITOR")
VIEWER = SessionUser(id="v", role="VIEWER")


@pytest.mark.asyncio
async def test_current_user_forwards_request_headers():
    # ARRANGE
    request = MagicMock()
    request.headers = {"authorization": "Bearer t", "cookie": "s=1"}
    client = AsyncMock()
    client.get_session.return_value = ADMIN

    # ACT
    user = await get_current_user(request, client)

    # ASSERT
    assert user is ADMIN
    client.get_session.assert_awaited_once_with(authorization="Bearer t", cookie="s=1")


@pytest.mark.asyncio
async def test_admin_role_required_for_mutations():
    assert await require_admin_role(ADMIN) is ADMIN

    with pytest.raises(AuthorizationError):
        await require_admin_role(EDITOR)

    with pytest.raises(AuthenticationError):
        await require_admin_role(None)


@pytest.mark.asyncio
async def test_editor_role_accepts_admins_and_editors():
    assert await require_editor_role(ADMIN) is ADMIN
    assert await require_editor_role(EDITOR) is EDITOR

    with pytest.raises(AuthorizationError):
        await require_editor_role(VIEWER)

    with pytest.raises(AuthenticationError):
        await require_editor_role(None)
