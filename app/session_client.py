import logging
from datetime import datetime, timezone

import httpx
from pydantic import BaseModel, ValidationError

from app.config import AUTH_SESSION_URL, AUTH_TIMEOUT_SECONDS
from app.errors import SessionProviderError

logger = logging.getLogger(__name__)


class SessionUser(BaseModel):
    id: str
    email: str | None = None
    role: str


class SessionProviderClient:
    """
    Resolves the caller's session by asking the auth provider.

    The caller's Authorization / Cookie headers are forwarded as-is to the
    session endpoint, which answers with NextAuth's shape:
        {"user": {"id": ..., "email": ..., "role": ...}, "expires": "..."}
    or {} when there is no session.
    """

    def __init__(self, session_url: str = AUTH_SESSION_URL, timeout: float = AUTH_TIMEOUT_SECONDS):
        self.session_url = session_url
        self.client = httpx.AsyncClient(timeout=timeout)

    async def get_session(
        self,
        authorization: str | None = None,
        cookie: str | None = None,
    ) -> SessionUser | None:
        """
        Returns the session user, or None when there is no valid session.

        Raises SessionProviderError when the provider cannot be reached or
        answers with something we cannot interpret.
        """
        if not authorization and not cookie:
            return None

        headers = {}
        if authorization:
            headers["Authorization"] = authorization
        if cookie:
            headers["Cookie"] = cookie

        try:
            resp = await self.client.get(self.session_url, headers=headers)
        except httpx.RequestError as e:
            logger.error("Session provider network error: %s", e)
            raise SessionProviderError("Session provider is unavailable")

        if resp.status_code in (401, 403):
            return None

        try:
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error("Session provider failed with status %d", e.response.status_code)
            raise SessionProviderError("Session provider is unavailable")
        except ValueError:
            raise SessionProviderError("Session provider returned an unexpected response format")

        if not isinstance(data, dict) or not data.get("user"):
            return None

        if _is_expired(data.get("expires")):
            return None

        try:
            return SessionUser.model_validate(data["user"])
        except ValidationError:
            raise SessionProviderError("Session provider returned an unexpected response format")

    async def close(self):
        """Close the underlying HTTP client (call on app shutdown)."""
        await self.client.aclose()


def _is_expired(expires: str | None) -> bool:
    if not expires:
        return False
    try:
        when = datetime.fromisoformat(expires.replace("Z", "+00:00"))
    except ValueError:
        return False
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return when <= datetime.now(timezone.utc)
