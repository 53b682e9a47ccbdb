"""Remote auth backend client — implements AccountDirectory over REST.

Talks to the portfolio backend's /auth endpoints with httpx. Failures are
classified, never swallowed:

    connect error, timeout, 5xx, non-JSON body  -> DirectoryUnavailable
    4xx                                        -> AuthRejected
"""

from __future__ import annotations

import logging

import httpx

from folio.data.models import PROFILE_FIELDS, User
from folio.ports.account_directory import (
    AuthRejected,
    AuthResult,
    DirectoryUnavailable,
)

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_SECONDS = 5


class RemoteAuthService:
    """REST implementation of AccountDirectory."""

    name = "remote"

    def __init__(
        self, api_url: str | None = None, timeout: float | None = None,
    ) -> None:
        if api_url is None or timeout is None:
            from folio.config import settings
            api_url = api_url or settings.API_URL
            timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS

        self._api_url = api_url.rstrip("/")
        self._timeout = timeout or _DEFAULT_TIMEOUT_SECONDS

    async def _request(
        self,
        method: str,
        path: str,
        json: dict | None = None,
        token: str | None = None,
    ) -> dict:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        url = f"{self._api_url}{path}"

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.request(method, url, json=json, headers=headers)
        except httpx.HTTPError as exc:
            raise DirectoryUnavailable(f"{method} {path} failed: {exc}") from exc

        if resp.status_code >= 500:
            raise DirectoryUnavailable(f"{method} {path} returned {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            if resp.status_code >= 400:
                raise AuthRejected(f"{method} {path} returned {resp.status_code}") from exc
            raise DirectoryUnavailable(f"{method} {path} returned a non-JSON body") from exc

        if not isinstance(data, dict):
            raise DirectoryUnavailable(f"{method} {path} returned an unexpected payload")

        if resp.status_code >= 400:
            raise AuthRejected(data.get("message") or f"{method} {path} returned {resp.status_code}")

        return data

    @staticmethod
    def _parse_user(data: dict, base: User | None = None) -> User:
        """Build the user from the response, layered over `base` when given.

        Only keys the backend actually sent override `base`.
        """
        raw_user = data.get("user")
        if not isinstance(raw_user, dict):
            raise DirectoryUnavailable("response has no user document")
        raw_user = {k: v for k, v in raw_user.items() if k != "isOwner"}
        if base is not None:
            raw_user = {**base.to_dict(), **raw_user}
        try:
            user = User.from_dict(raw_user)
        except ValueError as exc:
            raise DirectoryUnavailable(str(exc)) from exc
        user.is_owner = False
        return user

    def _parse_session(self, data: dict) -> AuthResult:
        token = data.get("token")
        if not token:
            raise DirectoryUnavailable("response has no token")
        return AuthResult(user=self._parse_user(data), token=str(token))

    async def authenticate(self, email: str, password: str) -> AuthResult:
        data = await self._request(
            "POST", "/auth/login", json={"email": email, "password": password},
        )
        result = self._parse_session(data)
        logger.info("Remote login succeeded for user %s", result.user.id)
        return result

    async def register(self, name: str, email: str, password: str) -> AuthResult:
        data = await self._request(
            "POST",
            "/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        result = self._parse_session(data)
        logger.info("Remote registration succeeded for user %s", result.user.id)
        return result

    async def update_profile(self, token: str, user: User, updates: dict) -> User:
        """PUT the attribute-named `updates` to /auth/profile."""
        body = {
            PROFILE_FIELDS[attr]: value
            for attr, value in updates.items()
            if attr in PROFILE_FIELDS
        }
        data = await self._request("PUT", "/auth/profile", json=body, token=token)
        updated = self._parse_user(data, base=user)
        logger.info("Remote profile updated for user %s", updated.id)
        return updated

    async def verify(self, token: str) -> None:
        """Raise AuthRejected unless the backend accepts `token`."""
        await self._request("GET", "/auth/me", token=token)
