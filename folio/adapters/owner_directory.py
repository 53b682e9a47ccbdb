"""Owner directory — the trusted source of the owner identity.

Answers only the fixed owner credential and never touches the network or
the local registry. It is the only directory that issues `is_owner=True`.
"""

from __future__ import annotations

import logging
import time

from folio.data.models import ROLE_OWNER, User, utc_now
from folio.ports.account_directory import AuthRejected, AuthResult, Unsupported

logger = logging.getLogger(__name__)

OWNER_ID = "owner_id"
OWNER_TOKEN_PREFIX = "owner_token_"


class OwnerDirectory:
    """AccountDirectory that synthesizes the owner session."""

    name = "owner"

    def __init__(
        self,
        email: str | None = None,
        password: str | None = None,
        display_name: str | None = None,
        bio: str | None = None,
    ) -> None:
        from folio.config import settings

        self._email = email if email is not None else settings.OWNER_EMAIL
        self._password = password if password is not None else settings.OWNER_PASSWORD
        self._display_name = display_name or settings.OWNER_NAME
        self._bio = bio if bio is not None else settings.OWNER_BIO

    def _owner_user(self) -> User:
        now = utc_now()
        return User(
            id=OWNER_ID,
            name=self._display_name,
            email=self._email,
            role=ROLE_OWNER,
            bio=self._bio,
            is_active=True,
            is_email_verified=True,
            login_count=1,
            created_at=now,
            updated_at=now,
            is_owner=True,
        )

    async def authenticate(self, email: str, password: str) -> AuthResult:
        if email != self._email or password != self._password:
            raise AuthRejected("not the owner credential")
        token = f"{OWNER_TOKEN_PREFIX}{int(time.time() * 1000)}"
        logger.info("Owner session synthesized")
        return AuthResult(user=self._owner_user(), token=token, is_owner=True)

    async def register(self, name: str, email: str, password: str) -> AuthResult:
        raise Unsupported("the owner account cannot be registered")

    async def update_profile(self, token: str, user: User, updates: dict) -> User:
        raise Unsupported("owner profile is not stored here")

    async def verify(self, token: str) -> None:
        raise Unsupported("owner tokens are not verifiable here")
