"""Local directory — AccountDirectory over the persisted account registry.

Used when the remote backend is unreachable or refuses. Accounts created
here are never uploaded.
"""

from __future__ import annotations

import logging
import time
import uuid

from folio.data.db import LocalUserStore
from folio.data.models import PROFILE_FIELDS, ROLE_USER, LocalAccountRecord, User, utc_now
from folio.ports.account_directory import AuthRejected, AuthResult, Unsupported

logger = logging.getLogger(__name__)

LOCAL_TOKEN_PREFIX = "local_token_"


def _local_token() -> str:
    return f"{LOCAL_TOKEN_PREFIX}{int(time.time() * 1000)}"


def new_account_id() -> str:
    """Time-based identifier for a new local account."""
    return uuid.uuid1().hex


class LocalDirectory:
    """Local registry implementation of AccountDirectory."""

    name = "local"

    def __init__(self, users: LocalUserStore) -> None:
        self._users = users

    async def authenticate(self, email: str, password: str) -> AuthResult:
        record = self._users.find_by_credentials(email, password)
        if record is None:
            raise AuthRejected("invalid credentials")

        record = self._users.record_login(record.user.id) or record
        user = record.user
        user.is_owner = False
        logger.info("Local login succeeded for user %s", user.id)
        return AuthResult(user=user, token=_local_token())

    async def register(self, name: str, email: str, password: str) -> AuthResult:
        if self._users.find_by_email(email) is not None:
            raise AuthRejected("account already exists")

        now = utc_now()
        user = User(
            id=new_account_id(),
            name=name,
            email=email,
            role=ROLE_USER,
            is_active=True,
            is_email_verified=True,
            login_count=1,
            created_at=now,
            updated_at=now,
            is_owner=False,
        )
        self._users.add(LocalAccountRecord(user=user, password=password))
        logger.info("Local account created for user %s", user.id)
        return AuthResult(user=user.merged({}), token=_local_token())

    async def update_profile(self, token: str, user: User, updates: dict) -> User:
        """Apply `updates` to `user` and to its registry record, if one exists."""
        updated = user.merged(updates)
        json_updates = {
            PROFILE_FIELDS[attr]: value
            for attr, value in updates.items()
            if attr in PROFILE_FIELDS
        }
        if self._users.update(user.id, json_updates) is not None:
            logger.info("Local registry record patched for user %s", user.id)
        return updated

    async def verify(self, token: str) -> None:
        raise Unsupported("local tokens are not verifiable")
