"""Account directory port — abstract interface for account sources.

The session layer depends on this protocol and on a priority-ordered list
of directories, never on a specific backend.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from folio.data.models import User


class DirectoryError(Exception):
    """Base class for every account directory failure."""


class DirectoryUnavailable(DirectoryError):
    """The directory could not be reached (network down, timeout, bad payload)."""


class AuthRejected(DirectoryError):
    """The directory answered and refused (bad credentials, duplicate email, 401)."""


class Unsupported(DirectoryError):
    """The directory does not handle this operation; ask the next one."""


@dataclass
class AuthResult:
    """A session issued by a directory."""

    user: User
    token: str
    is_owner: bool = False


class AccountDirectory(Protocol):
    """Abstract account source used by SessionManager."""

    name: str

    async def authenticate(self, email: str, password: str) -> AuthResult: ...

    async def register(self, name: str, email: str, password: str) -> AuthResult: ...

    async def update_profile(self, token: str, user: User, updates: dict) -> User: ...

    async def verify(self, token: str) -> None: ...
