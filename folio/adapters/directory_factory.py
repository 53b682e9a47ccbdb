"""Directory chain factory — builds the priority-ordered account directories."""

from __future__ import annotations

from folio.config import settings
from folio.data.db import LocalUserStore
from folio.ports.account_directory import AccountDirectory


def create_directory(name: str, users: LocalUserStore) -> AccountDirectory:
    """Return the account directory registered under `name`."""
    name = name.strip().lower()

    if name == "owner":
        from folio.adapters.owner_directory import OwnerDirectory

        return OwnerDirectory()

    if name == "remote":
        from folio.integrations.remote_auth import RemoteAuthService

        return RemoteAuthService()

    if name == "local":
        from folio.adapters.local_directory import LocalDirectory

        return LocalDirectory(users)

    raise ValueError(f"Unknown account directory: {name!r}")


def create_directory_chain(
    users: LocalUserStore, names: list[str] | None = None,
) -> list[AccountDirectory]:
    """Return directories in priority order (DIRECTORY_CHAIN by default)."""
    if names is None:
        names = settings.DIRECTORY_CHAIN
    if not names:
        raise ValueError("DIRECTORY_CHAIN is empty")
    return [create_directory(name, users) for name in names]
