"""
Folio — Session Manager.

Owns the authentication lifecycle of one running client: login, signup,
profile updates, logout, startup rehydration and the per-user activity log.

Every credential operation walks a priority-ordered list of account
directories (owner -> remote -> local by default). A directory that is
unreachable or does not handle the operation hands over to the next one;
only when the chain is exhausted does the operation report failure.
No public method raises: callers get a bool (or nothing).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Awaitable, Callable, TypeVar

from folio.data.db import (
    TOKEN_KEY,
    USER_KEY,
    ActivityLog,
    KeyValueStore,
    LocalUserStore,
    load_user_snapshot,
)
from folio.data.models import ActivityEntry, Session, User
from folio.ports.account_directory import (
    AuthRejected,
    AuthResult,
    DirectoryUnavailable,
    Unsupported,
)

if TYPE_CHECKING:
    from folio.ports.account_directory import AccountDirectory

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionManager:
    """The single source of truth for who is signed in."""

    def __init__(
        self,
        store: KeyValueStore,
        directories: list[AccountDirectory],
        activity_log: ActivityLog | None = None,
        owner_email: str | None = None,
    ) -> None:
        if owner_email is None:
            from folio.config import settings
            owner_email = settings.OWNER_EMAIL

        self._owner_email = owner_email
        self._store = store
        self._directories = list(directories)
        self._activity_log = activity_log or ActivityLog(store)
        self._session = Session()
        self._activities: list[ActivityEntry] = []
        # True until rehydrate() has run, and while an operation is in flight
        self._loading = True

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def session(self) -> Session:
        return self._session

    @property
    def current_user(self) -> User | None:
        return self._session.current_user

    @property
    def current_token(self) -> str | None:
        return self._session.current_token

    @property
    def is_authenticated(self) -> bool:
        return self._session.is_authenticated

    @property
    def is_owner(self) -> bool:
        user = self._session.current_user
        return user is not None and user.is_owner

    @property
    def activities(self) -> list[ActivityEntry]:
        return list(self._activities)

    @property
    def loading(self) -> bool:
        return self._loading

    # ------------------------------------------------------------------
    # Directory chain
    # ------------------------------------------------------------------

    async def _walk(
        self,
        operation: str,
        call: Callable[[AccountDirectory], Awaitable[T]],
        stop_on_reject: bool = False,
    ) -> T | None:
        """Ask each directory in turn; return the first answer, or None."""
        for directory in self._directories:
            try:
                return await call(directory)
            except Unsupported:
                continue
            except DirectoryUnavailable as exc:
                logger.info(
                    "%s: %s directory unavailable (%s), trying next",
                    operation, directory.name, exc,
                )
            except AuthRejected as exc:
                logger.info("%s: rejected by %s directory (%s)", operation, directory.name, exc)
                if stop_on_reject:
                    return None
        return None

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------

    def _persist_session(self) -> None:
        user = self._session.current_user
        token = self._session.current_token
        if user is None or token is None:
            return
        self._store.set_item(TOKEN_KEY, token)
        self._store.set_json(USER_KEY, user.to_dict())

    def _forget_persisted_session(self) -> None:
        self._store.remove_item(TOKEN_KEY)
        self._store.remove_item(USER_KEY)

    def _adopt(self, user: User, token: str) -> None:
        activities = self._activity_log.load(user.id)
        self._session.current_user = user
        self._session.current_token = token
        self._persist_session()
        self._activities = activities

    def _adopt_result(self, result: AuthResult) -> None:
        user = result.user
        user.is_owner = result.is_owner
        self._adopt(user, result.token)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def rehydrate(self) -> None:
        """Restore the persisted session at startup.

        A token the backend explicitly rejects is forgotten. If nobody can
        be asked (backend unreachable, or no directory verifies tokens) the
        persisted snapshot is trusted so the client keeps working offline.
        """
        self._loading = True
        try:
            token = self._store.get_item(TOKEN_KEY)
            if not token:
                logger.debug("No persisted session")
                return

            snapshot = load_user_snapshot(self._store)
            if snapshot is None:
                logger.warning("Persisted token without a usable user snapshot, clearing")
                self._forget_persisted_session()
                return

            for directory in self._directories:
                try:
                    await directory.verify(token)
                    logger.info("Persisted session verified by %s directory", directory.name)
                    break
                except Unsupported:
                    continue
                except DirectoryUnavailable as exc:
                    logger.info(
                        "Cannot verify session with %s directory (%s)",
                        directory.name, exc,
                    )
                    continue
                except AuthRejected as exc:
                    logger.info("Persisted session rejected by %s directory (%s)", directory.name, exc)
                    self._forget_persisted_session()
                    return
            else:
                logger.info("Session not verifiable, trusting persisted snapshot")

            # The persisted isOwner flag is not trusted; only the owner email is
            snapshot.is_owner = snapshot.email == self._owner_email
            activities = self._activity_log.load(snapshot.id)
            self._session.current_user = snapshot
            self._session.current_token = token
            self._activities = activities
        except Exception:
            logger.exception("Session rehydration failed")
        finally:
            self._loading = False

    async def login(self, email: str, password: str) -> bool:
        """Sign in with the first directory that accepts the credentials."""
        self._loading = True
        try:
            result = await self._walk(
                "login", lambda d: d.authenticate(email, password),
            )
            if result is None:
                return False

            self._adopt_result(result)
            self.add_activity("Logged in as owner" if result.is_owner else "Logged in")
            return True
        except Exception:
            logger.exception("Login failed")
            return False
        finally:
            self._loading = False

    async def signup(self, email: str, password: str, name: str) -> bool:
        """Create an account with the first reachable directory.

        An explicit refusal (e.g. the email is taken) ends the attempt.
        """
        self._loading = True
        try:
            result = await self._walk(
                "signup",
                lambda d: d.register(name, email, password),
                stop_on_reject=True,
            )
            if result is None:
                return False

            self._adopt_result(result)
            self.add_activity("Signed up")
            return True
        except Exception:
            logger.exception("Signup failed")
            return False
        finally:
            self._loading = False

    async def update_profile(
        self,
        name: str | None = None,
        bio: str | None = None,
        date_of_birth: str | None = None,
    ) -> bool:
        """Change profile fields of the signed-in user. Only given fields change."""
        user = self._session.current_user
        token = self._session.current_token
        if user is None or token is None:
            logger.warning("update_profile called without an active session")
            return False

        updates = {
            attr: value
            for attr, value in (("name", name), ("bio", bio), ("date_of_birth", date_of_birth))
            if value is not None
        }

        self._loading = True
        try:
            updated = await self._walk(
                "update_profile", lambda d: d.update_profile(token, user, updates),
            )
            if updated is None:
                return False

            updated.is_owner = user.is_owner
            self._session.current_user = updated
            self._persist_session()
            self.add_activity("Updated profile")
            return True
        except Exception:
            logger.exception("Profile update failed")
            return False
        finally:
            self._loading = False

    def logout(self) -> None:
        """End the session. The activity history stays in storage."""
        if self._session.current_user is not None:
            self.add_activity("Logged out")
            logger.info("User %s logged out", self._session.current_user.id)
        self._forget_persisted_session()
        self._session.clear()
        self._activities = []

    def add_activity(self, description: str) -> None:
        """Record an action for the signed-in user. No-op when signed out."""
        user = self._session.current_user
        if user is None:
            return
        self._activities = self._activity_log.prepend(user.id, self._activities, description)


def create_session_manager(storage_path: str | None = None) -> SessionManager:
    """Wire a SessionManager from settings: storage, registry and directory chain."""
    from folio.adapters.directory_factory import create_directory_chain

    store = KeyValueStore(db_path=storage_path)
    users = LocalUserStore(store)
    return SessionManager(store, create_directory_chain(users), ActivityLog(store))
