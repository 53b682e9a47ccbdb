"""
Folio — Persistent Storage.

A string-keyed key-value store on SQLite (the client's counterpart of browser
local storage), plus the two typed views the session layer uses:

    localUsers             -> LocalUserStore (fallback account registry)
    activities_<userId>    -> ActivityLog (capped, newest first)
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from pathlib import Path

from folio.data.models import ActivityEntry, LocalAccountRecord, User, utc_now

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"
LOCAL_USERS_KEY = "localUsers"
ACTIVITIES_KEY_PREFIX = "activities_"


class KeyValueStore:
    """SQLite-backed string key-value storage."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from folio.config import settings
            db_path = settings.STORAGE_PATH

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS storage (
                    key   TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
        logger.debug("Storage table initialized at %s", self._db_path)

    def get_item(self, key: str) -> str | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM storage WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return None
        return row["value"]

    def set_item(self, key: str, value: str) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO storage (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )

    def remove_item(self, key: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM storage WHERE key = ?", (key,))
        return cursor.rowcount > 0

    def keys(self, prefix: str = "") -> list[str]:
        """Return all keys, optionally only those starting with `prefix`."""
        with self._connect() as conn:
            rows = conn.execute("SELECT key FROM storage ORDER BY key").fetchall()
        return [r["key"] for r in rows if r["key"].startswith(prefix)]

    def clear(self) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM storage")
        logger.info("Storage cleared at %s", self._db_path)

    def get_json(self, key: str, default=None):
        """Decode the JSON value at `key`; `default` when absent or corrupt."""
        raw = self.get_item(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Corrupt JSON under storage key '%s', ignoring", key)
            return default

    def set_json(self, key: str, value) -> None:
        self.set_item(key, json.dumps(value))


class LocalUserStore:
    """The local fallback account registry, persisted as one JSON array.

    Email is the natural key. There is no eviction: records stay until
    explicitly deleted.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def _load(self) -> list[dict]:
        data = self._store.get_json(LOCAL_USERS_KEY, default=[])
        return data if isinstance(data, list) else []

    def _save(self, raw_records: list[dict]) -> None:
        self._store.set_json(LOCAL_USERS_KEY, raw_records)

    def list_records(self) -> list[LocalAccountRecord]:
        return [LocalAccountRecord.from_dict(r) for r in self._load()]

    def find_by_email(self, email: str) -> LocalAccountRecord | None:
        for raw in self._load():
            if raw.get("email") == email:
                return LocalAccountRecord.from_dict(raw)
        return None

    def find_by_credentials(self, email: str, password: str) -> LocalAccountRecord | None:
        """Exact email + password match."""
        for raw in self._load():
            if raw.get("email") == email and raw.get("password") == password:
                return LocalAccountRecord.from_dict(raw)
        return None

    def find_by_id(self, user_id: str) -> LocalAccountRecord | None:
        for raw in self._load():
            if str(raw.get("id") or raw.get("_id")) == user_id:
                return LocalAccountRecord.from_dict(raw)
        return None

    def add(self, record: LocalAccountRecord) -> LocalAccountRecord:
        """Append a new record. Raises ValueError if the email is taken."""
        raw_records = self._load()
        if any(r.get("email") == record.user.email for r in raw_records):
            raise ValueError(f"Local account already exists for {record.user.email}")
        raw_records.append(record.to_dict())
        self._save(raw_records)
        logger.info("Local account added: %s", record.user.id)
        return record

    def update(self, user_id: str, updates: dict) -> LocalAccountRecord | None:
        """Patch the record with id `user_id` using JSON-keyed `updates`.

        Returns the patched record, or None if no record has that id.
        """
        raw_records = self._load()
        for index, raw in enumerate(raw_records):
            if str(raw.get("id") or raw.get("_id")) == user_id:
                patched = {**raw, **updates}
                raw_records[index] = patched
                self._save(raw_records)
                logger.info("Local account %s updated", user_id)
                return LocalAccountRecord.from_dict(patched)
        return None

    def record_login(self, user_id: str) -> LocalAccountRecord | None:
        """Bump the login counter and stamp the last login time."""
        record = self.find_by_id(user_id)
        if record is None:
            return None
        return self.update(
            user_id,
            {"loginCount": record.user.login_count + 1, "lastLogin": utc_now()},
        )

    def delete(self, email: str) -> bool:
        """Permanently remove the record for `email`."""
        raw_records = self._load()
        kept = [r for r in raw_records if r.get("email") != email]
        if len(kept) == len(raw_records):
            return False
        self._save(kept)
        logger.info("Local account deleted (%d remaining)", len(kept))
        return True


class ActivityLog:
    """Per-user activity history, newest first, capped at `limit` entries."""

    def __init__(self, store: KeyValueStore, limit: int | None = None) -> None:
        if limit is None:
            from folio.config import settings
            limit = settings.ACTIVITY_LIMIT

        self._store = store
        self._limit = limit

    @property
    def limit(self) -> int:
        return self._limit

    @staticmethod
    def key_for(user_id: str) -> str:
        return f"{ACTIVITIES_KEY_PREFIX}{user_id}"

    def load(self, user_id: str) -> list[ActivityEntry]:
        data = self._store.get_json(self.key_for(user_id), default=[])
        if not isinstance(data, list):
            logger.warning("Activity log for %s is not a list, ignoring", user_id)
            return []

        entries: list[ActivityEntry] = []
        for raw in data:
            try:
                entries.append(ActivityEntry.from_dict(raw))
            except (KeyError, TypeError, AttributeError) as exc:
                logger.warning("Skipping malformed activity entry for %s: %r", user_id, exc)
        return entries

    def save(self, user_id: str, entries: list[ActivityEntry]) -> list[ActivityEntry]:
        """Persist `entries` truncated to the cap. Returns what was kept."""
        kept = entries[: self._limit]
        self._store.set_json(self.key_for(user_id), [e.to_dict() for e in kept])
        return kept

    def prepend(
        self, user_id: str, entries: list[ActivityEntry], description: str,
    ) -> list[ActivityEntry]:
        """Put a new entry in front of `entries`, persist and return the log."""
        entry = ActivityEntry(
            id=uuid.uuid4().hex,
            description=description,
            timestamp=utc_now(),
            user_id=user_id,
        )
        logger.debug("Activity for %s: %s", user_id, description)
        return self.save(user_id, [entry, *entries])


def load_user_snapshot(store: KeyValueStore) -> User | None:
    """Read the persisted `user` snapshot. None when absent or unreadable."""
    data = store.get_json(USER_KEY)
    if not isinstance(data, dict):
        return None
    try:
        return User.from_dict(data)
    except (ValueError, TypeError) as exc:
        logger.warning("Persisted user snapshot is unusable: %s", exc)
        return None
