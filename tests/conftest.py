"""Shared test fixtures and configuration.

Sets up fake environment variables so folio.config doesn't sys.exit(),
and provides common fixtures like a temp key-value store.
"""

import os

# Patch env vars BEFORE any folio imports
os.environ.setdefault("OWNER_PASSWORD", "owner-secret-for-tests")
os.environ.setdefault("OWNER_EMAIL", "owner@example.com")
os.environ.setdefault("API_URL", "http://api.test")
os.environ.setdefault("DIRECTORY_CHAIN", "owner,remote,local")
os.environ.setdefault("ACTIVITY_LIMIT", "50")

import pytest

OWNER_EMAIL = "owner@example.com"
OWNER_PASSWORD = "owner-secret-for-tests"


@pytest.fixture
def tmp_storage_path(tmp_path):
    """Return a temporary SQLite storage path."""
    return str(tmp_path / "test_folio.db")


@pytest.fixture
def kv_store(tmp_storage_path):
    """Return a KeyValueStore backed by a temp file."""
    from folio.data.db import KeyValueStore
    return KeyValueStore(db_path=tmp_storage_path)


@pytest.fixture
def local_users(kv_store):
    """Return a LocalUserStore over the temp store."""
    from folio.data.db import LocalUserStore
    return LocalUserStore(kv_store)


@pytest.fixture
def activity_log(kv_store):
    """Return an ActivityLog over the temp store, capped at 50."""
    from folio.data.db import ActivityLog
    return ActivityLog(kv_store, limit=50)


@pytest.fixture
def manager(kv_store, local_users, activity_log):
    """Return a SessionManager with the default owner -> remote -> local chain."""
    from folio.adapters.local_directory import LocalDirectory
    from folio.adapters.owner_directory import OwnerDirectory
    from folio.core.session_manager import SessionManager
    from folio.integrations.remote_auth import RemoteAuthService

    directories = [
        OwnerDirectory(email=OWNER_EMAIL, password=OWNER_PASSWORD, display_name="Mo Owner"),
        RemoteAuthService(api_url="http://api.test", timeout=1),
        LocalDirectory(local_users),
    ]
    return SessionManager(kv_store, directories, activity_log, owner_email=OWNER_EMAIL)
