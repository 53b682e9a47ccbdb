"""
Folio — Data Models.

Users, local accounts, activity entries and the in-memory session.
The JSON shape (camelCase, `_id` mirrored from `id`) matches both the REST
backend's user documents and the persisted snapshots, so a user can travel
backend -> storage -> memory without losing fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone

ROLE_USER = "user"
ROLE_OWNER = "owner"

# attribute name -> JSON key
_USER_KEYS = {
    "id": "id",
    "name": "name",
    "email": "email",
    "role": "role",
    "bio": "bio",
    "date_of_birth": "dateOfBirth",
    "is_active": "isActive",
    "is_email_verified": "isEmailVerified",
    "login_count": "loginCount",
    "last_login": "lastLogin",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
    "is_owner": "isOwner",
}

# Profile fields a client may change: attribute name -> JSON key
PROFILE_FIELDS = {
    "name": "name",
    "bio": "bio",
    "date_of_birth": "dateOfBirth",
}


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class User:
    """An account as seen by the client."""

    id: str
    name: str
    email: str
    role: str = ROLE_USER
    bio: str | None = None
    date_of_birth: str | None = None   # ISO date YYYY-MM-DD
    is_active: bool = True
    is_email_verified: bool = False
    login_count: int = 0
    last_login: str | None = None
    created_at: str = ""
    updated_at: str = ""
    is_owner: bool = False             # session-local claim, never sent by the backend
    extra: dict = field(default_factory=dict)  # unmodelled backend fields

    @classmethod
    def from_dict(cls, data: dict) -> User:
        """Build a User from backend/storage JSON. Unknown keys go to `extra`."""
        user_id = data.get("id") or data.get("_id")
        if not user_id:
            raise ValueError("user document has no id")

        kwargs: dict = {}
        for attr, key in _USER_KEYS.items():
            if key in data and data[key] is not None:
                kwargs[attr] = data[key]
        kwargs["id"] = str(user_id)
        kwargs.setdefault("name", "")
        kwargs.setdefault("email", "")

        known = set(_USER_KEYS.values()) | {"_id", "password"}
        kwargs["extra"] = {k: v for k, v in data.items() if k not in known}
        return cls(**kwargs)

    def to_dict(self) -> dict:
        """Serialize to camelCase JSON, optional fields omitted when unset."""
        data = dict(self.extra)
        data["_id"] = self.id
        for attr, key in _USER_KEYS.items():
            value = getattr(self, attr)
            if value is None:
                continue
            data[key] = value
        return data

    def merged(self, updates: dict) -> User:
        """Return a copy with attribute-named `updates` applied."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["extra"] = dict(self.extra)
        data.update(updates)
        return User(**data)


@dataclass
class LocalAccountRecord:
    """A locally registered account: a User plus its stored password.

    Lives only in the local registry and is never uploaded.
    """

    user: User
    password: str

    @classmethod
    def from_dict(cls, data: dict) -> LocalAccountRecord:
        return cls(user=User.from_dict(data), password=str(data.get("password", "")))

    def to_dict(self) -> dict:
        data = self.user.to_dict()
        data["password"] = self.password
        return data


@dataclass
class ActivityEntry:
    """One logged user action. Never mutated after creation."""

    id: str
    description: str
    timestamp: str
    user_id: str
    action: str = "user_action"

    @classmethod
    def from_dict(cls, data: dict) -> ActivityEntry:
        return cls(
            id=str(data["id"]),
            description=data.get("description", ""),
            timestamp=data.get("timestamp", ""),
            user_id=str(data.get("userId", "")),
            action=data.get("action", "user_action"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "action": self.action,
            "description": self.description,
            "timestamp": self.timestamp,
            "userId": self.user_id,
        }


@dataclass
class Session:
    """The currently authenticated identity of a running client."""

    current_user: User | None = None
    current_token: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None and self.current_token is not None

    def clear(self) -> None:
        self.current_user = None
        self.current_token = None
