"""
User and session data models for the authentication service.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# Backend column name -> session field name
SESSION_FIELD_ALIASES = {
    "created_at": "createdAt",
    "is_authenticated": "isAuthenticated",
}

SESSION_FIELDS = ("id", "username", "role", "email", "createdAt", "isAuthenticated")


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string, as stored by the backend"""
    return datetime.now(timezone.utc).isoformat()


@dataclass
class UserRecord:
    """Row of the backend ``users`` table"""
    id: Any
    username: str
    password: Optional[str] = None
    email: Optional[str] = None
    role: str = "user"
    is_active: bool = True
    created_at: Optional[str] = None
    last_login: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'UserRecord':
        """Build a record from a backend row; missing columns take defaults"""
        # Only an explicit false disables an account
        is_active = row.get("is_active")
        return cls(
            id=row.get("id"),
            username=row.get("username"),
            password=row.get("password"),
            email=row.get("email"),
            role=row.get("role") or "user",
            is_active=is_active is not False,
            created_at=row.get("created_at"),
            last_login=row.get("last_login"),
        )

    def to_public_dict(self) -> Dict[str, Any]:
        """Row without the stored credential"""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": self.created_at,
            "last_login": self.last_login,
        }


@dataclass
class SessionRecord:
    """Client-held proof of login, stored as JSON under a single storage key"""
    id: Any = None
    username: Optional[str] = None
    role: str = "user"
    email: Optional[str] = None
    createdAt: Optional[str] = None
    isAuthenticated: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_user(cls, user: UserRecord) -> 'SessionRecord':
        """Session for a freshly authenticated user"""
        return cls(
            id=user.id,
            username=user.username,
            role=user.role or "user",
            email=user.email,
            createdAt=user.created_at,
            isAuthenticated=True,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SessionRecord':
        """Rebuild a session from its serialized form"""
        known = {key: data[key] for key in SESSION_FIELDS if key in data}
        if "role" in known:
            known["role"] = known["role"] or "user"
        extra = {key: value for key, value in data.items() if key not in SESSION_FIELDS}
        return cls(**known, extra=extra)

    def to_dict(self) -> Dict[str, Any]:
        """Serialized form; extra keys are written alongside the known fields"""
        data = dict(self.extra)
        data.update({
            "id": self.id,
            "username": self.username,
            "role": self.role,
            "email": self.email,
            "createdAt": self.createdAt,
            "isAuthenticated": self.isAuthenticated,
        })
        return data

    @property
    def is_valid(self) -> bool:
        """Authenticated and carrying at least one identifier"""
        return self.isAuthenticated is True and bool(self.id or self.username)

    def merged(self, updates: Dict[str, Any]) -> 'SessionRecord':
        """Copy of this session with backend column updates applied"""
        data = self.to_dict()
        for key, value in updates.items():
            data[SESSION_FIELD_ALIASES.get(key, key)] = value
        return SessionRecord.from_dict(data)


@dataclass
class AuthResult:
    """Successful outcome of an AuthManager operation"""
    success: bool
    message: str = ""
    user: Optional[SessionRecord] = None
    record: Optional[UserRecord] = None
