"""Report, breadcrumb, user and context models plus their wire representation."""

import time
from dataclasses import dataclass, field
from typing import Any, Optional

LEVELS = ("error", "warning", "info", "debug")


def now_ms() -> int:
    """Current time as integer epoch milliseconds."""
    return int(time.time() * 1000)


def _compact(d: dict) -> dict:
    """Drop keys whose value is None; absent optionals are omitted on the wire."""
    return {k: v for k, v in d.items() if v is not None}


@dataclass(frozen=True)
class Breadcrumb:
    message: str
    category: str
    level: str = "info"
    data: Optional[dict[str, Any]] = None
    timestamp: int = field(default_factory=now_ms)

    def to_dict(self) -> dict:
        return _compact({
            "timestamp": self.timestamp,
            "message": self.message,
            "category": self.category,
            "level": self.level,
            "data": dict(self.data) if self.data is not None else None,
        })


@dataclass(frozen=True)
class User:
    id: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None

    @classmethod
    def from_any(cls, value) -> Optional["User"]:
        """Accept a User, a mapping with id/email/username keys, an object with
        those attributes (a namespace, a JS proxy), or None."""
        if value is None or isinstance(value, User):
            return value
        if isinstance(value, dict):
            return cls(
                id=value.get("id"),
                email=value.get("email"),
                username=value.get("username"),
            )
        fields = {name: getattr(value, name, None) for name in ("id", "email", "username")}
        if all(v is None for v in fields.values()):
            raise TypeError(f"Unsupported user value: {type(value).__name__}")
        return cls(**{name: str(v) if v is not None else None for name, v in fields.items()})

    def to_dict(self) -> dict:
        return _compact({"id": self.id, "email": self.email, "username": self.username})


@dataclass(frozen=True)
class Context:
    """Best-effort environment metadata; every field empty outside a browser."""

    browser: Optional[str] = None
    os: Optional[str] = None
    url: Optional[str] = None
    user_agent: Optional[str] = None

    def to_dict(self) -> dict:
        return _compact({
            "browser": self.browser,
            "os": self.os,
            "url": self.url,
            "userAgent": self.user_agent,
        })


@dataclass(frozen=True)
class Report:
    """Snapshot of one captured exception or message.

    ``tags`` and ``breadcrumbs`` are copies taken at capture time, so later
    changes on the client never show up in a report that was already built.
    """

    message: str
    level: str
    timestamp: int
    environment: str
    tags: dict[str, str] = field(default_factory=dict)
    context: Context = field(default_factory=Context)
    breadcrumbs: tuple[Breadcrumb, ...] = ()
    stack: Optional[str] = None
    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    release: Optional[str] = None
    user: Optional[User] = None

    def to_dict(self) -> dict:
        """Return the JSON body sent to the collector."""
        return _compact({
            "message": self.message,
            "stack": self.stack,
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "level": self.level,
            "timestamp": self.timestamp,
            "environment": self.environment,
            "release": self.release,
            "tags": dict(self.tags),
            "user": self.user.to_dict() if self.user is not None else None,
            "context": self.context.to_dict(),
            "breadcrumbs": [b.to_dict() for b in self.breadcrumbs],
        })
