"""
Data model for the short-link registry.

Entities:
    - ShortLink: the registered mapping code -> destination, owned by a user
    - ClickEvent: append-only record of a single successful resolution
    - RequestMetadata: requester details captured at resolution time

Records are plain dataclasses so every storage backend (in-memory, Postgres)
can build them from its own rows without sharing any persistence code.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class ShortLink:
    id: str
    owner_id: str
    code: str
    destination_url: str
    label: Optional[str] = None
    expires_at: Optional[datetime] = None
    click_count: int = 0
    created_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """
        True once the link's validity window has closed.

        A link is active only while `now < expires_at`; a link without an
        expiry never expires. Nothing is persisted, the state is derived on
        every read.
        """
        if self.expires_at is None:
            return False
        return self.expires_at <= (now or utcnow())

    def with_clicks(self, click_count: int) -> "ShortLink":
        return replace(self, click_count=click_count)

    def to_public_dict(self) -> Dict[str, Any]:
        """Client-facing rendering; the owner id is never included."""
        return {
            "id": self.id,
            "code": self.code,
            "destination_url": self.destination_url,
            "label": self.label,
            "expires_at": _iso(self.expires_at),
            "click_count": self.click_count,
            "created_at": _iso(self.created_at),
        }


@dataclass(frozen=True)
class RequestMetadata:
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass(frozen=True)
class ClickEvent:
    short_link_id: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
