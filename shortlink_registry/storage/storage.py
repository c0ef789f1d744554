"""
Storage module for the Short-link Registry (in-memory implementation).

Responsibilities:
    - Save links and enforce code uniqueness
    - Track click counts (both atomic and overwrite-style updates)
    - Provide lookup by code, by id, and listing by owner
    - Keep the append-only click event log

Design:
    - This is an in-memory reference implementation that satisfies the BaseStorage contract.
    - All state sits behind one lock so concurrent requests from FastAPI's
      threadpool and the click recorder's workers cannot corrupt the maps.
    - For production, use the Postgres backend (db_storage.DBStorage).

LLM Prompt Example:
    "Explain how this in-memory storage can be swapped for a database-backed layer
     (Postgres) without changing the registry or API code, by adhering to a
     narrow, explicit BaseStorage interface."
"""

import itertools
import threading
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ..models import ClickEvent, ShortLink, utcnow
from .base import BaseStorage, UniqueConstraintError


class Storage(BaseStorage):
    def __init__(self):
        """
        Initialize empty storage.

        Internal schema:
            self.links      = {link_id: ShortLink}
            self.codes      = {code: link_id}            # unique index
            self.click_events = [ClickEvent, ...]        # append-only
        """
        self.links: Dict[str, ShortLink] = {}
        self.codes: Dict[str, str] = {}
        self.click_events: List[ClickEvent] = []
        # insertion sequence breaks created_at ties when listing newest-first
        self._seq: Dict[str, int] = {}
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def insert_link(
        self,
        owner_id: str,
        code: str,
        destination_url: str,
        label: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> ShortLink:
        with self._lock:
            if code in self.codes:
                raise UniqueConstraintError(f"duplicate code {code!r}")
            link = ShortLink(
                id=str(uuid.uuid4()),
                owner_id=owner_id,
                code=code,
                destination_url=destination_url,
                label=label,
                expires_at=expires_at,
                click_count=0,
                created_at=utcnow(),
            )
            self.links[link.id] = link
            self.codes[code] = link.id
            self._seq[link.id] = next(self._counter)
            return link

    def find_link_by_code(self, code: str) -> Optional[ShortLink]:
        with self._lock:
            link_id = self.codes.get(code)
            return self.links.get(link_id) if link_id else None

    def get_link(self, link_id: str) -> Optional[ShortLink]:
        with self._lock:
            return self.links.get(link_id)

    def update_click_count(self, link_id: str, click_count: int) -> bool:
        with self._lock:
            link = self.links.get(link_id)
            if link is None:
                return False
            self.links[link_id] = link.with_clicks(click_count)
            return True

    def increment_click_count(self, link_id: str) -> bool:
        with self._lock:
            link = self.links.get(link_id)
            if link is None:
                return False
            self.links[link_id] = link.with_clicks(link.click_count + 1)
            return True

    def delete_link(self, link_id: str, owner_id: str) -> int:
        with self._lock:
            link = self.links.get(link_id)
            if link is None or link.owner_id != owner_id:
                return 0
            del self.links[link_id]
            del self.codes[link.code]
            self._seq.pop(link_id, None)
            # mirror ON DELETE CASCADE of the relational schema
            self.click_events = [e for e in self.click_events if e.short_link_id != link_id]
            return 1

    def list_links_by_owner(self, owner_id: str) -> List[ShortLink]:
        with self._lock:
            owned = [link for link in self.links.values() if link.owner_id == owner_id]

            def _key(link: ShortLink) -> Tuple[datetime, int]:
                return (link.created_at, self._seq[link.id])

            return sorted(owned, key=_key, reverse=True)

    def insert_click_event(self, event: ClickEvent) -> None:
        with self._lock:
            self.click_events.append(event)
