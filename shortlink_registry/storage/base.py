"""
Base storage interface for the Short-link Registry.

Purpose:
    Define a small, stable contract that multiple storage backends
    (in-memory, Postgres) can implement without requiring changes to the
    registry or resolver.

Error contract:
    - Every backend failure is raised as `StorageError`.
    - A violated uniqueness constraint on `code` is raised as the subclass
      `UniqueConstraintError`, independent of the backend's native error
      codes. The registry's retry logic depends on this distinction.

Testing & Coverage:
    These are abstract methods and are not executed directly in tests.
    We annotate them with `# pragma: no cover` so coverage tools don't
    penalize the project for un-runnable abstract declarations.

LLM Prompt Example:
    "Show how a narrow, explicit storage interface enables dependency
    injection and easy backend swapping without touching service code."
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from ..models import ClickEvent, ShortLink


class StorageError(Exception):
    """Any failure reported by a storage backend."""


class UniqueConstraintError(StorageError):
    """Insert rejected because a unique field (the link code) is already taken."""


class BaseStorage(ABC):
    """Abstract base class for storage backends."""

    @abstractmethod  # pragma: no cover
    def insert_link(
        self,
        owner_id: str,
        code: str,
        destination_url: str,
        label: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> ShortLink:
        """
        Persist a new link and return it with store-assigned `id` and `created_at`.

        Raises:
            UniqueConstraintError: If `code` is already in use.
            StorageError: On any other failure.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def find_link_by_code(self, code: str) -> Optional[ShortLink]:
        """Return the link registered under `code` (case-sensitive) or None."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_link(self, link_id: str) -> Optional[ShortLink]:
        """Return the link with the given id or None."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def update_click_count(self, link_id: str, click_count: int) -> bool:
        """
        Overwrite the click counter with a caller-computed value.

        Returns:
            bool: False if the link does not exist.

        LLM Prompt Example:
            "Explain the lost-update problem when two readers write back
            clicks + 1 computed from the same stale read."
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def increment_click_count(self, link_id: str) -> bool:
        """
        Atomically add one to the click counter.

        Returns:
            bool: False if the link does not exist.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def delete_link(self, link_id: str, owner_id: str) -> int:
        """Delete the link only if both id and owner match; return rows removed (0 or 1)."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def list_links_by_owner(self, owner_id: str) -> List[ShortLink]:
        """All links owned by `owner_id`, newest `created_at` first."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def insert_click_event(self, event: ClickEvent) -> None:
        """Append a click event. Events are never updated."""
        raise NotImplementedError
