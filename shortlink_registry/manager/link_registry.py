"""
LinkRegistry module for the Short-link Registry.

Responsibilities:
    - Validate creation input (owner, URL, caller code, expiry, label)
    - Mint codes through the code strategy and persist links
    - Retry generated codes on uniqueness conflicts, a bounded number of times
    - List and delete links, strictly scoped to the owning user

Design notes:
    - All validation happens before any storage access.
    - Code uniqueness is enforced by the store (unique index), never by a
      "does it exist?" pre-check, so two concurrent creates cannot both win.
    - A caller-chosen code gets exactly one insert attempt; retrying would
      only repeat the same conflict.
    - Only UniqueConstraintError is retried. Every other storage error is
      surfaced immediately as StorageFailure.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Callable, List, Optional, Union
from urllib.parse import urlparse

from ..config import settings
from ..errors import CodeAlreadyExists, CodeExhausted, InvalidInput, StorageFailure, Unauthorized
from ..models import ShortLink
from ..storage.base import BaseStorage, StorageError, UniqueConstraintError
from .strategies import get_strategy_from_config

log = logging.getLogger("shortlink.registry")

CallerCodePattern = re.compile(r"^[A-Za-z0-9_-]+$")
_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*$")
_NO_EXPIRY = {"", "never", "none", "null"}

# single-segment paths the API serves itself; a link under one could never resolve
RESERVED_CODES = frozenset({"health", "docs", "redoc"})

CodeStrategy = Callable[[int], str]  # (length) -> code


def parse_expires_at(value: Union[None, str, datetime]) -> Optional[datetime]:
    """
    Normalise an expiry to an aware UTC datetime, or None for "never".

    Accepts ISO-8601 strings (a trailing "Z" included), datetimes, or
    None / "" / "never". Naive values are taken to be UTC.

    Raises:
        InvalidInput: If the value cannot be read as an instant.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        raw = value.strip()
        if raw.lower() in _NO_EXPIRY:
            return None
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            raise InvalidInput("expiresAt", "expiresAt is invalid") from None
    else:
        raise InvalidInput("expiresAt", "expiresAt is invalid")
    try:
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        # offset pushes the instant past datetime.min / datetime.max
        raise InvalidInput("expiresAt", "expiresAt is out of range") from None


def normalize_label(label: Optional[str], max_length: int = settings.LABEL_MAX_LENGTH) -> Optional[str]:
    """Trim and truncate a label; blank labels become None."""
    if label is None:
        return None
    trimmed = label.strip()[:max_length]
    return trimmed or None


class LinkRegistry:
    """
    Creation, listing and deletion of short links on behalf of an owner.
    """

    def __init__(
        self,
        storage: BaseStorage,
        code_strategy: Optional[CodeStrategy] = None,
        code_length: Optional[int] = None,
        max_attempts: Optional[int] = None,
    ):
        """
        Args:
            storage (BaseStorage): Backend storage instance.
            code_strategy (Optional[CodeStrategy]): Code generator `(length) -> code`;
                defaults to the configured RandomStrategy.
            code_length (Optional[int]): Generated code length (settings.CODE_LENGTH).
            max_attempts (Optional[int]): Total insert attempts for generated codes
                (settings.CODE_ATTEMPTS).
        """
        self.storage = storage
        self.code_strategy = code_strategy or get_strategy_from_config()
        self.code_length = code_length or settings.CODE_LENGTH
        self.max_attempts = max_attempts or settings.CODE_ATTEMPTS

    # ---------------------------------------------------------------------
    # Validation Helpers
    # ---------------------------------------------------------------------
    @staticmethod
    def _require_owner(owner_id: Optional[str]) -> str:
        if not owner_id:
            raise Unauthorized()
        return owner_id

    @staticmethod
    def _validate_url(url: Optional[str]) -> str:
        """
        Trim and check that the URL is absolute (scheme + network location).

        Raises:
            InvalidInput: field "destinationUrl".
        """
        trimmed = (url or "").strip()
        if not trimmed:
            raise InvalidInput("destinationUrl", "destinationUrl is required")
        try:
            parsed = urlparse(trimmed)
            parsed.port  # raises ValueError on a malformed port
        except ValueError:
            raise InvalidInput("destinationUrl", "destinationUrl is invalid") from None
        if not _SCHEME_PATTERN.match(parsed.scheme) or not parsed.netloc:
            raise InvalidInput("destinationUrl", "destinationUrl is invalid")
        return trimmed

    @staticmethod
    def _validate_code(code: Optional[str]) -> Optional[str]:
        if code is None:
            return None
        trimmed = code.strip()
        if not trimmed:
            return None
        if not CallerCodePattern.match(trimmed):
            raise InvalidInput("code", "code must be alphanumeric, dash or underscore")
        if trimmed in RESERVED_CODES:
            raise InvalidInput("code", f"code {trimmed!r} is reserved")
        return trimmed

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    def create(
        self,
        owner_id: Optional[str],
        destination_url: Optional[str],
        code: Optional[str] = None,
        label: Optional[str] = None,
        expires_at: Union[None, str, datetime] = None,
    ) -> ShortLink:
        """
        Register a new short link.

        Rules:
            - Validate owner, URL, caller code, expiry, then label, in that order.
            - Caller code: one insert; a conflict is CodeAlreadyExists.
            - Generated code: up to `max_attempts` inserts, regenerating after
              each conflict; running out is CodeExhausted.

        Returns:
            ShortLink: The persisted record (store-assigned id and created_at).

        Raises:
            Unauthorized, InvalidInput, CodeAlreadyExists, CodeExhausted, StorageFailure
        """
        owner_id = self._require_owner(owner_id)
        url = self._validate_url(destination_url)
        caller_code = self._validate_code(code)
        expiry = parse_expires_at(expires_at)
        clean_label = normalize_label(label)

        attempts = 1 if caller_code else self.max_attempts
        for attempt in range(1, attempts + 1):
            candidate = caller_code or self.code_strategy(self.code_length)
            if candidate in RESERVED_CODES:
                log.warning("Generated reserved code (attempt %d/%d)", attempt, attempts)
                continue
            try:
                link = self.storage.insert_link(
                    owner_id=owner_id,
                    code=candidate,
                    destination_url=url,
                    label=clean_label,
                    expires_at=expiry,
                )
            except UniqueConstraintError:
                if caller_code:
                    raise CodeAlreadyExists(caller_code) from None
                log.warning("Generated code collision (attempt %d/%d)", attempt, attempts)
                continue
            except StorageError as exc:
                raise StorageFailure(str(exc)) from exc
            log.info("Created link %s code=%s owner=%s", link.id, link.code, owner_id)
            return link

        raise CodeExhausted(attempts)

    def list(self, owner_id: Optional[str]) -> List[ShortLink]:
        """All links owned by `owner_id`, newest first."""
        owner_id = self._require_owner(owner_id)
        try:
            return self.storage.list_links_by_owner(owner_id)
        except StorageError as exc:
            raise StorageFailure(str(exc)) from exc

    def delete(self, owner_id: Optional[str], link_id: Optional[str]) -> None:
        """
        Delete a link owned by `owner_id`.

        Deleting an unknown id, or someone else's, succeeds without effect.
        """
        owner_id = self._require_owner(owner_id)
        if not link_id:
            raise InvalidInput("id", "id is required")
        try:
            removed = self.storage.delete_link(link_id, owner_id)
        except StorageError as exc:
            raise StorageFailure(str(exc)) from exc
        if removed:
            log.info("Deleted link %s owner=%s", link_id, owner_id)
