"""
RedirectResolver module for the Short-link Registry.

Flow for resolve(code, metadata):
    1. Reject an empty code (InvalidInput "code").
    2. Look the link up by code, case-sensitive. Missing -> NotFound,
       storage error -> StorageFailure.
    3. Expired links (expires_at <= now) -> Expired. The record is left as is.
    4. Hand the click to the recorder (counter + click event, concurrently,
       fire-and-forget).
    5. Return the destination URL unchanged.

Expiry is computed on every read from `expires_at` and the clock; there is no
stored status.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from ..analytics.base import BaseClickRecorder
from ..errors import Expired, InvalidInput, NotFound, StorageFailure
from ..models import RequestMetadata, utcnow
from ..storage.base import BaseStorage, StorageError

log = logging.getLogger("shortlink.resolver")


class RedirectResolver:
    def __init__(
        self,
        storage: BaseStorage,
        click_recorder: Optional[BaseClickRecorder] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Args:
            storage (BaseStorage): Where links are looked up.
            click_recorder (Optional[BaseClickRecorder]): Click side effects; None disables counting.
            clock (Callable[[], datetime]): Aware "now", injectable for expiry tests.
        """
        self.storage = storage
        self.click_recorder = click_recorder
        self.clock = clock

    def resolve(self, code: Optional[str], metadata: Optional[RequestMetadata] = None) -> str:
        """
        Resolve `code` to its destination URL and record the click.

        Raises:
            InvalidInput, NotFound, Expired, StorageFailure
        """
        if not code:
            raise InvalidInput("code", "code is required")

        try:
            link = self.storage.find_link_by_code(code)
        except StorageError as exc:
            raise StorageFailure(str(exc)) from exc

        if link is None:
            log.info("Resolve miss for code=%s", code)
            raise NotFound()

        if link.is_expired(self.clock()):
            log.info("Resolve of expired link %s code=%s", link.id, code)
            raise Expired()

        if self.click_recorder is not None:
            try:
                self.click_recorder.record_click(link, metadata or RequestMetadata())
            except Exception:
                # a click is never worth a failed redirect
                log.exception("Click recording failed for link %s", link.id)

        return link.destination_url
