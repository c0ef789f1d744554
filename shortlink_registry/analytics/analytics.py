"""
Click accounting for the Short-link Registry.

Responsibilities:
    - Bump a link's click counter after a successful resolution
    - Append the matching ClickEvent (link id, requester IP, user agent)
    - Run both writes concurrently and off the request path
    - Report failures to operators without surfacing them to the caller

Counter modes:
    - atomic (default): storage.increment_click_count(link_id), a single
      store-side "+ 1" that cannot lose updates.
    - last-read-wins: storage.update_click_count(link_id, clicks_read + 1),
      using the count the resolver read. Concurrent resolutions of the same
      code may overwrite each other and undercount.

The two writes are independent: no transaction spans them, and one may
succeed while the other fails.

LLM Prompt Example:
    "Show how to run best-effort side effects on a thread pool so a slow or
    failing analytics write never delays an HTTP redirect."
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from typing import Callable, List, Optional, Set

from ..config import settings
from ..models import ClickEvent, RequestMetadata, ShortLink
from ..storage.base import BaseStorage
from .base import BaseClickRecorder

log = logging.getLogger("shortlink.clicks")


class ClickRecorder(BaseClickRecorder):
    def __init__(
        self,
        storage: BaseStorage,
        atomic_increment: Optional[bool] = None,
        max_workers: Optional[int] = None,
    ):
        """
        Args:
            storage (BaseStorage): Where counters and click events are written.
            atomic_increment (Optional[bool]): Counter mode; defaults to settings.ATOMIC_CLICKS.
            max_workers (Optional[int]): Pool size; defaults to settings.CLICK_WORKERS.
        """
        self.storage = storage
        self.atomic_increment = settings.ATOMIC_CLICKS if atomic_increment is None else atomic_increment
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or settings.CLICK_WORKERS,
            thread_name_prefix="click-recorder",
        )
        self._pending: Set[Future] = set()
        self._lock = threading.Lock()

    # ---------------------------------------------------------------------
    # Effects
    # ---------------------------------------------------------------------
    def _bump_counter(self, link: ShortLink) -> None:
        if self.atomic_increment:
            updated = self.storage.increment_click_count(link.id)
        else:
            updated = self.storage.update_click_count(link.id, link.click_count + 1)
        if not updated:
            # deleted between lookup and write
            log.info("click count not updated, link %s no longer exists", link.id)

    def _append_event(self, link: ShortLink, metadata: RequestMetadata) -> None:
        self.storage.insert_click_event(
            ClickEvent(
                short_link_id=link.id,
                ip_address=metadata.ip_address,
                user_agent=metadata.user_agent,
            )
        )

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    def record_click(self, link: ShortLink, metadata: RequestMetadata) -> None:
        """Schedule the counter update and the event append; returns immediately."""
        self._submit("click_count", link, self._bump_counter, link)
        self._submit("click_event", link, self._append_event, link, metadata)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until every scheduled effect has finished.

        Returns:
            bool: True if nothing is left pending.
        """
        with self._lock:
            pending: List[Future] = list(self._pending)
        _, not_done = wait_futures(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    # ---------------------------------------------------------------------
    # Internals
    # ---------------------------------------------------------------------
    def _submit(self, effect: str, link: ShortLink, fn: Callable[..., None], *args) -> None:
        try:
            future = self._executor.submit(self._run, effect, link, fn, *args)
        except RuntimeError:
            # executor already shut down (application stopping)
            log.error("click %s dropped for link %s: recorder is shut down", effect, link.id)
            return
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)

    def _run(self, effect: str, link: ShortLink, fn: Callable[..., None], *args) -> None:
        try:
            fn(*args)
        except Exception:
            log.exception("click %s failed for link %s (code=%s)", effect, link.id, link.code)

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)
