"""
Abstract Base Class for click recorders.

Responsibilities:
    - Define the single hook the resolver calls after a successful lookup
    - Support easy substitution (thread pool, inline, external queue)

A recorder must never raise into the caller: a failed click write may cost a
count, it must not cost a redirect.
"""

from abc import ABC, abstractmethod

from ..models import RequestMetadata, ShortLink

__all__ = ["BaseClickRecorder"]


class BaseClickRecorder(ABC):
    """Abstract base for pluggable click recorders."""

    @abstractmethod
    def record_click(self, link: ShortLink, metadata: RequestMetadata) -> None:  # pragma: no cover
        """
        Count one resolution of `link` and append its click event.

        Args:
            link (ShortLink): The link as read by the resolver.
            metadata (RequestMetadata): Requester IP and user agent.
        """
        raise NotImplementedError
