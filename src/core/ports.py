"""Ports (interfaces) used by the core filter.

Ports define the minimal contract the host platform must satisfy so that the
core can run against the live server or against in-memory fakes in tests.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol

from core.models import Channel, User


class LookupFailure(Exception):
    """Raised by a host adapter when a channel or user cannot be resolved."""


class HostPort(Protocol):
    """Host operations required by the filter and the leave notifier.

    Lookups raise LookupFailure. Sends raise RuntimeError when the host
    cannot deliver; callers log it and carry on.
    """

    def get_channel(self, channel_id: str) -> Channel:
        ...

    def get_user(self, user_id: str) -> User:
        ...

    def send_ephemeral_post(
        self,
        user_id: str,
        channel_id: str,
        message: str,
        props: Mapping[str, Any],
    ) -> None:
        ...

    def create_post(self, channel_id: str, user_id: str, message: str) -> None:
        ...
