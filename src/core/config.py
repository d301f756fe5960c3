"""Core configuration dataclasses.

We keep config file parsing outside the core, but the snapshot defined here
is the only shape the filter reads. Snapshots are frozen; a reload always
builds a new one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


class ConfigurationError(Exception):
    """Raised when plugin settings cannot be loaded."""


def parse_name_list(raw: Any) -> frozenset[str]:
    """Split a whitespace-delimited setting into a set of names.

    Empty segments are dropped so that an empty setting never matches a
    real username or channel name.
    """

    if raw is None:
        return frozenset()
    return frozenset(part for part in str(raw).split() if part)


@dataclass(frozen=True)
class FilterConfig:
    """Immutable filter configuration snapshot."""

    moderated_channel: str = ""
    allowed_users: frozenset[str] = field(default_factory=frozenset)
    no_update_channels: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_plugin_settings(cls, settings: Mapping[str, Any]) -> "FilterConfig":
        """Build a snapshot from the flat plugin settings record.

        Keys follow the host's plugin settings names: Channel, AllowedUsers
        and ChannelNoUpdate.
        """

        channel = settings.get("Channel") or ""
        return cls(
            moderated_channel=str(channel).strip(),
            allowed_users=parse_name_list(settings.get("AllowedUsers")),
            no_update_channels=parse_name_list(settings.get("ChannelNoUpdate")),
        )

    def is_allowed_user(self, username: str) -> bool:
        return bool(username) and username in self.allowed_users
