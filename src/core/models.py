"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to the host's payload types.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping, Optional

ALLOW = "allow"
ALLOW_MODIFIED = "allow_modified"
REJECT = "reject"

# Marks messages synthesized by the filter itself.
SENT_BY_PLUGIN = "sent_by_plugin"


def _freeze(props: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(props or {}))


@dataclass(frozen=True)
class Post:
    """A candidate message owned by the host."""

    channel_id: str
    user_id: str
    message: str
    post_id: str = ""
    props: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "props", _freeze(self.props))

    def with_message(self, message: str) -> "Post":
        """Return a copy of the post carrying a different text."""

        return replace(self, message=message)


@dataclass(frozen=True)
class Channel:
    channel_id: str
    name: str
    display_name: str = ""


@dataclass(frozen=True)
class User:
    user_id: str
    username: str


@dataclass(frozen=True)
class ChannelMember:
    """Membership record passed to the channel-left hook."""

    channel_id: str
    user_id: str


@dataclass(frozen=True)
class Decision:
    """Outcome of filtering one post.

    allow keeps the post as is, allow_modified keeps a rewritten copy and
    reject drops it. An empty reject reason means a silent drop.
    """

    action: str
    post: Optional[Post] = None
    reason: str = ""

    @classmethod
    def allow(cls, post: Post) -> "Decision":
        return cls(action=ALLOW, post=post)

    @classmethod
    def modify(cls, post: Post) -> "Decision":
        return cls(action=ALLOW_MODIFIED, post=post)

    @classmethod
    def reject(cls, reason: str = "") -> "Decision":
        return cls(action=REJECT, reason=reason)

    @property
    def allowed(self) -> bool:
        return self.action != REJECT

    def as_hook_result(self) -> tuple[Optional[Post], str]:
        """Return the (post, reason) pair the host hooks expect."""

        if self.action == REJECT:
            return None, self.reason
        return self.post, ""
