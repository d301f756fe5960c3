"""Announces when a user is removed from a channel by someone else."""

from __future__ import annotations

import logging
from typing import Optional

from core.models import ChannelMember, User
from core.ports import HostPort, LookupFailure

LOGGER = logging.getLogger(__name__)

KICK_MESSAGE = "[BOT] I just kicked @{username} from the channel"


def format_kick_message(username: str) -> str:
    return KICK_MESSAGE.format(username=username)


class LeaveNotifier:
    """Posts a public kick notice attributed to the removing user."""

    def __init__(self, host: HostPort) -> None:
        self._host = host

    def handle(self, member: ChannelMember, actor: Optional[User]) -> None:
        if actor is None or actor.user_id == member.user_id:
            # Self-removal is a leave, not a kick.
            return

        try:
            kicked = self._host.get_user(member.user_id)
        except LookupFailure:
            LOGGER.error("Failed to find user")
            return

        try:
            self._host.create_post(member.channel_id, actor.user_id, format_kick_message(kicked.username))
        except RuntimeError:
            LOGGER.exception("Failed to announce removal of %s", kicked.username)
            return
        LOGGER.info("Announced removal of %s from %s", kicked.username, member.channel_id)
