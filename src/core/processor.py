"""Core post filtering pipeline.

This module is host-agnostic. It only relies on the HostPort for lookups and
author notices, so decisions can be exercised fully offline.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from core.config import FilterConfig
from core.models import SENT_BY_PLUGIN, Decision, Post, User
from core.ports import HostPort, LookupFailure
from core.rules_engine import Rule, build_rules, match_rules

LOGGER = logging.getLogger(__name__)


class PostFilter:
    """Decides whether a post is allowed, rewritten, or rejected."""

    def __init__(self, host: HostPort, rules: Optional[Iterable[Rule]] = None) -> None:
        self._host = host
        self._rules = list(rules) if rules is not None else build_rules()

    def decide(self, post: Post, config: FilterConfig) -> Decision:
        """Run the ordered rules for one post against one config snapshot."""

        try:
            channel = self._host.get_channel(post.channel_id)
        except LookupFailure:
            LOGGER.error("Failed to find channel in post")
            return Decision.reject()

        def resolve_author() -> Optional[User]:
            try:
                return self._host.get_user(post.user_id)
            except LookupFailure:
                LOGGER.error("Failed to find user in post")
                return None

        match = match_rules(post, channel, config, self._rules, resolve_author)
        if match is None:
            return Decision.allow(post)

        if match.notice:
            # Author-only notice; delivery problems never change the decision.
            try:
                self._host.send_ephemeral_post(
                    post.user_id,
                    post.channel_id,
                    match.notice,
                    {SENT_BY_PLUGIN: True},
                )
            except RuntimeError:
                LOGGER.exception("Failed to send notice to %s", post.user_id)
        LOGGER.debug("Rule %s decided %s in %s", match.rule_name, match.decision.action, channel.name)
        return match.decision
