"""Ordered filtering rules (core domain).

Rules are evaluated in list order and the first rule that produces a match
decides the post. Later rules assume earlier ones did not already dispose of
the message, so the order returned by build_rules is part of the contract.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Callable, Iterable, List, Optional

from core.config import FilterConfig
from core.models import Channel, Decision, Post, User

NO_UPDATE = "no_update"
STRIP = "strip"
GATE = "gate"

DEFAULT_LOWERCASE_CHANNEL = "ssm"
DEFAULT_UPPERCASE_CHANNEL = "ssm-v0"
DEFAULT_BOARD_CHANNEL = "bestuur-intern"

CHANNEL_HEADER_UPDATE = "updated the channel header"
OVERRIDE_PREFIX = "!"

NO_UPDATE_REASON = "You are not allowed to post message updates in this channel"
STRIPPED_EMPTY_REASON = "NO"
BOARD_REASON = (
    "This is the internal channel of the board, so only the board can post in it. "
    "If you think it's appropriate, override by starting your message with '!'"
)
MODERATED_REASON = "You are not allowed to post in this channel"

LOWERCASE_PATTERN = re.compile(r"[^a-z0-9 ]")
UPPERCASE_PATTERN = re.compile(r"[^A-Z0-9! ]")

AuthorResolver = Callable[[], Optional[User]]


@dataclass(frozen=True)
class Rule:
    """One tagged rule variant.

    - no_update: drops channel header announcements in the configured
      no-update channels.
    - strip: removes every character matched by ``pattern`` in ``channel``.
    - gate: only allowed users may post in ``channel``; ``channel=None``
      targets the configured moderated channel.
    """

    name: str
    kind: str
    channel: Optional[str] = None
    pattern: Optional[re.Pattern] = None
    reason: str = ""
    override_prefix: Optional[str] = None


@dataclass(frozen=True)
class RuleMatch:
    """The decision of the first matching rule and an optional author notice."""

    rule_name: str
    decision: Decision
    notice: Optional[str] = None


def strip_text(text: str, pattern: re.Pattern) -> str:
    """Remove every character matched by ``pattern``."""

    return pattern.sub("", text)


def build_rules(
    lowercase_channel: Optional[str] = DEFAULT_LOWERCASE_CHANNEL,
    uppercase_channel: Optional[str] = DEFAULT_UPPERCASE_CHANNEL,
    board_channel: Optional[str] = DEFAULT_BOARD_CHANNEL,
) -> List[Rule]:
    """Return the rules in evaluation order.

    A reserved channel name set to an empty value disables its rule.
    """

    rules: List[Rule] = [Rule(name="no-update", kind=NO_UPDATE, reason=NO_UPDATE_REASON)]
    if lowercase_channel:
        rules.append(
            Rule(
                name="lowercase-mode",
                kind=STRIP,
                channel=lowercase_channel,
                pattern=LOWERCASE_PATTERN,
                reason=STRIPPED_EMPTY_REASON,
            )
        )
    if uppercase_channel:
        rules.append(
            Rule(
                name="uppercase-mode",
                kind=STRIP,
                channel=uppercase_channel,
                pattern=UPPERCASE_PATTERN,
                reason=STRIPPED_EMPTY_REASON,
            )
        )
    if board_channel:
        rules.append(
            Rule(
                name="board-gate",
                kind=GATE,
                channel=board_channel,
                reason=BOARD_REASON,
                override_prefix=OVERRIDE_PREFIX,
            )
        )
    rules.append(Rule(name="moderated-gate", kind=GATE, reason=MODERATED_REASON))
    return rules


def _match_no_update(rule: Rule, post: Post, channel: Channel, config: FilterConfig) -> Optional[RuleMatch]:
    if CHANNEL_HEADER_UPDATE not in post.message:
        return None
    if channel.name not in config.no_update_channels:
        return None
    return RuleMatch(rule_name=rule.name, decision=Decision.reject(rule.reason))


def _match_strip(rule: Rule, post: Post, channel: Channel) -> Optional[RuleMatch]:
    if channel.name != rule.channel or rule.pattern is None:
        return None
    stripped = strip_text(post.message, rule.pattern)
    if not stripped:
        return RuleMatch(rule_name=rule.name, decision=Decision.reject(rule.reason))
    return RuleMatch(rule_name=rule.name, decision=Decision.modify(post.with_message(stripped)))


def _match_gate(
    rule: Rule,
    post: Post,
    channel: Channel,
    config: FilterConfig,
    resolve_author: AuthorResolver,
) -> Optional[RuleMatch]:
    target = rule.channel if rule.channel is not None else config.moderated_channel
    if not target or channel.name != target:
        return None

    author = resolve_author()
    if author is None:
        # Without the author there is no safe allow, so drop silently.
        return RuleMatch(rule_name=rule.name, decision=Decision.reject())
    if config.is_allowed_user(author.username):
        return RuleMatch(rule_name=rule.name, decision=Decision.allow(post))
    if rule.override_prefix and post.message.startswith(rule.override_prefix):
        return RuleMatch(rule_name=rule.name, decision=Decision.allow(post))
    return RuleMatch(
        rule_name=rule.name,
        decision=Decision.reject(rule.reason),
        notice=rule.reason,
    )


def match_rules(
    post: Post,
    channel: Channel,
    config: FilterConfig,
    rules: Iterable[Rule],
    resolve_author: AuthorResolver,
) -> Optional[RuleMatch]:
    """Return the match of the first rule that applies, or None.

    ``resolve_author`` is only called by gate rules whose channel matches, so
    posts in ordinary channels never need a user lookup.
    """

    for rule in rules:
        if rule.kind == NO_UPDATE:
            match = _match_no_update(rule, post, channel, config)
        elif rule.kind == STRIP:
            match = _match_strip(rule, post, channel)
        elif rule.kind == GATE:
            match = _match_gate(rule, post, channel, config, resolve_author)
        else:
            raise ValueError(f"Unsupported rule kind: {rule.kind}")
        if match is not None:
            return match
    return None
