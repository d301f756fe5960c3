from __future__ import annotations

from typing import Any, Mapping

import pytest

from core.config import FilterConfig
from core.models import ALLOW, ALLOW_MODIFIED, REJECT, SENT_BY_PLUGIN, Channel, Post, User
from core.ports import LookupFailure
from core.processor import PostFilter
from core.rules_engine import BOARD_REASON, MODERATED_REASON, NO_UPDATE_REASON, build_rules


class FakeHost:
    def __init__(self, channels: dict[str, str], users: dict[str, str]) -> None:
        self.channels = channels
        self.users = users
        self.notices: list[tuple[str, str, str, dict[str, Any]]] = []
        self.posts: list[tuple[str, str, str]] = []
        self.user_lookups = 0

    def get_channel(self, channel_id: str) -> Channel:
        if channel_id not in self.channels:
            raise LookupFailure(channel_id)
        return Channel(channel_id=channel_id, name=self.channels[channel_id])

    def get_user(self, user_id: str) -> User:
        self.user_lookups += 1
        if user_id not in self.users:
            raise LookupFailure(user_id)
        return User(user_id=user_id, username=self.users[user_id])

    def send_ephemeral_post(self, user_id: str, channel_id: str, message: str, props: Mapping[str, Any]) -> None:
        self.notices.append((user_id, channel_id, message, dict(props)))

    def create_post(self, channel_id: str, user_id: str, message: str) -> None:
        self.posts.append((channel_id, user_id, message))


CHANNELS = {
    "c-news": "news",
    "c-town": "town-square",
    "c-ssm": "ssm",
    "c-ssm0": "ssm-v0",
    "c-board": "bestuur-intern",
}
USERS = {"u-alice": "alice", "u-bob": "bob"}

CONFIG = FilterConfig(
    moderated_channel="news",
    allowed_users=frozenset({"alice"}),
    no_update_channels=frozenset({"town-square", "news"}),
)


@pytest.fixture()
def host() -> FakeHost:
    return FakeHost(dict(CHANNELS), dict(USERS))


def _post(channel_id: str, user_id: str, message: str) -> Post:
    return Post(channel_id=channel_id, user_id=user_id, message=message, post_id="p1")


def test_allowed_user_can_post_in_moderated_channel(host: FakeHost) -> None:
    post = _post("c-news", "u-alice", "Release notes are out")
    decision = PostFilter(host).decide(post, CONFIG)

    assert decision.action == ALLOW
    assert decision.post == post
    assert not host.notices


def test_other_user_is_rejected_with_one_notice(host: FakeHost) -> None:
    decision = PostFilter(host).decide(_post("c-news", "u-bob", "hello"), CONFIG)

    assert decision.action == REJECT
    assert decision.reason == MODERATED_REASON
    assert host.notices == [("u-bob", "c-news", MODERATED_REASON, {SENT_BY_PLUGIN: True})]


def test_other_channels_pass_through_without_user_lookup(host: FakeHost) -> None:
    post = _post("c-town", "u-bob", "anything goes here!")
    decision = PostFilter(host).decide(post, CONFIG)

    assert decision.action == ALLOW
    assert decision.post is post
    assert host.user_lookups == 0
    assert not host.notices


def test_unknown_channel_is_dropped_silently(host: FakeHost) -> None:
    decision = PostFilter(host).decide(_post("c-missing", "u-alice", "hi"), CONFIG)

    assert decision.action == REJECT
    assert decision.reason == ""
    assert not host.notices


def test_unknown_author_in_moderated_channel_is_dropped_silently(host: FakeHost) -> None:
    decision = PostFilter(host).decide(_post("c-news", "u-ghost", "hi"), CONFIG)

    assert decision.action == REJECT
    assert decision.reason == ""
    assert not host.notices


def test_header_update_is_rejected_even_for_allowed_user(host: FakeHost) -> None:
    post = _post("c-news", "u-alice", "@alice updated the channel header from: a to: b")
    decision = PostFilter(host).decide(post, CONFIG)

    assert decision.action == REJECT
    assert decision.reason == NO_UPDATE_REASON
    assert not host.notices


def test_header_update_outside_no_update_channels_is_allowed(host: FakeHost) -> None:
    post = _post("c-board", "u-alice", "@alice updated the channel header from: a to: b")
    decision = PostFilter(host).decide(post, CONFIG)

    assert decision.action == ALLOW


def test_lowercase_mode_strips_capitals_and_punctuation(host: FakeHost) -> None:
    decision = PostFilter(host).decide(_post("c-ssm", "u-bob", "ALL CAPS! 123"), CONFIG)

    assert decision.action == ALLOW_MODIFIED
    assert decision.post is not None
    assert decision.post.message == " 123"
    assert decision.post.post_id == "p1"


def test_lowercase_mode_rejects_when_nothing_survives(host: FakeHost) -> None:
    decision = PostFilter(host).decide(_post("c-ssm", "u-bob", "!!!"), CONFIG)

    assert decision.action == REJECT
    assert decision.reason == "NO"


def test_uppercase_mode_keeps_conforming_text(host: FakeHost) -> None:
    decision = PostFilter(host).decide(_post("c-ssm0", "u-bob", "ALL CAPS! 123"), CONFIG)

    assert decision.action == ALLOW_MODIFIED
    assert decision.post is not None
    assert decision.post.message == "ALL CAPS! 123"


def test_uppercase_mode_strips_lowercase(host: FakeHost) -> None:
    decision = PostFilter(host).decide(_post("c-ssm0", "u-bob", "Hello World!"), CONFIG)

    assert decision.post is not None
    assert decision.post.message == "H W!"


def test_board_channel_allows_board_members(host: FakeHost) -> None:
    decision = PostFilter(host).decide(_post("c-board", "u-alice", "agenda"), CONFIG)

    assert decision.action == ALLOW
    assert not host.notices


def test_board_channel_allows_override_prefix(host: FakeHost) -> None:
    decision = PostFilter(host).decide(_post("c-board", "u-bob", "!urgent question"), CONFIG)

    assert decision.action == ALLOW
    assert decision.post is not None
    assert decision.post.message == "!urgent question"
    assert not host.notices


def test_board_channel_rejects_others_with_notice(host: FakeHost) -> None:
    decision = PostFilter(host).decide(_post("c-board", "u-bob", "question"), CONFIG)

    assert decision.action == REJECT
    assert decision.reason == BOARD_REASON
    assert [notice[2] for notice in host.notices] == [BOARD_REASON]


def test_empty_configuration_allows_everything_outside_special_channels(host: FakeHost) -> None:
    decision = PostFilter(host).decide(_post("c-news", "u-bob", "hello"), FilterConfig())

    assert decision.action == ALLOW
    assert host.user_lookups == 0


def test_custom_reserved_names(host: FakeHost) -> None:
    rules = build_rules(lowercase_channel="quiet", uppercase_channel=None, board_channel=None)
    host.channels["c-quiet"] = "quiet"
    post_filter = PostFilter(host, rules)

    assert post_filter.decide(_post("c-quiet", "u-bob", "Hi there"), CONFIG).post.message == "i there"
    assert post_filter.decide(_post("c-ssm0", "u-bob", "Hi"), CONFIG).action == ALLOW
    assert post_filter.decide(_post("c-board", "u-bob", "Hi"), CONFIG).action == ALLOW


def test_hook_result_pairs(host: FakeHost) -> None:
    post_filter = PostFilter(host)

    allowed = post_filter.decide(_post("c-town", "u-bob", "hi"), CONFIG).as_hook_result()
    rejected = post_filter.decide(_post("c-ssm", "u-bob", "!!!"), CONFIG).as_hook_result()

    assert allowed[0] is not None and allowed[1] == ""
    assert rejected == (None, "NO")


class UndeliverableHost(FakeHost):
    def send_ephemeral_post(self, user_id: str, channel_id: str, message: str, props: Mapping[str, Any]) -> None:
        raise RuntimeError("Mattermost API error 500: boom")


def test_failed_notice_still_rejects() -> None:
    host = UndeliverableHost(dict(CHANNELS), dict(USERS))

    decision = PostFilter(host).decide(_post("c-news", "u-bob", "hi"), CONFIG)

    assert decision.action == REJECT
    assert decision.reason == MODERATED_REASON


def test_failed_board_notice_still_rejects() -> None:
    host = UndeliverableHost(dict(CHANNELS), dict(USERS))

    decision = PostFilter(host).decide(_post("c-board", "u-bob", "question"), CONFIG)

    assert decision.as_hook_result() == (None, BOARD_REASON)
