"""Host hook surface for postfilter.

The plugin wires host callbacks to the core in a fixed way:
1) Configuration changes build a fresh snapshot and publish it
2) Post created/updated hooks read one snapshot and run the filter
3) Channel-left hooks go to the leave notifier

The configuration loader is injected so the plugin works with the JSON file,
a host-supplied record, or a test double.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping, Optional

from core.config import ConfigurationError, FilterConfig
from core.config_store import ConfigStore
from core.leave_notifier import LeaveNotifier
from core.models import ChannelMember, Post, User
from core.ports import HostPort
from core.processor import PostFilter
from core.rules_engine import Rule

LOGGER = logging.getLogger(__name__)

SettingsLoader = Callable[[], Mapping[str, Any]]

NOT_FOUND = (404, "404 page not found")


class Plugin:
    """Moderation plugin bound to one host."""

    def __init__(
        self,
        host: HostPort,
        load_settings: SettingsLoader,
        rules: Optional[Iterable[Rule]] = None,
    ) -> None:
        self._host = host
        self._load_settings = load_settings
        self._store = ConfigStore()
        self._filter = PostFilter(host, rules)
        self._leave_notifier = LeaveNotifier(host)

    @property
    def configuration(self) -> FilterConfig:
        return self._store.get()

    def on_activate(self) -> None:
        self.on_configuration_change()
        LOGGER.info("Plugin activated")

    def on_configuration_change(self) -> None:
        """Reload settings and publish a new snapshot.

        The loader runs before the store lock is taken; the previous
        snapshot stays active when loading fails.
        """

        try:
            raw = self._load_settings()
            config = FilterConfig.from_plugin_settings(raw)
        except Exception as e:
            raise ConfigurationError("failed to load plugin configuration") from e
        self._store.set(config)
        LOGGER.info(
            "Configuration loaded: moderated channel %r, %s allowed users, %s no-update channels",
            config.moderated_channel,
            len(config.allowed_users),
            len(config.no_update_channels),
        )

    def filter_post(self, post: Post) -> tuple[Optional[Post], str]:
        return self._filter.decide(post, self._store.get()).as_hook_result()

    def message_will_be_posted(self, post: Post) -> tuple[Optional[Post], str]:
        return self.filter_post(post)

    def message_will_be_updated(self, new_post: Post, old_post: Optional[Post] = None) -> tuple[Optional[Post], str]:
        return self.filter_post(new_post)

    def user_has_left_channel(self, member: ChannelMember, actor: Optional[User]) -> None:
        self._leave_notifier.handle(member, actor)

    def serve_http(self, path: str) -> tuple[int, str]:
        """The plugin exposes no HTTP routes."""

        return NOT_FOUND
