"""Application entry point for the postfilter tools."""

from __future__ import annotations

import argparse
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Any, Mapping, Optional

from art import tprint
from dotenv import load_dotenv

import settings
from client import build_host
from core.config import FilterConfig
from core.models import Post
from core.ports import HostPort
from core.rules_engine import Rule, build_rules
from plugin import Plugin

NAME = "POSTFILTER"
FONT = "tarty-1"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _MaskingFormatter(logging.Formatter):
    """Replaces known secret values (e.g. the API token) with ***."""

    def __init__(self, secrets: list[str]) -> None:
        super().__init__(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
        self._secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        for secret in self._secrets:
            text = text.replace(secret, "***")
        return text


def _secret_values(logging_config: dict) -> list[str]:
    """Resolve the env var names listed under logging.redact to their values."""

    redact = logging_config.get("redact") or {}
    if not redact.get("enabled", False):
        return []
    return [os.environ[name] for name in redact.get("patterns", []) if os.environ.get(name)]


def _file_handler(file_config: dict) -> Optional[logging.Handler]:
    if not file_config.get("enabled", False):
        return None
    path = file_config.get("path", "logs/postfilter.log")
    if not os.path.isabs(path):
        path = os.path.join(settings.PROJECT_ROOT, path)
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=int(file_config.get("max_bytes", 5 * 1024 * 1024)),
        backupCount=int(file_config.get("backup_count", 5)),
        encoding="utf-8",
    )


def _configure_logging() -> None:
    config = settings.LOGGING
    if not config.get("enabled", False):
        return

    # Secrets may live in .env, so load it before collecting values to mask.
    load_dotenv()
    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    formatter = _MaskingFormatter(_secret_values(config))

    handlers = [logging.StreamHandler()] if config.get("console", True) else []
    file_handler = _file_handler(config.get("file") or {})
    if file_handler is not None:
        handlers.append(file_handler)
    if not handlers:
        return

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=handlers)


class _DryRunHost:
    """Wrap a host so lookups go through but notices are only collected."""

    def __init__(self, wrapped: HostPort) -> None:
        self._wrapped = wrapped
        self.notices: list[str] = []

    def get_channel(self, channel_id: str):
        return self._wrapped.get_channel(channel_id)

    def get_user(self, user_id: str):
        return self._wrapped.get_user(user_id)

    def send_ephemeral_post(self, user_id: str, channel_id: str, message: str, props: Mapping[str, Any]) -> None:
        self.notices.append(message)

    def create_post(self, channel_id: str, user_id: str, message: str) -> None:
        logging.getLogger(__name__).info("Dry run: post in %s not created: %s", channel_id, message)


def build_configured_rules() -> list[Rule]:
    """Rules with the reserved channel names from config.json."""

    return build_rules(
        lowercase_channel=settings.LOWERCASE_CHANNEL,
        uppercase_channel=settings.UPPERCASE_CHANNEL,
        board_channel=settings.BOARD_CHANNEL,
    )


def build_plugin(host: Optional[HostPort] = None) -> Plugin:
    """Wire a Plugin to the REST host, the config file and the configured rules."""

    return Plugin(
        host if host is not None else build_host(),
        settings.load_plugin_settings,
        build_configured_rules(),
    )


def _check(channel_id: str, user_id: str, message: str, send_notices: bool) -> None:
    _print_banner()
    _configure_logging()

    host: HostPort = build_host()
    dry_run = None if send_notices else _DryRunHost(host)
    plugin = build_plugin(dry_run or host)
    plugin.on_activate()

    result, reason = plugin.message_will_be_posted(
        Post(channel_id=channel_id, user_id=user_id, message=message)
    )
    if result is None:
        print(f"Rejected: {reason or '(silently)'}")
    elif result.message != message:
        print(f"Allowed with changes: {result.message}")
    else:
        print("Allowed")
    if dry_run is not None:
        for notice in dry_run.notices:
            print(f"Notice (not sent): {notice}")


def _show_config() -> None:
    config = FilterConfig.from_plugin_settings(settings.load_plugin_settings())
    print(f"Moderated channel: {config.moderated_channel or '(none)'}")
    print(f"Allowed users: {', '.join(sorted(config.allowed_users)) or '(none)'}")
    print(f"No-update channels: {', '.join(sorted(config.no_update_channels)) or '(none)'}")
    for rule in build_configured_rules():
        print(f"Rule {rule.name}: {rule.kind} {rule.channel or config.moderated_channel or '-'}")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="postfilter")
    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser("check", help="Run the filter for one message against the server")
    check.add_argument("--channel-id", required=True)
    check.add_argument("--user-id", required=True)
    check.add_argument("--message", required=True)
    check.add_argument(
        "--send-notices",
        action="store_true",
        help="Deliver ephemeral notices instead of printing them",
    )
    subparsers.add_parser("show-config", help="Print the parsed filter configuration")

    args = parser.parse_args(argv)
    if args.command == "show-config":
        _show_config()
        return
    _check(args.channel_id, args.user_id, args.message, args.send_notices)


if __name__ == "__main__":
    main()
