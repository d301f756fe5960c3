"""Mattermost host factory for postfilter.

Credentials come from the environment so the token never lands in
config.json or the repository.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

import settings
from adapters.mattermost_host import MattermostHost


def build_host() -> MattermostHost:
    """Create a REST host adapter from environment variables.

    We read MATTERMOST_TOKEN (and an optional MATTERMOST_URL override) via
    python-dotenv; the server URL otherwise comes from config.json.
    """

    load_dotenv()

    token = os.getenv("MATTERMOST_TOKEN")
    base_url = os.getenv("MATTERMOST_URL") or settings.MATTERMOST_URL

    # Fail fast on missing credentials to avoid a stream of 401 lookups that
    # would silently reject every post.
    if not token:
        raise RuntimeError("Missing MATTERMOST_TOKEN in environment")

    logging.getLogger(__name__).info("Initializing Mattermost host at %s", base_url)

    return MattermostHost(base_url, token, timeout=settings.MATTERMOST_TIMEOUT)
