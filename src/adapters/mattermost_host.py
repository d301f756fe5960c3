"""Mattermost REST API host adapter.

Implements the core HostPort over the v4 REST API using a bearer token.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Mapping, Optional

from adapters.mattermost_mapper import channel_from_payload, post_to_payload, user_from_payload
from core.models import Channel, User
from core.ports import LookupFailure

LOGGER = logging.getLogger(__name__)


class MattermostHost:
    """HostPort adapter backed by the Mattermost REST API."""

    def __init__(self, base_url: str, token: str, timeout: float = 10) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout

    def _endpoint(self, path: str) -> str:
        return f"{self._base_url}/api/v4/{path.lstrip('/')}"

    def _request(self, method: str, path: str, payload: Optional[Mapping[str, Any]] = None) -> Any:
        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        request = urllib.request.Request(self._endpoint(path), data=data, method=method)
        request.add_header("Authorization", f"Bearer {self._token}")
        request.add_header("Accept", "application/json")
        if data is not None:
            request.add_header("Content-Type", "application/json")
        # Blocking call: the host contract for lookups is synchronous and the
        # request timeout is the only bound we apply.
        with urllib.request.urlopen(request, timeout=self._timeout) as response:
            body = response.read()
        if not body:
            return None
        return json.loads(body.decode("utf-8"))

    def _lookup(self, path: str) -> Mapping[str, Any]:
        try:
            payload = self._request("GET", path)
        except urllib.error.HTTPError as e:
            raise LookupFailure(f"GET {path} failed with {e.code}") from e
        except (urllib.error.URLError, OSError, ValueError) as e:
            raise LookupFailure(f"GET {path} failed: {e}") from e
        if not isinstance(payload, Mapping):
            raise LookupFailure(f"GET {path} returned an unexpected payload")
        return payload

    def _send(self, path: str, payload: Mapping[str, Any]) -> None:
        try:
            self._request("POST", path, payload)
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise RuntimeError(f"Mattermost API error {e.code}: {body}") from e
        except (urllib.error.URLError, OSError) as e:
            raise RuntimeError(f"Mattermost API unreachable for POST {path}: {e}") from e

    def get_channel(self, channel_id: str) -> Channel:
        return channel_from_payload(self._lookup(f"channels/{urllib.parse.quote(channel_id)}"))

    def get_user(self, user_id: str) -> User:
        return user_from_payload(self._lookup(f"users/{urllib.parse.quote(user_id)}"))

    def send_ephemeral_post(
        self,
        user_id: str,
        channel_id: str,
        message: str,
        props: Mapping[str, Any],
    ) -> None:
        """Send a post only ``user_id`` can see."""

        self._send(
            "posts/ephemeral",
            {"user_id": user_id, "post": post_to_payload(channel_id, message, props=props)},
        )

    def create_post(self, channel_id: str, user_id: str, message: str) -> None:
        """Create a public post.

        The server attributes REST-created posts to the token owner; user_id
        is passed along for hosts that honour it.
        """

        self._send("posts", post_to_payload(channel_id, message, user_id=user_id))
        LOGGER.debug("Created post in %s", channel_id)
