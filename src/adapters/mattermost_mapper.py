"""Mattermost-to-core payload mapping adapter.

This keeps the REST API's JSON field names out of the core filter.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from core.models import Channel, User


def channel_from_payload(payload: Mapping[str, Any]) -> Channel:
    return Channel(
        channel_id=str(payload["id"]),
        name=str(payload.get("name") or ""),
        display_name=str(payload.get("display_name") or ""),
    )


def user_from_payload(payload: Mapping[str, Any]) -> User:
    return User(user_id=str(payload["id"]), username=str(payload.get("username") or ""))


def post_to_payload(
    channel_id: str,
    message: str,
    user_id: Optional[str] = None,
    props: Optional[Mapping[str, Any]] = None,
) -> dict[str, Any]:
    """Return the JSON body for a post creation call."""

    payload: dict[str, Any] = {"channel_id": channel_id, "message": message}
    if user_id:
        payload["user_id"] = user_id
    if props:
        payload["props"] = dict(props)
    return payload
