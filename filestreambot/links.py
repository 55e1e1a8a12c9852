"""Replies and stream links that the bot sends back to users."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from .media import MessageMediaDocument, MessageMediaPhoto, contains

START_TEXT = "Hi, send me any file to get a direct streamble link to that file."
NOT_ALLOWED_TEXT = "You are not allowed to use this bot."
UNSUPPORTED_TEXT = "Sorry, this message type is unsupported."

_STREAMABLE_KINDS = ("video", "audio", "pdf")


@dataclass(frozen=True)
class Button:
    """An inline keyboard button that opens a URL."""

    text: str
    url: str


def is_allowed(user_id: int, allowed_users: Sequence[int]) -> bool:
    """An empty allow-list lets everyone in."""
    return not allowed_users or contains(allowed_users, user_id)


def start_reply(user_id: int, allowed_users: Sequence[int]) -> str:
    """Return the answer to the start command."""
    return START_TEXT if is_allowed(user_id, allowed_users) else NOT_ALLOWED_TEXT


def is_supported_media(media: Any) -> bool:
    """Only documents and photos can be streamed."""
    return isinstance(media, (MessageMediaDocument, MessageMediaPhoto))


def build_stream_link(host: str, message_id: int, short_hash: str) -> str:
    return f"{host}/stream/{message_id}?hash={short_hash}"


def build_buttons(link: str, mime_type: str) -> list[Button]:
    """A download button, plus a stream button for playable or viewable files."""
    buttons = [Button("Download", link + "&d=true")]
    if any(kind in mime_type for kind in _STREAMABLE_KINDS):
        buttons.append(Button("Stream", link))
    return buttons