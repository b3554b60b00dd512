"""Response body decoding and rendering.

Bodies are parsed as JSON when they parse, whatever the Content-Type, and
fall back to text otherwise. Rendering turns the decoded value back into a
single printable string.
"""

from __future__ import annotations

import codecs
import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from leakyloop.poller.http_client import PollResponse


def _resolve_charset(charset: str | None) -> str:
    """Return a usable codec name, falling back to utf-8 for unknown charsets."""
    if not charset:
        return "utf-8"
    try:
        return codecs.lookup(charset).name
    except LookupError:
        return "utf-8"


def decode_payload(response: PollResponse) -> Any:
    """Decode a response body into a JSON value or text.

    Args:
        response: A fully read response.

    Returns:
        The parsed JSON value, or the body as text when it is not JSON.
    """
    text = response.body.decode(_resolve_charset(response.charset), errors="replace")
    if not text.strip():
        return text
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def render_payload(payload: Any) -> str:
    """Render a decoded payload as one output string.

    Text is returned unchanged; any other JSON value is dumped compactly,
    so ``{"title":"X"}`` renders as ``{"title":"X"}``.
    """
    if isinstance(payload, str):
        return payload
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
