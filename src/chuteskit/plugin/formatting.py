"""Markdown rendering for chat responses."""

from __future__ import annotations

import json
from typing import Any, Iterable, Optional

from chuteskit.api.models import Chute, Cord
from chuteskit.core.exceptions import (
    AuthenticationError,
    ChutesAPIError,
    ChutesError,
    ErrorKind,
    InputValidationError,
    RateLimitExceeded,
    RequestError,
)

RESULT_TEXT_KEYS = ("text", "message", "content", "response")


def format_chute_list(chutes: Iterable[Chute]) -> str:
    chutes = list(chutes)
    if not chutes:
        return "You don't have any chutes deployed yet."

    lines = [f"Found {len(chutes)} chute(s):", ""]
    for index, chute in enumerate(chutes, start=1):
        lines.append(f"{index}. **{chute.name}** (ID: {chute.id})")
        lines.append(f"   Status: {chute.status}")
        lines.append(f"   Created: {chute.created_at}")
    return "\n".join(lines)


def format_chute_details(chute: Chute) -> str:
    lines = [
        f"**Chute: {chute.name}**",
        "",
        f"- ID: {chute.id}",
        f"- Owner: {chute.username}",
        f"- Status: {chute.status}",
        f"- Image: {chute.image_id}",
        f"- Public: {'Yes' if chute.public else 'No'}",
        f"- Created: {chute.created_at}",
    ]
    if chute.node_selector is not None:
        selector = chute.node_selector
        lines.append(
            f"- GPUs: {selector.gpu_count} x {selector.min_vram_gb_per_gpu}GB VRAM"
        )
    if chute.readme:
        lines.extend(["", chute.readme])
    return "\n".join(lines)


def format_cord_list(chute_name: str, cords: Iterable[Cord]) -> str:
    cords = list(cords)
    if not cords:
        return f"Chute **{chute_name}** doesn't expose any cords."

    lines = [f"Cords for chute **{chute_name}**:", ""]
    for cord in cords:
        line = f"- **{cord.name}**"
        if cord.description:
            line += f": {cord.description}"
        lines.append(line)
    return "\n".join(lines)


def format_cord_result(cord_name: str, chute_name: str, result: Any) -> str:
    """Render a cord result, preferring a plain text field over raw JSON."""
    header = f"Result of **{cord_name}** on chute **{chute_name}**:"
    text = _result_text(result)
    if text is not None:
        return f"{header}\n\n{text}"
    body = json.dumps(result, indent=2, default=str)
    return f"{header}\n\n```json\n{body}\n```"


def format_deploy_result(chute: Chute) -> str:
    return (
        f"Deployment of chute **{chute.name}** started.\n\n"
        f"- ID: {chute.id}\n"
        f"- Status: {chute.status}"
    )


def format_error(error: ChutesError) -> str:
    """Turn an exception into a user-facing message.

    The branch is chosen from the exception type and its classified
    ``kind``/``status``, never from the message text.
    """
    kind: Optional[ErrorKind] = None
    status: Optional[int] = None
    if isinstance(error, (ChutesAPIError, RequestError)):
        kind = error.kind
        status = error.status

    if isinstance(error, AuthenticationError):
        message = "Authentication failed. Please check your API key and permissions."
    elif kind == ErrorKind.TIMEOUT:
        message = "The request timed out. The Chutes API may be busy, please try again later."
    elif status == 404:
        message = "The requested resource was not found. Please verify the chute ID or name."
    elif kind == ErrorKind.NETWORK:
        message = "Cannot connect to the Chutes API. Please check your network connection."
    elif isinstance(error, RateLimitExceeded):
        message = "Too many requests. Please wait a moment and try again."
    elif isinstance(error, InputValidationError):
        message = f"Invalid input: {error.message}"
    else:
        message = error.message
    return f"Error: {message}"


def _result_text(result: Any) -> Optional[str]:
    if isinstance(result, str):
        return result
    if isinstance(result, dict):
        for key in RESULT_TEXT_KEYS:
            value = result.get(key)
            if isinstance(value, str):
                return value
    return None
