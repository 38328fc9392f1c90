"""Chat plugin routing free text to Chutes API actions.

Usage:
    plugin = ChutesPlugin(client)
    result = await plugin.handle("List all my chutes")
    print(result.response)
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Sequence

import structlog

from chuteskit.api.client import ChutesClient
from chuteskit.api.models import Chute, DeployChuteRequest, NodeSelector
from chuteskit.core.exceptions import ChutesError
from chuteskit.core.validation import is_uuid
from chuteskit.plugin.formatting import (
    format_chute_details,
    format_chute_list,
    format_cord_list,
    format_cord_result,
    format_deploy_result,
    format_error,
)
from chuteskit.plugin.intents import INTENTS, Intent, IntentMatch, match_intent, parse_gpu_requirements

log = structlog.get_logger()

State = Optional[Mapping[str, Any]]


@dataclass
class ActionResult:
    """Outcome of a plugin action.

    Attributes:
        success: Whether the action completed.
        response: Markdown text for the user.
        data: Structured payload behind the response, if any.
    """

    success: bool
    response: str
    data: Any = None


class ChutesPlugin:
    """Routes chat messages to Chutes API calls and renders the answers."""

    name = "chutes-api"
    description = "Interact with the Chutes API for deploying and managing chutes"

    def __init__(self, client: ChutesClient, intents: Sequence[Intent] = INTENTS) -> None:
        self._client = client
        self._intents = tuple(intents)
        self._handlers: Dict[str, Callable[[IntentMatch, str, State], Awaitable[ActionResult]]] = {
            "list_chutes": self._list_chutes,
            "get_chute": self._get_chute,
            "list_cords": self._list_cords,
            "execute_cord": self._execute_cord,
            "deploy_chute": self._deploy_chute,
        }

    @property
    def intents(self) -> tuple[Intent, ...]:
        return self._intents

    def match(self, text: str) -> Optional[IntentMatch]:
        return match_intent(text, self._intents)

    async def handle(self, text: str, state: State = None) -> ActionResult:
        """Run the action matching ``text``.

        Library errors become a failed ActionResult with a friendly
        message; anything else propagates.
        """
        matched = self.match(text)
        if matched is None:
            return ActionResult(
                success=False,
                response="Sorry, I didn't understand that Chutes request.",
            )

        action = matched.intent.name
        log.info("plugin_action_start", action=action, params=matched.params)
        try:
            result = await self._handlers[action](matched, text, state)
        except ChutesError as e:
            log.error("plugin_action_failed", action=action, error=str(e), **e.context)
            return ActionResult(success=False, response=format_error(e))
        log.info("plugin_action_complete", action=action, success=result.success)
        return result

    # Actions

    async def _list_chutes(self, matched: IntentMatch, text: str, state: State) -> ActionResult:
        chutes = await self._client.list_chutes()
        return ActionResult(success=True, response=format_chute_list(chutes), data=chutes)

    async def _get_chute(self, matched: IntentMatch, text: str, state: State) -> ActionResult:
        id_or_name = matched.params["chute"]
        if is_uuid(id_or_name):
            chute = await self._client.get_chute(id_or_name)
        else:
            chute = await self._find_chute(id_or_name)
            if chute is None:
                return _not_found(id_or_name)
        return ActionResult(success=True, response=format_chute_details(chute), data=chute)

    async def _list_cords(self, matched: IntentMatch, text: str, state: State) -> ActionResult:
        chute = await self._resolve_chute(matched.params["chute"])
        if chute is None:
            return _not_found(matched.params["chute"])
        cords = await self._client.list_cords(chute.id)
        return ActionResult(success=True, response=format_cord_list(chute.name, cords), data=cords)

    async def _execute_cord(self, matched: IntentMatch, text: str, state: State) -> ActionResult:
        try:
            params = json.loads(matched.params["params"])
        except json.JSONDecodeError:
            return ActionResult(
                success=False,
                response='Error: Invalid JSON parameters. For example: with {"prompt": "Hello"}',
            )
        if not isinstance(params, dict):
            return ActionResult(success=False, response="Error: Parameters must be a JSON object.")

        chute = await self._resolve_chute(matched.params["chute"])
        if chute is None:
            return _not_found(matched.params["chute"])

        cord_name = matched.params["cord"]
        output = await self._client.execute_cord(chute.id, cord_name, params)
        return ActionResult(
            success=True,
            response=format_cord_result(cord_name, chute.name, output),
            data=output,
        )

    async def _deploy_chute(self, matched: IntentMatch, text: str, state: State) -> ActionResult:
        gpu_count, vram = parse_gpu_requirements(text)
        image_id = await self._resolve_image_id(matched.params["image"])
        if image_id is None:
            return ActionResult(
                success=False,
                response=f"Error: Image \"{matched.params['image']}\" was not found.",
            )

        request = DeployChuteRequest(
            username=await self._username(state),
            name=matched.params["name"],
            image_id=image_id,
            node_selector=NodeSelector(gpu_count=gpu_count, min_vram_gb_per_gpu=vram),
        )
        log.info("deploy_chute", name=request.name, image_id=image_id, gpu_count=gpu_count)
        chute = await self._client.deploy_chute(request)
        return ActionResult(success=True, response=format_deploy_result(chute), data=chute)

    # Lookups

    async def _find_chute(self, name: str) -> Optional[Chute]:
        """Find a chute by name (case-insensitive) or id in the account listing."""
        wanted = name.lower()
        for chute in await self._client.list_chutes():
            if chute.name.lower() == wanted or chute.id == name:
                return chute
        return None

    async def _resolve_chute(self, id_or_name: str) -> Optional[Chute]:
        if is_uuid(id_or_name):
            return await self._client.get_chute(id_or_name)
        return await self._find_chute(id_or_name)

    async def _resolve_image_id(self, id_or_name: str) -> Optional[str]:
        if is_uuid(id_or_name):
            return id_or_name
        wanted = id_or_name.lower()
        for image in await self._client.list_images():
            if image.name.lower() == wanted or image.id == id_or_name:
                return image.id
        return None

    async def _username(self, state: State) -> str:
        if state and state.get("username"):
            return str(state["username"])
        user = await self._client.get_current_user()
        return str(user.get("username", "")) if isinstance(user, dict) else ""


def _not_found(id_or_name: str) -> ActionResult:
    return ActionResult(
        success=False,
        response=f"Error: No chute found with ID or name \"{id_or_name}\".",
    )
