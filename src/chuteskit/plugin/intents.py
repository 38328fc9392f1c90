"""Declarative intent table mapping chat text to plugin actions.

Intents are tried in table order; the first pattern that matches wins,
so more specific phrasings come first.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

_NAME = r"[\"']?(?P<{group}>[a-zA-Z0-9_-]+)[\"']?"


def _name(group: str) -> str:
    return _NAME.format(group=group)


@dataclass(frozen=True)
class Intent:
    """One action the plugin can perform, and how to recognise it."""

    name: str
    description: str
    pattern: re.Pattern[str]
    examples: Tuple[str, ...] = ()
    similes: Tuple[str, ...] = ()

    def match(self, text: str) -> Optional[Dict[str, str]]:
        """Return the named groups when ``text`` expresses this intent."""
        found = self.pattern.search(text)
        if found is None:
            return None
        return {k: v for k, v in found.groupdict().items() if v is not None}


@dataclass(frozen=True)
class IntentMatch:
    intent: Intent
    params: Dict[str, str]


INTENTS: Tuple[Intent, ...] = (
    Intent(
        name="execute_cord",
        description="Execute a cord function on a chute",
        pattern=re.compile(
            r"(?:execute|run|call|invoke)\s+" + _name("cord")
            + r"(?:\s+function)?\s+(?:on|in|for)\s+(?:chute\s+)?" + _name("chute")
            + r"\s+(?:with|using)\s+(?:params\s+)?(?P<params>\{.*\})",
            re.IGNORECASE | re.DOTALL,
        ),
        examples=(
            'Execute "generate" on chute abc-123 with params {"prompt": "Hello"}',
            'Call chat function on my-model with {"message": "What is AI?"}',
        ),
        similes=("run cord", "call function", "invoke cord"),
    ),
    Intent(
        name="deploy_chute",
        description="Deploy a new chute from an existing image",
        pattern=re.compile(
            r"deploy\s+(?:a\s+)?(?:new\s+)?(?:chute\s+)?" + _name("name")
            + r"\s+(?:from|with|using)\s+(?:image\s+)?" + _name("image"),
            re.IGNORECASE,
        ),
        examples=('Deploy chute "my-llm" from image abc-123 with 1 GPU with 24GB RAM',),
        similes=("create chute", "launch chute", "start chute"),
    ),
    Intent(
        name="list_cords",
        description="List all available cord functions for a specific chute",
        pattern=re.compile(
            r"(?:cords|functions)\s+(?:for|in|of)\s+(?:chute\s+)?" + _name("chute"),
            re.IGNORECASE,
        ),
        examples=("List cords for chute abc-123", "Show me functions in chute my-model"),
        similes=("show cords", "get cords", "list functions"),
    ),
    Intent(
        name="list_chutes",
        description="List all available chutes in your account",
        pattern=re.compile(
            r"\b(?:list|show|get|what are)\b(?:\s+(?:me|all|my))*\s+chutes\b",
            re.IGNORECASE,
        ),
        examples=("List all my chutes", "Show me my chutes"),
        similes=("show chutes", "get chutes", "list chutes"),
    ),
    Intent(
        name="get_chute",
        description="Get detailed information about a specific chute",
        pattern=re.compile(
            r"\bchute\s+(?:(?:details|info)\s+)?(?:(?:for|about|of)\s+)?" + _name("chute"),
            re.IGNORECASE,
        ),
        examples=("Get details for chute abc-123", "Show me info about chute my-model"),
        similes=("chute info", "chute details", "show chute"),
    ),
)

GPU_PATTERN = re.compile(
    r"with\s+(?P<count>\d+)\s+GPUs?\s+(?:with|having)\s+(?P<vram>\d+)\s*(?:GB|G)\s+"
    r"(?:RAM|VRAM|memory)",
    re.IGNORECASE,
)


def match_intent(text: str, intents: Sequence[Intent] = INTENTS) -> Optional[IntentMatch]:
    """Find the first intent expressed by ``text``."""
    if not text or not text.strip():
        return None
    for intent in intents:
        params = intent.match(text)
        if params is not None:
            return IntentMatch(intent=intent, params=params)
    return None


def parse_gpu_requirements(text: str, default_count: int = 1, default_vram: int = 24) -> Tuple[int, int]:
    """Extract ``(gpu_count, vram_gb)`` from phrases like "with 2 GPUs with 48GB VRAM"."""
    found = GPU_PATTERN.search(text)
    if found is None:
        return default_count, default_vram
    return int(found.group("count")), int(found.group("vram"))
