from .actions import ActionResult, ChutesPlugin
from .formatting import format_error
from .intents import INTENTS, Intent, IntentMatch, match_intent, parse_gpu_requirements

__all__ = [
    "ActionResult",
    "ChutesPlugin",
    "INTENTS",
    "Intent",
    "IntentMatch",
    "format_error",
    "match_intent",
    "parse_gpu_requirements",
]
