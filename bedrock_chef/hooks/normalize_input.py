"""Input normalization for resolver events.

Handles the shapes an invocation can arrive in:
1. AppSync resolver event: {"arguments": {"ingredients": [...]}, ...}
2. The same event JSON-encoded as a string (local invokes, queued payloads)
3. A bare list of ingredients (query.py, tests)

Result: the raw, unsanitized ingredient sequence. Sanitizing is left to
GenerateRecipeRequest so there is exactly one filtering rule.
"""

import json
from typing import Any

from bedrock_chef.utils.logger import logger


def normalize_event(event: Any) -> list:
    """Extract the raw ingredient list from a resolver event.

    Args:
        event: Resolver event as a mapping, JSON string, or a bare list.

    Returns:
        The raw ingredients list, or [] if none can be found. Never raises.
    """
    if isinstance(event, (list, tuple)):
        logger.debug("Detected: bare ingredient list")
        return list(event)

    if isinstance(event, (str, bytes)):
        try:
            event = json.loads(event)
            logger.debug("Detected: JSON-encoded event")
        except (json.JSONDecodeError, ValueError, TypeError):
            logger.warning("Event is a string but not JSON, ignoring it")
            return []
        if isinstance(event, list):
            return event

    if not isinstance(event, dict):
        logger.warning(f"Unsupported event type: {type(event).__name__}")
        return []

    arguments = event.get("arguments") or {}
    ingredients = arguments.get("ingredients") if isinstance(arguments, dict) else None
    if not isinstance(ingredients, list):
        logger.debug("Event carries no ingredients list")
        return []
    return ingredients
