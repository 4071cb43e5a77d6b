"""Decode planner JSON output into a typed action list."""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any

from pydantic import BaseModel, Field

from phonepilot.errors import ActionDecodeWarning, MalformedResponseError
from phonepilot.models import (
    AIAction,
    Click,
    Error,
    GoBack,
    GoHome,
    LongClick,
    OpenApp,
    OpenRecents,
    Scroll,
    ScrollDirection,
    Speak,
    TaskComplete,
    TypeText,
    Wait,
)

logger = logging.getLogger(__name__)

DEFAULT_WAIT_MS = 1000

_FENCE_OPEN = re.compile(r"^```[a-zA-Z]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```\s*$")


class DecodedPlan(BaseModel):
    """Planner output after decoding: the model's reasoning and its actions."""

    thinking: str | None = None
    actions: list[AIAction] = Field(default_factory=list)
    # One message per dropped action item
    warnings: list[str] = Field(default_factory=list)


def _strip_fences(text: str) -> str:
    """Remove surrounding whitespace and any leading or trailing markdown fence."""
    cleaned = _FENCE_OPEN.sub("", text.strip())
    cleaned = _FENCE_CLOSE.sub("", cleaned)
    return cleaned.strip()


def _number(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    # json accepts NaN, Infinity and 1e400; none of them is a usable number
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return int(value)


def _string(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _pointer_target(params: dict[str, Any]) -> dict[str, Any]:
    return {
        "element_id": _string(params.get("element_id")),
        "x": _number(params.get("x")),
        "y": _number(params.get("y")),
    }


def _require(params: dict[str, Any], key: str, action_type: str) -> str:
    value = _string(params.get(key))
    if value is None:
        raise ActionDecodeWarning(f"{action_type}: missing required param '{key}'")
    return value


def _scroll_direction(value: Any) -> ScrollDirection:
    try:
        return ScrollDirection(str(value).lower())
    except ValueError:
        return ScrollDirection.DOWN


def _parse_action(item: Any) -> AIAction:
    """Build one action from a raw item. Raises ActionDecodeWarning if it must be dropped."""
    if not isinstance(item, dict):
        raise ActionDecodeWarning(f"Action item is not an object: {item!r}")
    raw_type = item.get("type")
    if not isinstance(raw_type, str):
        raise ActionDecodeWarning(f"Action item has no type: {item!r}")
    params = item.get("params")
    if not isinstance(params, dict):
        params = {}

    action_type = raw_type.strip().lower()
    if action_type == "click":
        return Click(**_pointer_target(params))
    if action_type == "long_click":
        return LongClick(**_pointer_target(params))
    if action_type == "type_text":
        return TypeText(
            text=_require(params, "text", action_type),
            element_id=_string(params.get("element_id")),
        )
    if action_type == "scroll":
        return Scroll(direction=_scroll_direction(params.get("direction")))
    if action_type == "open_app":
        return OpenApp(package_name=_require(params, "package", action_type))
    if action_type == "back":
        return GoBack()
    if action_type == "home":
        return GoHome()
    if action_type == "recents":
        return OpenRecents()
    if action_type == "wait":
        ms = _number(params.get("ms"))
        return Wait(milliseconds=DEFAULT_WAIT_MS if ms is None else max(0, ms))
    if action_type == "speak":
        return Speak(message=_require(params, "message", action_type))
    if action_type == "complete":
        return TaskComplete()
    if action_type == "error":
        message = _string(params.get("message"))
        return Error(message="Unknown error" if message is None else message)
    raise ActionDecodeWarning(f"Unknown action type: {raw_type}")


def decode_plan(raw_text: str) -> DecodedPlan:
    """
    Parse planner output into a DecodedPlan.

    The envelope must be a JSON object with an ``actions`` list, optionally
    wrapped in a code fence; anything else raises MalformedResponseError.
    Individual items that cannot be built are dropped with a warning and
    the remaining items are still decoded, in their original order.
    """
    cleaned = _strip_fences(raw_text or "")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Planner output is not valid JSON: {e.msg}") from e
    if not isinstance(data, dict):
        raise MalformedResponseError("Planner output is not a JSON object")
    items = data.get("actions")
    if not isinstance(items, list):
        raise MalformedResponseError("Planner output has no 'actions' list")

    thinking = data.get("thinking")
    plan = DecodedPlan(thinking=thinking if isinstance(thinking, str) else None)
    for position, item in enumerate(items):
        try:
            plan.actions.append(_parse_action(item))
        except ActionDecodeWarning as w:
            logger.warning("Dropped planner action: %s", w, extra={"position": position})
            plan.warnings.append(str(w))
    return plan


def decode_actions(raw_text: str) -> list[AIAction]:
    """Decode planner output and return only the action list."""
    return decode_plan(raw_text).actions
