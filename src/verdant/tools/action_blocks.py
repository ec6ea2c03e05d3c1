"""
Recovery of tool calls embedded in free-form model text.

Backends that cannot emit structured tool calls are told to append a fenced block such as

    ```action
    {"action": "plant", "flower": {"color": "pink"}}
    ```

to their reply.  :func:`extract_action_blocks` strips every such block out of the visible text,
decodes it, and normalises the model's vocabulary so the rest of the system only ever sees
canonical tool names and argument keys.
"""

import json
import logging
import re
from typing import (
    Any,
    Callable,
    Dict,
    List,
)

from pydantic import (
    BaseModel,
    Field,
)

from verdant.core.schema import ToolCall

logger = logging.getLogger(__name__)

ACTION_BLOCK_PATTERN = re.compile(r"```action\s*([\s\S]*?)```")

DEFAULT_HARVEST_REASON = "the user met the harvest condition"

# English / abbreviated names -> canonical catalog keys
VARIETY_SYNONYMS: Dict[str, str] = {
    "pink": "粉花",
    "purple": "紫花",
    "violet": "紫花",
    "red": "红花",
    "yellow": "黄花",
    "blue": "蓝花",
    "autumn": "秋花",
    "tree": "小树",
    "sapling": "小树",
    "cherry": "粉树",
    "粉花": "粉花",
    "紫花": "紫花",
    "红花": "红花",
    "黄花": "黄花",
    "蓝花": "蓝花",
    "秋花": "秋花",
    "小树": "小树",
    "粉树": "粉树",
}


class ActionBlockResult(BaseModel):
    """Visible text with action blocks removed, plus the calls they encoded."""

    clean_text: str = ""
    tool_calls: List[ToolCall] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------
def normalize_variety(value: Any) -> Any:
    """Map a colour or abbreviated flower name onto a catalog key; unknown values pass through."""
    if not isinstance(value, str):
        return value
    return VARIETY_SYNONYMS.get(value.strip().lower(), VARIETY_SYNONYMS.get(value, value))


def _normalize_plant(args: Dict[str, Any]) -> None:
    flower = args.get("flower")
    if isinstance(flower, dict):
        raw = flower.get("color") or flower.get("type")
        if raw:
            args["varietyKey"] = normalize_variety(raw)
        args.pop("flower")
    elif isinstance(flower, str) and "varietyKey" not in args:
        args["varietyKey"] = normalize_variety(args.pop("flower"))

    if args.get("flowerType"):
        args["varietyKey"] = normalize_variety(args.pop("flowerType"))
    if args.get("item") and not args.get("varietyKey"):
        args["varietyKey"] = normalize_variety(args.pop("item"))
    if "varietyKey" in args:
        args["varietyKey"] = normalize_variety(args["varietyKey"])

    if args.get("count") is None:
        args["count"] = 1

    args.pop("position", None)
    args.pop("note", None)


def _normalize_harvest(args: Dict[str, Any]) -> None:
    if not args.get("reason") and args.get("message"):
        args["reason"] = args.pop("message")
    if not args.get("reason"):
        args["reason"] = DEFAULT_HARVEST_REASON
    args.pop("target", None)


_NORMALIZERS: Dict[str, Callable[[Dict[str, Any]], None]] = {
    "plant": _normalize_plant,
    "harvest": _normalize_harvest,
}


def normalize_action_args(tool_name: str, args: Dict[str, Any]) -> Dict[str, Any]:
    """Canonicalise *args* in place for *tool_name* and return them."""
    normalizer = _NORMALIZERS.get(tool_name)
    if normalizer is not None:
        normalizer(args)
    return args


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------
def extract_action_blocks(text: str) -> ActionBlockResult:
    """
    Pull every ```action``` block out of *text*.

    Each block is removed from the visible text whether or not it decodes.  A block that is not
    a JSON object, or that names no tool through ``action`` or ``type``, is logged and dropped
    without affecting the others.
    """
    calls: List[ToolCall] = []

    def _consume(match: re.Match) -> str:
        body = match.group(1).strip()
        try:
            payload = json.loads(body)
        except json.JSONDecodeError as exc:
            logger.warning("Discarding malformed action block (%s): %r", exc, body)
            return ""
        if not isinstance(payload, dict):
            logger.warning("Discarding non-object action block: %r", body)
            return ""

        tool_name = payload.pop("action", None) or payload.pop("type", None)
        payload.pop("action", None)
        payload.pop("type", None)
        if not tool_name or not isinstance(tool_name, str):
            logger.warning("Discarding action block without a tool name: %r", body)
            return ""

        calls.append(ToolCall(name=tool_name, arguments=normalize_action_args(tool_name, payload)))
        return ""

    clean_text = ACTION_BLOCK_PATTERN.sub(_consume, text or "").strip()
    if calls:
        logger.debug("Recovered %d tool calls from action blocks: %s", len(calls), calls)
    return ActionBlockResult(clean_text=clean_text, tool_calls=calls)
