"""
Best-effort parsing of raw backend responses into ``{text, tool_calls}``.

Raw shapes handled:

* ``{"output": [...]}``: hosted envelope; ``message`` items carry text parts, ``function_call``
  / ``tool_use`` items carry tool invocations.
* ``[...]``: an ordered list of typed items (``text``, ``tool_use``, ``function_call``).
* ``{"result": "..."}``: single-field result object.
* ``{"content": [...]}``: nested content list (or a scalar ``content``).
* ``"..."``: a bare string; JSON text is decoded and parsed again.

Anything else becomes the whole payload as literal text.  Parsing never raises.
"""

import json
import logging
from typing import (
    Any,
    Dict,
    List,
    Optional,
    Tuple,
)

from verdant.core.schema import (
    ParsedResponse,
    ToolCall,
)
from verdant.tools.action_blocks import extract_action_blocks

logger = logging.getLogger(__name__)

_TEXT_TYPES = {"text", "output_text", "input_text"}
_CALL_TYPES = {"tool_use", "function_call"}


# ---------------------------------------------------------------------------
# Small helpers
# ---------------------------------------------------------------------------
def _as_text(raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    try:
        return json.dumps(raw, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(raw)


def _tool_call(item: Dict[str, Any]) -> Optional[ToolCall]:
    """Build a ToolCall from a ``tool_use`` / ``function_call`` item, or None if unusable."""
    function = item.get("function") if isinstance(item.get("function"), dict) else {}
    name = item.get("name") or function.get("name")
    args: Any = item.get("arguments")
    if args is None:
        args = item.get("input")
    if args is None:
        args = function.get("arguments")
    if isinstance(args, str):
        try:
            args = json.loads(args) if args.strip() else {}
        except json.JSONDecodeError:
            logger.warning("Dropping tool call '%s' with undecodable arguments: %r", name, args)
            return None
    if not name or not isinstance(name, str):
        logger.warning("Dropping tool call without a name: %r", item)
        return None
    if not isinstance(args, dict):
        args = {}
    return ToolCall(name=name, arguments=args)


def _walk_items(items: List[Any]) -> Tuple[List[str], List[ToolCall]]:
    texts: List[str] = []
    calls: List[ToolCall] = []
    for item in items:
        if isinstance(item, str):
            texts.append(item)
            continue
        if not isinstance(item, dict):
            continue
        kind = item.get("type")
        if kind in _TEXT_TYPES and isinstance(item.get("text"), str):
            texts.append(item["text"])
        elif kind == "message":
            content = item.get("content")
            if isinstance(content, list):
                sub_texts, sub_calls = _walk_items(content)
                texts.append("".join(sub_texts))
                calls.extend(sub_calls)
            elif isinstance(content, str):
                texts.append(content)
        elif kind in _CALL_TYPES:
            call = _tool_call(item)
            if call is not None:
                calls.append(call)
    return texts, calls


def _structural_parse(raw: Any) -> Tuple[str, List[ToolCall]]:
    if isinstance(raw, str):
        stripped = raw.strip()
        if stripped[:1] in ("{", "["):
            try:
                decoded = json.loads(stripped)
            except json.JSONDecodeError:
                return raw, []
            return _structural_parse(decoded)
        return raw, []

    if isinstance(raw, list):
        texts, calls = _walk_items(raw)
        if raw and not texts and not calls:
            return _as_text(raw), []
        return "\n".join(t for t in texts if t), calls

    if isinstance(raw, dict):
        if isinstance(raw.get("output"), list):
            texts, calls = _walk_items(raw["output"])
            return "\n".join(t for t in texts if t), calls
        if raw.get("result") is not None:
            return _as_text(raw["result"]), []
        if "content" in raw:
            content = raw["content"]
            if isinstance(content, list):
                texts, calls = _walk_items(content)
                return "\n".join(t for t in texts if t), calls
            return _as_text(content), []

    return _as_text(raw), []


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------
def parse_model_output(raw: Any) -> ParsedResponse:
    """
    Parse *raw* into text and tool calls, then recover action blocks from the text.

    Calls recovered from action blocks are appended after the structurally parsed ones.
    """
    try:
        text, calls = _structural_parse(raw)
    except Exception:  # pylint: disable=broad-except
        logger.exception("Unexpected response shape, treating payload as text")
        text, calls = _as_text(raw), []

    recovered = extract_action_blocks(text)
    return ParsedResponse(text=recovered.clean_text, tool_calls=calls + recovered.tool_calls)
