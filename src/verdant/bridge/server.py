"""
Bridge server for Verdant.

Sits between the garden agent's ``bridge`` backend and the Claude CLI.  It keeps the most
recently pushed garden state and a short conversation history, renders both into a single
prompt, runs the CLI, and returns ``{text, toolCalls, raw}``.

Endpoints:
- **POST /api/chat**   - ``{message, context, interaction, history}`` -> ``{text, toolCalls, raw}``
- **POST /api/state**  - merge a garden state snapshot
- **POST /api/reset**  - forget the conversation history
- **GET  /api/health** - liveness probe
"""

import logging
import time
from typing import (
    Any,
    Dict,
    List,
    Mapping,
    Optional,
    Sequence,
)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)

from verdant.agent.prompts import AGENT_CONFUSED
from verdant.backends.bridge import message_text
from verdant.bridge.executor import (
    ClaudeExecutionError,
    ClaudeExecutor,
)
from verdant.common import (
    AnsiColors,
    colored_print,
)
from verdant.config import settings
from verdant.core.schema import ToolCall
from verdant.world.render import render_world_state

logger = logging.getLogger(__name__)

HISTORY_MAX = 20
PROMPT_HISTORY = 6

# Tools whose reason must be the user's own words
PINNED_REASON_TOOLS = {"harvest"}


# ---------------------------------------------------------------------------
# Pydantic request / response schema
# ---------------------------------------------------------------------------
class ChatRequest(BaseModel):
    message: str = ""
    context: Dict[str, Any] = Field(default_factory=dict)
    interaction: Optional[Dict[str, Any]] = None
    history: List[Dict[str, Any]] = Field(default_factory=list)


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str = ""
    tool_calls: List[ToolCall] = Field(default_factory=list, alias="toolCalls")
    raw: Any = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def pin_harvest_reason(tool_calls: Sequence[ToolCall], utterance: str) -> List[ToolCall]:
    """
    Overwrite ``arguments.reason`` of every harvest call with *utterance*.

    Harvest rules are checked against what the user actually said, never against the model's
    paraphrase of it.
    """
    pinned = []
    for call in tool_calls:
        if call.name in PINNED_REASON_TOOLS:
            call = call.model_copy(update={"arguments": {**call.arguments, "reason": utterance}})
        pinned.append(call)
    return pinned


def describe_interaction(interaction: Mapping[str, Any], message: str) -> str:
    verb = "clicked" if interaction.get("type") == "click" else "interacted with"
    target = interaction.get("entity_name") or interaction.get("entity_id") or "something"
    lines = [f"[The user {verb} {target}]"]
    if interaction.get("descriptor"):
        lines.append(f"Entity: {interaction['descriptor']}")
    if message:
        lines.append(f"The user says: {message}")
    return "\n".join(lines)


def build_prompt(
    state_prompt: str, user_message: str, history: Sequence[Mapping[str, str]]
) -> str:
    """Assemble the single prompt the CLI receives on stdin."""
    parts = [
        "IMPORTANT INSTRUCTIONS",
        "This is a plain text conversation. Reply with text only.",
        "Do not run code, read files or use any of your own tools.",
        "To act on the garden (plant, harvest...), end your reply with a ```action``` JSON block, "
        'for example ```action {"action": "plant", "varietyKey": "粉花"}```.',
        "",
        state_prompt,
        "",
    ]
    if history:
        parts.append("# Recent conversation")
        for msg in history:
            who = "User" if msg.get("role") == "user" else "You"
            parts.append(f"{who}: {msg.get('content', '')}")
        parts.append("")
    parts += [
        "# Current user message",
        user_message,
        "",
        "Reply in a friendly, playful way in under 50 words. "
        "Add an ```action``` JSON block at the end if something should happen.",
    ]
    return "\n".join(parts)


class BridgeState:
    """Pushed garden state plus the bridge-side conversation history."""

    def __init__(self) -> None:
        self.garden: Dict[str, Any] = {
            "gold": 0,
            "world_snapshot": None,
            "focused_entity": None,
            "available_varieties": [],
        }
        self.history: List[Dict[str, str]] = []

    def update(self, partial: Mapping[str, Any]) -> None:
        self.garden = {**self.garden, **partial}

    def remember(self, role: str, content: str) -> None:
        self.history.append({"role": role, "content": content})
        if len(self.history) > HISTORY_MAX:
            self.history = self.history[-HISTORY_MAX:]

    def reset(self) -> None:
        self.history = []


def _history_from_request(history: Sequence[Mapping[str, Any]]) -> List[Dict[str, str]]:
    return [
        {"role": str(msg.get("role", "user")), "content": message_text(msg)}
        for msg in history
        if message_text(msg)
    ]


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------
def create_app(executor: ClaudeExecutor | None = None) -> FastAPI:
    """Build a bridge app around *executor* (a fresh :class:`ClaudeExecutor` by default)."""
    executor = executor or ClaudeExecutor()
    state = BridgeState()

    bridge = FastAPI(title="Verdant Bridge", version="0.1.0")
    bridge.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    bridge.state.bridge = state

    @bridge.post("/api/state", summary="Merge pushed garden state")
    async def update_state(payload: Dict[str, Any]) -> dict[str, bool]:
        state.update(payload)
        snapshot = state.garden.get("world_snapshot") or {}
        logger.info(
            "State updated: gold=%s flowers=%s",
            state.garden.get("gold"),
            (snapshot.get("summary") or {}).get("total", 0),
        )
        return {"success": True}

    @bridge.post("/api/chat", response_model=ChatResponse, summary="Run one model turn")
    async def chat(req: ChatRequest):
        full_state = {**state.garden, **req.context}
        user_message = (
            describe_interaction(req.interaction, req.message) if req.interaction else req.message
        )
        recent = (
            _history_from_request(req.history)[-PROMPT_HISTORY:-1]
            or state.history[-(PROMPT_HISTORY - 1) :]
        )
        prompt = build_prompt(render_world_state(full_state), user_message, recent)
        state.remember("user", user_message)

        logger.info("Calling model for: %s", user_message[:100])
        try:
            result = await executor.execute(prompt)
        except ClaudeExecutionError as exc:
            logger.error("Chat failed: %s", exc)
            return JSONResponse(
                status_code=500, content={"error": str(exc), "text": AGENT_CONFUSED}
            )

        tool_calls = pin_harvest_reason(result.tool_calls, req.message or user_message)
        logger.info("Model replied with %d tool calls", len(tool_calls))
        if result.text:
            state.remember("assistant", result.text)
        return ChatResponse(text=result.text, tool_calls=tool_calls, raw=result.raw)

    @bridge.post("/api/reset", summary="Clear conversation history")
    async def reset() -> dict[str, bool]:
        state.reset()
        logger.info("Conversation reset")
        return {"success": True}

    @bridge.get("/api/health", summary="Health check")
    async def health() -> dict[str, Any]:
        return {"status": "ok", "timestamp": time.time()}

    return bridge


app = create_app()


# ---------------------------------------------------------------------------
# Public helper to launch the bridge (imported by main.py)
# ---------------------------------------------------------------------------
def run_bridge(
    host: str = "0.0.0.0", port: int | None = None, log_level: str | None = None
) -> None:
    """Start a uvicorn server hosting the bridge *app*."""
    import uvicorn  # pylint: disable=import-outside-toplevel

    port = port or settings.BRIDGE_PORT
    log_level = log_level or settings.LOG_LEVEL
    logger.info("Starting Verdant bridge at %s:%d", host, port)
    colored_print(f"🌱 Verdant bridge is running at http://localhost:{port}.", AnsiColors.GREEN)
    uvicorn.run("verdant.bridge.server:app", host=host, port=port, log_level=log_level)


if __name__ == "__main__":
    run_bridge()
