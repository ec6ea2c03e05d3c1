"""Conversation state: message log, focused entity and world overlay."""

import json
import logging
from typing import (
    Any,
    Dict,
    List,
    Optional,
)

from verdant.core.schema import (
    FocusedEntity,
    Message,
    Role,
)
from verdant.world.state import WorldSnapshot

logger = logging.getLogger(__name__)

# Roles the model API does not know; they are sent as user turns
_EXPORTED_AS_USER = {"interaction", "tool_result"}


class ConversationContext:
    """
    Append-only message log plus the two pieces of replace-in-place state.

    The world overlay (and the full snapshot) is session state, not conversational state, so it
    survives :meth:`reset`.
    """

    def __init__(self) -> None:
        self.messages: List[Message] = []
        self.focused_entity: Optional[FocusedEntity] = None
        self.mentioned_entities: Dict[str, FocusedEntity] = {}
        self.world_overlay: Dict[str, Any] = {"gold": 0, "flower_count": 0}
        self.world_snapshot: Optional[WorldSnapshot] = None

    # ------------------------------------------------------------------ #
    # Messages
    # ------------------------------------------------------------------ #
    def _append(self, role: Role, content: str, metadata: Dict[str, Any] | None) -> Message:
        message = Message(role=role, content=content, metadata=metadata or {})
        self.messages.append(message)
        return message

    def add_user_message(self, content: str, metadata: Dict[str, Any] | None = None) -> Message:
        return self._append("user", content, metadata)

    def add_assistant_message(
        self, content: str, metadata: Dict[str, Any] | None = None
    ) -> Message:
        return self._append("assistant", content, metadata)

    def add_interaction_message(
        self, content: str, metadata: Dict[str, Any] | None = None
    ) -> Message:
        return self._append("interaction", content, metadata)

    def add_tool_result_message(self, tool_name: str, result: Any) -> Message:
        if isinstance(result, str):
            text = result
        else:
            dumped = result.model_dump() if hasattr(result, "model_dump") else result
            text = json.dumps(dumped, ensure_ascii=False, indent=2, default=str)
            result = dumped
        return self._append(
            "tool_result",
            f"Result of tool {tool_name}:\n{text}",
            {"tool_name": tool_name, "result": result},
        )

    def to_api_messages(self) -> List[Dict[str, Any]]:
        """Export the log in model-API form; interaction and tool results become user turns."""
        return [
            {
                "role": "user" if msg.role in _EXPORTED_AS_USER else msg.role,
                "content": [{"type": "input_text", "text": msg.content}],
            }
            for msg in self.messages
        ]

    def recent_messages(self, limit: int = 20) -> List[Message]:
        return self.messages[-limit:] if limit > 0 else []

    def last_user_utterance(self) -> Optional[str]:
        """The most recent message the user actually typed."""
        for msg in reversed(self.messages):
            if msg.role == "user":
                return msg.content
        return None

    def last_interaction(self) -> Optional[Message]:
        for msg in reversed(self.messages):
            if msg.role == "interaction":
                return msg
        return None

    def turn_count(self) -> int:
        return sum(1 for m in self.messages if m.role in ("user", "interaction"))

    # ------------------------------------------------------------------ #
    # Focus and world state
    # ------------------------------------------------------------------ #
    def set_focused_entity(self, entity: Optional[FocusedEntity]) -> None:
        self.focused_entity = entity
        if entity is not None:
            self.mentioned_entities[entity.id] = entity

    def clear_focused_entity(self) -> None:
        self.focused_entity = None

    def update_world_overlay(self, partial: Dict[str, Any]) -> None:
        self.world_overlay = {**self.world_overlay, **partial}

    def update_world_snapshot(self, snapshot: Optional[WorldSnapshot]) -> None:
        self.world_snapshot = snapshot

    def summary(self) -> str:
        parts = [f"Garden gold: {self.world_overlay.get('gold') or 0}"]
        if self.focused_entity is not None:
            parts.append(f"\nFocused on: {self.focused_entity.name} ({self.focused_entity.type})")
            parts.append(f"Description: {self.focused_entity.description}")
        return "\n".join(parts)

    def reset(self) -> None:
        self.messages = []
        self.focused_entity = None
        self.mentioned_entities.clear()
