"""
Schema definitions for backend <-> orchestrator <-> skill messages.

These data models serve as the contract between the model backends, the orchestration loop, and
individual skills.  We keep them separate from runtime logic so they can be imported anywhere
without side-effects.
"""

import time
from typing import (
    Any,
    Dict,
    List,
    Literal,
    Optional,
)

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)

Role = Literal["user", "assistant", "system", "interaction", "tool_result"]


class Message(BaseModel):
    """One entry of the conversation log."""

    role: Role
    content: str
    timestamp: float = Field(default_factory=time.time)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class FocusedEntity(BaseModel):
    """The world object currently under conversational attention."""

    id: str
    type: str
    name: str
    description: str = ""
    state: Dict[str, Any] = Field(default_factory=dict, description="Opaque entity snapshot")
    custom_data: Dict[str, Any] = Field(default_factory=dict)


class ToolSpec(BaseModel):
    """Declarative, backend-agnostic description of a tool."""

    name: str = Field(..., description="Tool name, unique within one turn")
    description: str = ""
    parameter_schema: Dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )

    def to_api(self) -> Dict[str, Any]:
        """Render as a function-tool definition."""
        return {
            "type": "function",
            "name": self.name,
            "description": self.description,
            "parameters": self.parameter_schema,
        }


class ToolCall(BaseModel):
    """A call that the backend wants the orchestrator to execute."""

    name: str = Field(..., description="Tool name")
    arguments: Dict[str, Any] = Field(default_factory=dict, description="Untyped argument bag")


class ToolResult(BaseModel):
    """Outcome of one tool execution.  Extra fields are carried through untouched."""

    model_config = ConfigDict(extra="allow")

    success: bool
    message: str = ""


class ToolExecution(BaseModel):
    """Record of one dispatched tool call."""

    skill_name: str
    tool_name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    result: ToolResult


class ParsedResponse(BaseModel):
    """Text and tool calls extracted from a raw backend response."""

    text: str = ""
    tool_calls: List[ToolCall] = Field(default_factory=list)


class AgentOutput(BaseModel):
    """The unit returned per turn."""

    text: str = ""
    tool_executions: List[ToolExecution] = Field(default_factory=list)
    should_continue: bool = True


class AgentInput(BaseModel):
    """
    Input for one turn: either plain text or an interaction event.

    ``event`` is an :class:`verdant.agent.events.InteractionEvent`; it is typed loosely so
    the schema module stays free of runtime imports.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: Literal["text", "interaction"]
    content: Optional[str] = None
    event: Optional[Any] = None

    @model_validator(mode="after")
    def _check_payload(self) -> "AgentInput":
        if self.type == "text" and self.content is None:
            raise ValueError("text input requires content")
        if self.type == "interaction" and self.event is None:
            raise ValueError("interaction input requires an event")
        return self

    @classmethod
    def text(cls, content: str) -> "AgentInput":
        """Shortcut for a plain-text input."""
        return cls(type="text", content=content)

    @classmethod
    def interaction(cls, event: Any) -> "AgentInput":
        """Shortcut for an interaction-event input."""
        return cls(type="interaction", event=event)
