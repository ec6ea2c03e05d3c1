"""
Pydantic models for Verdant API requests and responses.
This module defines the request and response schemas used by the session API.
"""

from typing import (
    Any,
    Dict,
    List,
    Optional,
)

from pydantic import (
    BaseModel,
    Field,
)

from verdant.core.schema import ToolExecution


# ---------------------------------------------------------------------------
# Pydantic request / response schema
# ---------------------------------------------------------------------------
class SessionResponse(BaseModel):
    """Response with session information."""

    session_id: str
    greeting: str = ""


class MessageRequest(BaseModel):
    """Incoming user message."""

    message: str = Field(..., description="What the user typed")
    session_id: Optional[str] = Field(None, description="Session ID for conversation context")


class InteractionRequest(BaseModel):
    """A gesture on a garden entity."""

    type: str = Field("click", description="Interaction type: click, dblclick, contextmenu...")
    target: str = Field(..., description="Entity reference, e.g. a flower id")
    session_id: Optional[str] = Field(None, description="Session ID for conversation context")
    position: Dict[str, float] = Field(default_factory=dict)


class StateRequest(BaseModel):
    """Partial world overlay merged without running a turn."""

    session_id: str
    state: Dict[str, Any] = Field(default_factory=dict)


class AgentResponse(BaseModel):
    """API response returned to the caller for one turn."""

    reply: str = ""
    tool_executions: List[ToolExecution] = Field(default_factory=list)
    should_continue: bool = True
    session_id: str
    debounced: bool = Field(False, description="True when the input was dropped as a repeat")
    user_prompt: Optional[str] = Field(None, description="Text to show for an interaction")


class GreetingResponse(BaseModel):
    session_id: str
    greeting: str


class StateResponse(BaseModel):
    session_id: str
    world_overlay: Dict[str, Any]
