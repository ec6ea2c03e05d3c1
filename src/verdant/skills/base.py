"""Skill base class: a pluggable provider of contextual tools."""

from abc import (
    ABC,
    abstractmethod,
)
from typing import (
    Any,
    Dict,
    List,
)

from verdant.agent.context import ConversationContext
from verdant.core.schema import (
    ToolResult,
    ToolSpec,
)


class BaseSkill(ABC):
    """
    A skill decides *whether* it participates in a turn, *which* tools it offers, and how to
    run them.

    ``execute`` must never raise for expected failures; it returns a ``ToolResult`` with
    ``success=False`` instead.
    """

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.description = description

    def is_available(self, context: ConversationContext) -> bool:
        """Whether this skill takes part in the current turn at all."""
        return True

    @abstractmethod
    def get_tools(self, context: ConversationContext) -> List[ToolSpec]:
        """Tools offered in *context*; may be empty even when available."""

    @abstractmethod
    async def execute(
        self, tool_name: str, args: Dict[str, Any], context: ConversationContext
    ) -> ToolResult:
        """Run *tool_name* with *args*."""

    def has_tool(self, tool_name: str, context: ConversationContext) -> bool:
        return any(tool.name == tool_name for tool in self.get_tools(context))

    def unknown_tool(self, tool_name: str) -> ToolResult:
        return ToolResult(success=False, message=f"unknown tool: {tool_name}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
