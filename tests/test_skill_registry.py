"""
Basic sanity tests for the skill registry.

Run with:
$ pytest -q
"""

from typing import (
    Any,
    Dict,
    List,
)

import pytest

from verdant.agent.context import ConversationContext
from verdant.core.schema import (
    ToolResult,
    ToolSpec,
)
from verdant.skills import (
    BaseSkill,
    SkillRegistry,
)


class AddSkill(BaseSkill):
    """Adds two numbers (used only for tests)."""

    def __init__(self, name: str = "math", available: bool = True, tool: str = "add"):
        super().__init__(name, "Arithmetic")
        self.available = available
        self.tool = tool

    def is_available(self, context: ConversationContext) -> bool:
        return self.available

    def get_tools(self, context: ConversationContext) -> List[ToolSpec]:
        return [ToolSpec(name=self.tool, description="Add a and b")]

    async def execute(
        self, tool_name: str, args: Dict[str, Any], context: ConversationContext
    ) -> ToolResult:
        if tool_name != self.tool:
            return self.unknown_tool(tool_name)
        return ToolResult(success=True, message=str(args["a"] + args["b"]), owner=self.name)


class ExplodingSkill(AddSkill):
    async def execute(
        self, tool_name: str, args: Dict[str, Any], context: ConversationContext
    ) -> ToolResult:
        raise RuntimeError("kaboom")


@pytest.mark.asyncio
async def test_execute_tool_success() -> None:
    """The registry should route the call and wrap the result."""

    reg = SkillRegistry()
    reg.register(AddSkill())

    execution = await reg.execute_tool("add", {"a": 2, "b": 3}, ConversationContext())

    assert execution.skill_name == "math"
    assert execution.tool_name == "add"
    assert execution.result.success is True
    assert execution.result.message == "5"


@pytest.mark.asyncio
async def test_execute_tool_missing() -> None:
    """An unknown tool is a structured failure, never an exception."""

    reg = SkillRegistry()
    reg.register(AddSkill())

    execution = await reg.execute_tool("not_a_tool", {}, ConversationContext())

    assert execution.skill_name == "unknown"
    assert execution.result.success is False
    assert "not_a_tool" in execution.result.message


@pytest.mark.asyncio
async def test_unavailable_skill_tools_are_not_dispatched() -> None:
    reg = SkillRegistry()
    reg.register(AddSkill(available=False))

    execution = await reg.execute_tool("add", {"a": 1, "b": 1}, ConversationContext())

    assert execution.result.success is False
    assert execution.skill_name == "unknown"


@pytest.mark.asyncio
async def test_skill_errors_become_failed_results() -> None:
    reg = SkillRegistry()
    reg.register(ExplodingSkill())

    execution = await reg.execute_tool("add", {"a": 1, "b": 1}, ConversationContext())

    assert execution.result.success is False
    assert "kaboom" in execution.result.message


@pytest.mark.asyncio
async def test_none_arguments_are_treated_as_empty() -> None:
    reg = SkillRegistry()
    reg.register(AddSkill(name="other", tool="noop"))

    execution = await reg.execute_tool("noop", None, ConversationContext())

    assert execution.arguments == {}


def test_tools_follow_registration_order_and_are_deterministic() -> None:
    reg = SkillRegistry()
    reg.register(AddSkill(name="first", tool="add"))
    reg.register(AddSkill(name="second", tool="sub"))
    ctx = ConversationContext()

    first = reg.get_available_tools(ctx)
    second = reg.get_available_tools(ctx)

    assert [t.name for t in first] == ["add", "sub"]
    assert first == second


@pytest.mark.asyncio
async def test_duplicate_tool_names_are_shadowed_by_earlier_skill() -> None:
    reg = SkillRegistry()
    reg.register(AddSkill(name="first"))
    reg.register(AddSkill(name="second"))
    ctx = ConversationContext()

    assert [t.name for t in reg.get_available_tools(ctx)] == ["add"]
    execution = await reg.execute_tool("add", {"a": 1, "b": 2}, ctx)
    assert execution.skill_name == "first"


def test_replacing_a_skill_keeps_its_position() -> None:
    reg = SkillRegistry()
    reg.register(AddSkill(name="a", tool="one"))
    reg.register(AddSkill(name="b", tool="two"))
    reg.register(AddSkill(name="a", tool="three"))

    assert [s.name for s in reg.skills] == ["a", "b"]
    assert [t.name for t in reg.get_available_tools(ConversationContext())] == ["three", "two"]

    reg.unregister("a")
    assert reg.get("a") is None
    reg.clear()
    assert reg.skills == []
