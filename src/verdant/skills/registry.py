"""
Skill registry for Verdant.

The registry aggregates the tools of every available skill into the per-turn tool list and
dispatches tool calls back to the skill that offered them.  It is an explicit instance handed to
the orchestrator, never a module-level global, so each session (and each test) gets its own.
"""

import logging
from typing import (
    Any,
    Dict,
    List,
    Optional,
)

from verdant.agent.context import ConversationContext
from verdant.core.schema import (
    ToolExecution,
    ToolResult,
    ToolSpec,
)
from verdant.skills.base import BaseSkill

logger = logging.getLogger(__name__)


class SkillRegistry:
    """Ordered collection of skills, keyed by name."""

    def __init__(self) -> None:
        self._skills: Dict[str, BaseSkill] = {}

    def register(self, skill: BaseSkill) -> None:
        """
        Register *skill* under ``skill.name``.

        Re-registering a name replaces the earlier skill but keeps its position.
        """
        if skill.name in self._skills:
            logger.debug("Replacing skill '%s'", skill.name)
        else:
            logger.debug("Registering skill '%s'", skill.name)
        self._skills[skill.name] = skill

    def unregister(self, name: str) -> None:
        self._skills.pop(name, None)

    def get(self, name: str) -> Optional[BaseSkill]:
        return self._skills.get(name)

    @property
    def skills(self) -> List[BaseSkill]:
        return list(self._skills.values())

    def clear(self) -> None:
        self._skills.clear()

    def _available(self, context: ConversationContext) -> List[BaseSkill]:
        return [skill for skill in self._skills.values() if skill.is_available(context)]

    def get_available_tools(self, context: ConversationContext) -> List[ToolSpec]:
        """Tools of every available skill, concatenated in registration order."""
        tools: List[ToolSpec] = []
        seen: set[str] = set()
        for skill in self._available(context):
            for tool in skill.get_tools(context):
                if tool.name in seen:
                    logger.warning(
                        "Tool '%s' from skill '%s' shadowed by an earlier skill",
                        tool.name,
                        skill.name,
                    )
                    continue
                seen.add(tool.name)
                tools.append(tool)
        return tools

    async def execute_tool(
        self, name: str, args: Dict[str, Any] | None, context: ConversationContext
    ) -> ToolExecution:
        """
        Dispatch *name* to the first available skill that offers it this turn.

        Always returns a :class:`ToolExecution`; an unknown tool, or one that is not on offer in
        *context*, yields a failed result with skill name ``"unknown"``.
        """
        if args is None:
            args = {}

        for skill in self._available(context):
            if not skill.has_tool(name, context):
                continue
            logger.debug("Executing tool '%s' via skill '%s' with args=%s", name, skill.name, args)
            try:
                result = await skill.execute(name, args, context)
            except Exception as exc:  # noqa: BLE001
                logger.exception("Unhandled error in tool '%s'", name)
                result = ToolResult(success=False, message=f"tool {name} raised an error: {exc}")
            return ToolExecution(
                skill_name=skill.name, tool_name=name, arguments=args, result=result
            )

        logger.warning("Tool '%s' is not offered in this context", name)
        return ToolExecution(
            skill_name="unknown",
            tool_name=name,
            arguments=args,
            result=ToolResult(success=False, message=f"tool not found: {name}"),
        )
