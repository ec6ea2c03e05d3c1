"""
Agent orchestrator for Verdant.

:class:`GardenAgent` drives one turn at a time: refresh world state, apply the input to the
conversation context, discover tools, build the prompt, call the backend, dispatch tool calls
in order and, when the model acted without saying anything, ask it once more for a text-only
reply.
"""

import logging
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    Union,
)

from verdant.agent import prompts
from verdant.agent.context import ConversationContext
from verdant.agent.prompt_builder import (
    AgentConfig,
    PromptBuilder,
)
from verdant.backends.base import (
    BackendError,
    BaseBackend,
)
from verdant.core.schema import (
    AgentInput,
    AgentOutput,
    FocusedEntity,
    ToolExecution,
    ToolSpec,
)
from verdant.memory.turn_log import TurnLog
from verdant.skills.registry import SkillRegistry
from verdant.world.state import GardenStateProvider

logger = logging.getLogger(__name__)

BackendSource = Union[BaseBackend, Callable[[], BaseBackend]]


class GardenAgent:
    """
    Single entry point for conversation turns.

    Parameters
    ----------
    config : AgentConfig
        Persona used in the identity section and the default greeting.
    skill_registry : SkillRegistry
        Registry the tools are discovered from and dispatched to.
    backend : BaseBackend | Callable[[], BaseBackend]
        Either a fixed backend or a zero-argument factory consulted once per turn, so the
        active backend can be switched between turns.
    state_provider : GardenStateProvider, optional
        Live world snapshots; without one the overlay only changes through
        :meth:`update_state` and skills.
    turn_log : TurnLog, optional
        Audit log each completed turn is appended to.
    """

    def __init__(
        self,
        config: AgentConfig,
        skill_registry: SkillRegistry,
        backend: BackendSource,
        state_provider: Optional[GardenStateProvider] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        turn_log: Optional[TurnLog] = None,
        session_id: Optional[str] = None,
    ):
        self.config = config
        self.skill_registry = skill_registry
        self._backend = backend
        self.state_provider = state_provider
        self.prompt_builder = prompt_builder or PromptBuilder(config)
        self.turn_log = turn_log
        self.session_id = session_id
        self._context = ConversationContext()

    @property
    def context(self) -> ConversationContext:
        return self._context

    def active_backend(self) -> BaseBackend:
        if isinstance(self._backend, BaseBackend):
            return self._backend
        return self._backend()

    # ------------------------------------------------------------------ #
    # Turn
    # ------------------------------------------------------------------ #
    async def process(self, agent_input: AgentInput) -> AgentOutput:
        """Run one complete turn for *agent_input*."""
        backend = self.active_backend()
        await self._refresh_world(backend)
        self._apply_input(agent_input)

        tools = self.skill_registry.get_available_tools(self._context)
        system_prompt = self.prompt_builder.build(self._context, tools)
        logger.debug("Turn with %d tools via backend '%s'", len(tools), backend.name)

        try:
            raw = await backend.call(
                self._context.to_api_messages(),
                system_prompt,
                tools,
                self._extra(agent_input),
            )
        except BackendError as exc:
            logger.error("Backend '%s' failed: %s", backend.name, exc)
            output = AgentOutput(
                text=prompts.AGENT_CONFUSED, tool_executions=[], should_continue=True
            )
            self._context.add_assistant_message(output.text)
            self._log_turn(agent_input, output)
            return output

        parsed = backend.parse(raw)
        if parsed.tool_calls:
            logger.info(
                "Backend returned %d tool calls: %s",
                len(parsed.tool_calls),
                [call.name for call in parsed.tool_calls],
            )

        executions: List[ToolExecution] = []
        for call in parsed.tool_calls:
            execution = await self.skill_registry.execute_tool(
                call.name, call.arguments, self._context
            )
            logger.info(
                "Tool '%s' returned success=%s: %s",
                call.name,
                execution.result.success,
                execution.result.message,
            )
            self._context.add_tool_result_message(call.name, execution.result)
            executions.append(execution)

        text = parsed.text.strip()
        if executions and not text:
            text = await self._follow_up(backend, agent_input)
        if not text:
            text = _first_success_message(executions)

        if text:
            self._context.add_assistant_message(text)
        output = AgentOutput(
            text=text, tool_executions=executions, should_continue=not executions
        )
        self._log_turn(agent_input, output)
        return output

    async def _follow_up(self, backend: BaseBackend, agent_input: AgentInput) -> str:
        """Ask for a text-only narration of what the tools just did."""
        tools = self.skill_registry.get_available_tools(self._context)
        system_prompt = self.prompt_builder.build(self._context, tools)
        no_tools: Sequence[ToolSpec] = []
        try:
            raw = await backend.call(
                self._context.to_api_messages(),
                system_prompt,
                no_tools,
                self._extra(agent_input),
            )
        except BackendError as exc:
            logger.warning("Follow-up call failed, falling back to tool results: %s", exc)
            return ""
        return backend.parse(raw).text.strip()

    async def _refresh_world(self, backend: BaseBackend) -> None:
        if self.state_provider is None:
            return
        snapshot = self.state_provider.get_snapshot()
        self._context.update_world_snapshot(snapshot)
        self._context.update_world_overlay(
            {
                "gold": snapshot.counters.get("gold", 0),
                "flower_count": snapshot.counters.get("flower_count", 0),
            }
        )
        if backend.requires_state_push:
            await backend.push_state(self._state_payload())

    def _state_payload(self) -> Dict[str, Any]:
        focused = self._context.focused_entity
        snapshot = self._context.world_snapshot
        varieties = self.state_provider.get_available_varieties() if self.state_provider else []
        return {
            "gold": self._context.world_overlay.get("gold") or 0,
            "world_snapshot": snapshot.model_dump() if snapshot is not None else None,
            "focused_entity": focused.model_dump() if focused is not None else None,
            "available_varieties": [v.model_dump() for v in varieties],
        }

    def _apply_input(self, agent_input: AgentInput) -> None:
        if agent_input.type == "text":
            self._context.add_user_message(agent_input.content or "")
            return

        event = agent_input.event
        self._context.set_focused_entity(event.focused_entity())
        self._context.add_interaction_message(
            event.to_agent_input(),
            {"interaction_type": event.type, "entity_id": event.entity_id},
        )

    def _extra(self, agent_input: AgentInput) -> Dict[str, Any]:
        focused = self._context.focused_entity
        extra: Dict[str, Any] = {
            "gold": self._context.world_overlay.get("gold") or 0,
            "focused_entity": focused.model_dump() if focused is not None else None,
            "world_overlay": dict(self._context.world_overlay),
        }
        if agent_input.type == "text":
            extra["utterance"] = agent_input.content or ""
        else:
            event = agent_input.event
            extra["utterance"] = event.to_agent_input()
            extra["interaction"] = {"type": event.type, "entity_id": event.entity_id}
        return extra

    def _log_turn(self, agent_input: AgentInput, output: AgentOutput) -> None:
        if self.turn_log is not None:
            self.turn_log.save_turn(self.session_id, agent_input, output)

    # ------------------------------------------------------------------ #
    # Out-of-turn operations
    # ------------------------------------------------------------------ #
    def update_state(self, partial: Dict[str, Any]) -> None:
        """Merge *partial* into the world overlay without running a turn."""
        self._context.update_world_overlay(partial)

    def get_greeting(self) -> str:
        focused = self._context.focused_entity
        if focused is not None and focused.custom_data.get("greeting"):
            return str(focused.custom_data["greeting"])
        return prompts.DEFAULT_GREETING.format(name=self.config.name)

    def set_focused_entity(self, entity: FocusedEntity) -> None:
        self._context.set_focused_entity(entity)

    def clear_focused_entity(self) -> None:
        self._context.clear_focused_entity()

    async def reset(self) -> None:
        """Forget the conversation here and on the backend."""
        self._context.reset()
        await self.active_backend().reset()


def _first_success_message(executions: Sequence[ToolExecution]) -> str:
    for execution in executions:
        if execution.result.success and execution.result.message:
            return execution.result.message
    return ""
