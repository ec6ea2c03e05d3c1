"""Route user text and entity gestures through the interaction queue into the agent."""

import asyncio
import inspect
import logging
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Union,
)

from verdant.agent.events import InteractionEvent
from verdant.agent.interaction_queue import InteractionQueue
from verdant.agent.orchestrator import GardenAgent
from verdant.core.schema import (
    AgentInput,
    AgentOutput,
)
from verdant.world.entities import EntityResolver

logger = logging.getLogger(__name__)

OutputListener = Callable[[AgentInput, AgentOutput], Union[None, Awaitable[None]]]

TEXT_INTERACTION = "text"


class InteractionRouter:
    """
    Front door for a session: every input becomes one queued agent turn.

    Listeners registered with :meth:`add_listener` are called with the input and output of every
    completed turn, in registration order.
    """

    def __init__(self, agent: GardenAgent, queue: InteractionQueue, resolver: EntityResolver):
        self.agent = agent
        self.queue = queue
        self.resolver = resolver
        self._listeners: List[OutputListener] = []

    def add_listener(self, listener: OutputListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: OutputListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def build_event(
        self, interaction_type: str, target: Any, position: Optional[Dict[str, float]] = None
    ) -> Optional[InteractionEvent]:
        """Resolve *target* into an event, or ``None`` when it should not reach the agent."""
        resolved = self.resolver.resolve(target)
        if resolved is None:
            logger.debug("No entity for target %r", target)
            return None
        entity_type, entity = resolved
        descriptor = self.resolver.describe(entity_type, entity)
        if descriptor is None:
            logger.debug("No descriptor for entity type '%s'", entity_type)
            return None
        event = InteractionEvent(
            type=interaction_type,
            entity=entity,
            entity_type=entity_type,
            descriptor=descriptor,
            position=position or {},
        )
        if not event.is_valid():
            logger.debug("'%s' is not a valid interaction on %s", interaction_type, entity_type)
            return None
        return event

    def handle_text(self, text: str) -> Optional["asyncio.Future[AgentOutput]"]:
        """Queue a plain-text turn; ``None`` means the input was debounced."""
        return self.queue.enqueue(TEXT_INTERACTION, AgentInput.text(text), self._run_turn)

    def handle_interaction(
        self, interaction_type: str, target: Any, position: Optional[Dict[str, float]] = None
    ) -> Optional["asyncio.Future[AgentOutput]"]:
        """
        Queue an interaction turn.

        Returns ``None`` when the target does not resolve, the interaction is not defined for
        the entity, or the request was debounced.
        """
        event = self.build_event(interaction_type, target, position)
        if event is None:
            return None
        return self.handle_event(event)

    def handle_event(self, event: InteractionEvent) -> Optional["asyncio.Future[AgentOutput]"]:
        """Queue an already resolved event; ``None`` means it was debounced."""
        return self.queue.enqueue(event.type, AgentInput.interaction(event), self._run_turn)

    async def _run_turn(self, agent_input: AgentInput) -> AgentOutput:
        output = await self.agent.process(agent_input)
        for listener in list(self._listeners):
            try:
                result = listener(agent_input, output)
                if inspect.isawaitable(result):
                    await result
            except Exception:  # noqa: BLE001
                logger.exception("Output listener %r failed", listener)
        return output
