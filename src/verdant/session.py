"""
Conversation sessions.

A session owns everything one conversation mutates: its garden, context, agent and interaction
queue.  Two sessions never share a queue, so they never serialize against each other.
"""

import logging
import uuid
from typing import (
    Callable,
    Dict,
    List,
    Optional,
)

from verdant.agent.interaction_queue import InteractionQueue
from verdant.agent.interactions import InteractionRouter
from verdant.agent.orchestrator import GardenAgent
from verdant.agent.prompt_builder import AgentConfig
from verdant.backends import (
    BaseBackend,
    load_backend,
)
from verdant.config import (
    Settings,
    settings as default_settings,
)
from verdant.memory.turn_log import TurnLog
from verdant.skills import (
    GardenSkill,
    HarvestSkill,
    SkillRegistry,
)
from verdant.world.entities import (
    EntityResolver,
    garden_entity_resolver,
)
from verdant.world.garden import Garden
from verdant.world.state import GardenStateProvider

logger = logging.getLogger(__name__)

RESET_INTERACTION = "reset"


class Session:
    """All per-conversation objects, wired together."""

    def __init__(
        self,
        session_id: str,
        garden: Garden,
        state_provider: GardenStateProvider,
        registry: SkillRegistry,
        agent: GardenAgent,
        queue: InteractionQueue,
        resolver: EntityResolver,
    ):
        self.id = session_id
        self.garden = garden
        self.state_provider = state_provider
        self.registry = registry
        self.agent = agent
        self.queue = queue
        self.resolver = resolver
        self.router = InteractionRouter(agent, queue, resolver)

    async def reset(self) -> None:
        """
        Cancel waiting interactions and forget the conversation; the garden is kept.

        The reset itself goes through the queue, so a turn already in flight finishes before
        the context is cleared.
        """
        self.queue.clear()
        await self.queue.enqueue(RESET_INTERACTION, None, self._reset_agent, debounce=False)

    async def _reset_agent(self, _: None) -> None:
        await self.agent.reset()

    async def close(self) -> None:
        await self.queue.close()


def _backend_source(config: Settings) -> Callable[[], BaseBackend]:
    """Factory that picks up a changed ``BACKEND`` setting on the next turn."""
    cache: Dict[str, BaseBackend] = {}

    def current() -> BaseBackend:
        name = config.BACKEND.lower()
        if name not in cache:
            cache[name] = load_backend(name)
        return cache[name]

    return current


def create_session(
    config: Settings | None = None,
    backend: BaseBackend | Callable[[], BaseBackend] | None = None,
    garden: Optional[Garden] = None,
    session_id: Optional[str] = None,
) -> Session:
    """
    Build a fully wired :class:`Session`.

    Parameters
    ----------
    config : Settings, optional
        Settings to read sizes, persona and queue limits from (module settings by default).
    backend : BaseBackend | Callable[[], BaseBackend], optional
        Fixed backend or per-turn factory.  Defaults to the backend named by ``BACKEND``.
    garden : Garden, optional
        Pre-built garden, mostly for tests.
    """
    config = config or default_settings
    session_id = session_id or str(uuid.uuid4())

    garden = garden or Garden(
        cols=config.GARDEN_COLS,
        rows=config.GARDEN_ROWS,
        growth_seconds=config.GROWTH_SECONDS,
        gold_per_flower=config.GOLD_PER_FLOWER,
    )
    state_provider = GardenStateProvider(garden)

    registry = SkillRegistry()
    registry.register(GardenSkill(garden, state_provider))
    registry.register(HarvestSkill(garden))

    turn_log = None
    if config.TURN_LOG_PATH:
        turn_log = TurnLog(config.TURN_LOG_PATH)
        turn_log.init()

    agent = GardenAgent(
        AgentConfig(name=config.AGENT_NAME, personality=config.AGENT_PERSONALITY),
        registry,
        backend or _backend_source(config),
        state_provider=state_provider,
        turn_log=turn_log,
        session_id=session_id,
    )
    queue = InteractionQueue(
        debounce_seconds=config.QUEUE_DEBOUNCE_SECONDS,
        max_size=config.QUEUE_MAX_SIZE,
        timeout_seconds=config.QUEUE_TIMEOUT_SECONDS,
    )
    logger.info("Created session %s (%dx%d garden)", session_id, garden.grid.cols, garden.grid.rows)
    return Session(
        session_id,
        garden,
        state_provider,
        registry,
        agent,
        queue,
        garden_entity_resolver(garden),
    )


class SessionStore:
    """In-memory session storage keyed by id."""

    def __init__(self, factory: Callable[[], Session] | None = None):
        self._factory = factory or create_session
        self._sessions: Dict[str, Session] = {}

    def create(self) -> Session:
        session = self._factory()
        self._sessions[session.id] = session
        return session

    def get(self, session_id: Optional[str]) -> Optional[Session]:
        if not session_id:
            return None
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: Optional[str] = None) -> Session:
        return self.get(session_id) or self.create()

    def ids(self) -> List[str]:
        return list(self._sessions)

    async def close_all(self) -> None:
        for session in self._sessions.values():
            await session.close()
        self._sessions.clear()
