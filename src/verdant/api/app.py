"""
Session API for Verdant.

Every session owns its own garden, agent and interaction queue; all turns of one session go
through that queue.  It exposes the following endpoints:
- **GET /health**  - liveness probe for health checks.
- **POST /sessions** - create a new session, returns a session ID and greeting.
- **GET /sessions** - list all active sessions.
- **POST /agent**   - text turn: {"message": "...", "session_id": "..."}
- **POST /interactions** - interaction turn: {"type": "click", "target": "<flower id>", ...}
- **POST /state**   - merge a partial world overlay without a turn.
- **GET /sessions/{id}/greeting**, **GET /sessions/{id}/garden**, **POST /sessions/{id}/reset**
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import (
    AsyncIterator,
    List,
    Optional,
)

from fastapi import (
    FastAPI,
    HTTPException,
)
from fastapi.middleware.cors import CORSMiddleware

from verdant.agent.interaction_queue import (
    InteractionCancelled,
    InteractionDropped,
    InteractionTimeout,
)
from verdant.api.models import (
    AgentResponse,
    GreetingResponse,
    InteractionRequest,
    MessageRequest,
    SessionResponse,
    StateRequest,
    StateResponse,
)
from verdant.common import (
    AnsiColors,
    colored_print,
)
from verdant.config import settings
from verdant.core.schema import AgentOutput
from verdant.session import (
    Session,
    SessionStore,
)
from verdant.world.state import WorldSnapshot

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------
async def await_turn(
    future: Optional["asyncio.Future[AgentOutput]"],
    session: Session,
    user_prompt: str | None = None,
) -> AgentResponse:
    """Wait for a queued turn and map queue rejections onto HTTP errors."""
    if future is None:
        return AgentResponse(session_id=session.id, debounced=True, user_prompt=user_prompt)
    try:
        output = await future
    except (InteractionDropped, InteractionCancelled) as exc:
        logger.info("Turn for session %s not run: %s", session.id, exc)
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except InteractionTimeout as exc:
        logger.warning("Turn for session %s timed out: %s", session.id, exc)
        raise HTTPException(status_code=504, detail=str(exc)) from exc

    return AgentResponse(
        reply=output.text,
        tool_executions=output.tool_executions,
        should_continue=output.should_continue,
        session_id=session.id,
        user_prompt=user_prompt,
    )


def create_app(store: SessionStore | None = None) -> FastAPI:
    """Build the session API around *store* (an empty in-memory store by default)."""
    sessions = store or SessionStore()

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        await sessions.close_all()

    api = FastAPI(
        title="Verdant API",
        version="0.1.0",
        description="Verdant garden agent API",
        lifespan=lifespan,
    )
    api.add_middleware(
        CORSMiddleware,
        allow_origins=[f"http://localhost:{settings.API_PORT}"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    api.state.sessions = sessions

    def require_session(session_id: str) -> Session:
        session = sessions.get(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
        return session

    # -----------------------------------------------------------------------
    # Routes
    # -----------------------------------------------------------------------
    @api.get("/health", summary="Health check")
    async def health() -> dict[str, str]:
        """Return a simple liveness payload."""
        return {"status": "ok"}

    @api.post("/sessions", response_model=SessionResponse, summary="Create a new session")
    async def create_session() -> SessionResponse:
        session = sessions.create()
        return SessionResponse(session_id=session.id, greeting=session.agent.get_greeting())

    @api.get("/sessions", response_model=List[str], summary="List active sessions")
    async def list_sessions() -> List[str]:
        return sessions.ids()

    @api.post("/agent", response_model=AgentResponse, summary="Process a message")
    async def agent_endpoint(req: MessageRequest) -> AgentResponse:
        """Run a text turn through the session's queue."""
        session = sessions.get_or_create(req.session_id)
        logger.debug("Text turn for session %s: %s", session.id, req.message)
        return await await_turn(session.router.handle_text(req.message), session)

    @api.post("/interactions", response_model=AgentResponse, summary="Process an interaction")
    async def interaction_endpoint(req: InteractionRequest) -> AgentResponse:
        """Resolve the target and run an interaction turn through the session's queue."""
        session = sessions.get_or_create(req.session_id)
        event = session.router.build_event(req.type, req.target, req.position)
        if event is None:
            raise HTTPException(
                status_code=404, detail=f"Nothing to {req.type} at target {req.target}"
            )
        return await await_turn(session.router.handle_event(event), session, event.user_prompt())

    @api.post("/state", response_model=StateResponse, summary="Merge world state")
    async def state_endpoint(req: StateRequest) -> StateResponse:
        session = require_session(req.session_id)
        session.agent.update_state(req.state)
        return StateResponse(
            session_id=session.id, world_overlay=session.agent.context.world_overlay
        )

    @api.get("/sessions/{session_id}/greeting", response_model=GreetingResponse)
    async def greeting(session_id: str) -> GreetingResponse:
        session = require_session(session_id)
        return GreetingResponse(session_id=session.id, greeting=session.agent.get_greeting())

    @api.get("/sessions/{session_id}/garden", response_model=WorldSnapshot)
    async def garden(session_id: str) -> WorldSnapshot:
        return require_session(session_id).state_provider.get_snapshot()

    @api.post("/sessions/{session_id}/reset", summary="Reset the conversation")
    async def reset_session(session_id: str) -> dict[str, str]:
        session = require_session(session_id)
        try:
            await session.reset()
        except InteractionTimeout as exc:
            logger.warning("Reset for session %s timed out: %s", session.id, exc)
            raise HTTPException(status_code=504, detail=str(exc)) from exc
        return {"status": "reset", "session_id": session.id}

    @api.get("/", summary="API root")
    async def root() -> dict[str, str]:
        """Return a simple welcome message."""
        return {"message": "Welcome to the Verdant API! Use /docs for API documentation."}

    return api


app = create_app()


# ---------------------------------------------------------------------------
# Public helper to launch the API (imported by main.py)
# ---------------------------------------------------------------------------
def run_api(
    host: str = "0.0.0.0", port: int = 8000, reload: bool = False, log_level: str | None = None
) -> None:
    """Start a uvicorn server hosting *app*.

    Parameters
    ----------
    host, port:
        Bind address for the HTTP server.
    reload:
        If *True*, enable auto-reload (useful in development).
    log_level:
        Logging level to use (default from settings if not provided).
    """

    # Lazy import - keeps uvicorn an optional dependency at pkg-import time
    import uvicorn  # pylint: disable=import-outside-toplevel

    if log_level is None:  # Use the default from settings if not provided
        log_level = settings.LOG_LEVEL

    logger.info(
        "Starting Verdant API at %s:%d (reload=%s, log_level=%s, backend=%s)",
        host,
        port,
        reload,
        log_level,
        settings.BACKEND,
    )
    logger.debug("API settings: %s", settings.model_dump())

    colored_print(f"🌱 Verdant API is running at http://localhost:{port}.", AnsiColors.GREEN)
    colored_print(f"Visit http://localhost:{port}/docs for API documentation.", AnsiColors.BLUE)
    uvicorn.run(
        "verdant.api.app:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


# ---------------------------------------------------------------------------
# `python -m verdant.api.app` helper
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    run_api(reload=True)
