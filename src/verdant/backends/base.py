"""
Backend interface for Verdant.

This module is the contract every model backend implements.  Backends are the only place that
*directly* talks to a language model; the orchestrator, skills and context stay model-agnostic.

Additional backends can be added by subclassing :class:`BaseBackend` and registering via
:func:`register_backend`.
"""

import logging
from abc import (
    ABC,
    abstractmethod,
)
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    List,
    Mapping,
    Sequence,
    Type,
)

from verdant.backends.parsing import parse_model_output
from verdant.config import settings
from verdant.core.schema import (
    ParsedResponse,
    ToolSpec,
)

logger = logging.getLogger(__name__)


class BackendError(RuntimeError):
    """Raised when a backend round trip fails (connection, status, or process error)."""


# ---------------------------------------------------------------------------
# Registry helpers
# ---------------------------------------------------------------------------
_BACKEND_REGISTRY: dict[str, Type["BaseBackend"]] = {}


def register_backend(name: str) -> Callable:
    """Decorator to register a backend class under *name*."""

    def wrapper(cls: Type["BaseBackend"]) -> Type["BaseBackend"]:
        _BACKEND_REGISTRY[name] = cls
        cls.name = name
        return cls

    return wrapper


def load_backend(name: str | None = None, **kwargs: Any) -> "BaseBackend":
    """
    Factory that returns an instantiated backend.

    Fallback order:
    1. *name* arg
    2. ``settings.BACKEND`` env option
    """

    target = name or settings.BACKEND
    cls = _BACKEND_REGISTRY.get(target.lower())
    if cls is None:
        raise ValueError(f"Backend '{target}' is not registered.")
    return cls(**kwargs)


def registered_backends() -> List[str]:
    return sorted(_BACKEND_REGISTRY)


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------
class BaseBackend(ABC):
    """Abstract backend: one round trip per :meth:`call`, best-effort :meth:`parse`."""

    name: ClassVar[str] = "base"

    # Bridge-style backends keep their own copy of the world and need it pushed every turn
    requires_state_push: ClassVar[bool] = False

    @abstractmethod
    async def call(
        self,
        messages: Sequence[Mapping[str, Any]],
        system_prompt: str,
        tools: Sequence[ToolSpec],
        extra: Mapping[str, Any] | None = None,
    ) -> Any:
        """
        Perform a single round trip and return the raw response.

        Raises
        ------
        BackendError
            On any transport failure: connection error, non-2xx status, non-zero exit.
        """

    def parse(self, raw: Any) -> ParsedResponse:
        """Extract text and tool calls from *raw*.  Never raises."""
        return parse_model_output(raw)

    async def push_state(self, state: Dict[str, Any]) -> None:
        """Send a compact world snapshot ahead of a call.  No-op unless overridden."""

    async def reset(self) -> None:
        """Forget any backend-side conversation state.  No-op unless overridden."""

    async def is_available(self) -> bool:
        return True
