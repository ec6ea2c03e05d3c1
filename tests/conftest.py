"""Shared fixtures: an instantly maturing garden and a scripted backend."""

import json
from typing import (
    Any,
    Dict,
    List,
    Mapping,
    Sequence,
)

import pytest

from verdant.agent.orchestrator import GardenAgent
from verdant.agent.prompt_builder import AgentConfig
from verdant.backends.base import BaseBackend
from verdant.core.schema import ToolSpec
from verdant.skills import (
    GardenSkill,
    HarvestSkill,
    SkillRegistry,
)
from verdant.world.garden import Garden
from verdant.world.state import GardenStateProvider


class ScriptedBackend(BaseBackend):
    """Replays canned raw responses; an exception in the script is raised instead."""

    name = "scripted"

    def __init__(self, responses: Sequence[Any] = (), requires_state_push: bool = False):
        self.responses: List[Any] = list(responses)
        self.calls: List[Dict[str, Any]] = []
        self.pushed: List[Dict[str, Any]] = []
        self.resets = 0
        self.requires_state_push = requires_state_push

    async def call(
        self,
        messages: Sequence[Mapping[str, Any]],
        system_prompt: str,
        tools: Sequence[ToolSpec],
        extra: Mapping[str, Any] | None = None,
    ) -> Any:
        self.calls.append(
            {
                "messages": list(messages),
                "system_prompt": system_prompt,
                "tools": [t.name for t in tools],
                "extra": dict(extra or {}),
            }
        )
        response = self.responses.pop(0) if self.responses else ""
        if isinstance(response, BaseException):
            raise response
        return response

    async def push_state(self, state: Dict[str, Any]) -> None:
        self.pushed.append(state)

    async def reset(self) -> None:
        self.resets += 1


def function_call(name: str, **arguments: Any) -> Dict[str, Any]:
    """A hosted-style ``function_call`` output item."""
    return {"type": "function_call", "name": name, "arguments": json.dumps(arguments)}


def hosted_reply(text: str = "", *calls: Dict[str, Any]) -> Dict[str, Any]:
    """A hosted-style response envelope with optional text and tool calls."""
    output: List[Dict[str, Any]] = []
    if text:
        output.append(
            {"type": "message", "content": [{"type": "output_text", "text": text}]}
        )
    output.extend(calls)
    return {"output": output}


@pytest.fixture
def garden() -> Garden:
    """3x2 garden whose flowers are harvestable as soon as they are planted."""
    return Garden(cols=3, rows=2, growth_seconds=0)


@pytest.fixture
def growing_garden() -> Garden:
    """Garden whose flowers never mature during a test."""
    return Garden(cols=3, rows=2, growth_seconds=3600)


@pytest.fixture
def registry(garden: Garden) -> SkillRegistry:
    reg = SkillRegistry()
    reg.register(GardenSkill(garden))
    reg.register(HarvestSkill(garden))
    return reg


@pytest.fixture
def make_agent(garden: Garden, registry: SkillRegistry):
    """Factory for a GardenAgent wired to *garden* and a scripted backend."""

    def _make(backend: BaseBackend, **kwargs: Any) -> GardenAgent:
        return GardenAgent(
            AgentConfig(name="Moss", personality="Gentle and curious."),
            registry,
            backend,
            state_provider=GardenStateProvider(garden),
            **kwargs,
        )

    return _make
