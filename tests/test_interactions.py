"""Tests for interaction events and the session router."""

import pytest
from conftest import (
    ScriptedBackend,
    hosted_reply,
)

from verdant.agent.events import InteractionEvent
from verdant.agent.interaction_queue import InteractionQueue
from verdant.agent.interactions import InteractionRouter
from verdant.world.entities import (
    EntityDescriptor,
    InteractionDefinition,
    garden_entity_resolver,
)
from verdant.world.garden import Garden


def _router(garden: Garden, agent) -> InteractionRouter:
    queue = InteractionQueue(debounce_seconds=0, max_size=5, timeout_seconds=5)
    return InteractionRouter(agent, queue, garden_entity_resolver(garden))


def test_event_rendering() -> None:
    descriptor = EntityDescriptor(
        type="flower",
        name="Sunny",
        description="A yellow flower",
        interactions={
            "click": InteractionDefinition(
                action="try to pick", condition="when mature", user_prompt="Tell me a joke!"
            ),
            "drag": None,
        },
    )
    click = InteractionEvent(
        type="click", entity={"id": "f1"}, entity_type="flower", descriptor=descriptor
    )
    drag = click.model_copy(update={"type": "drag"})

    assert click.is_valid()
    assert not drag.is_valid()
    assert click.to_agent_input().splitlines() == [
        "The user clicked Sunny.",
        "Entity description: A yellow flower",
        "Interaction: try to pick",
        "Condition: when mature",
    ]
    assert drag.to_agent_input() == "The user dragged Sunny."
    assert click.user_prompt() == "Tell me a joke!"
    assert drag.user_prompt() == "You dragged Sunny"
    assert click.focused_entity().id == "f1"


def test_unresolvable_or_undefined_interactions_are_not_routed(
    growing_garden: Garden, make_agent
) -> None:
    backend = ScriptedBackend()
    router = _router(growing_garden, make_agent(backend))
    fid = growing_garden.plant(0, 0, "黄花").payload["flowers"][0]

    assert router.handle_interaction("click", "flower_missing") is None
    # immature flowers define no context menu
    assert router.handle_interaction("contextmenu", fid) is None
    assert router.handle_interaction("drag", fid) is None
    assert backend.calls == []


@pytest.mark.asyncio
async def test_click_runs_a_turn_and_notifies_listeners(garden: Garden, make_agent) -> None:
    backend = ScriptedBackend([hosted_reply("Tell me a joke!")])
    agent = make_agent(backend)
    router = _router(garden, agent)
    seen = []

    async def on_output(agent_input, output) -> None:
        seen.append((agent_input.type, output.text))

    router.add_listener(on_output)
    fid = garden.plant(0, 0, "黄花").payload["flowers"][0]

    output = await router.handle_interaction("click", fid)

    assert output.text == "Tell me a joke!"
    assert agent.context.focused_entity.id == fid
    assert seen == [("interaction", "Tell me a joke!")]


@pytest.mark.asyncio
async def test_text_goes_through_the_queue(make_agent, garden: Garden) -> None:
    backend = ScriptedBackend([hosted_reply("one"), hosted_reply("two")])
    router = _router(garden, make_agent(backend))

    first = router.handle_text("a")
    second = router.handle_text("b")

    assert (await first).text == "one"
    assert (await second).text == "two"
    assert [c["extra"]["utterance"] for c in backend.calls] == ["a", "b"]


@pytest.mark.asyncio
async def test_failing_listener_does_not_break_the_turn(make_agent, garden: Garden) -> None:
    router = _router(garden, make_agent(ScriptedBackend([hosted_reply("hi")])))

    def broken(*_) -> None:
        raise RuntimeError("listener bug")

    router.add_listener(broken)
    output = await router.handle_text("hello")

    assert output.text == "hi"
    router.remove_listener(broken)
