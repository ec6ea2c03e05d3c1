"""Tests for the HTTP backends against httpx.MockTransport."""

import json

import httpx
import pytest

from verdant.backends import (
    BackendError,
    BridgeBackend,
    HostedBackend,
    load_backend,
    registered_backends,
)
from verdant.core.schema import (
    AgentInput,
    ToolSpec,
)

MESSAGES = [{"role": "user", "content": [{"type": "input_text", "text": "plant a rose"}]}]
TOOLS = [ToolSpec(name="plant", description="Plant flowers")]


def test_registry_knows_builtin_backends() -> None:
    assert {"hosted", "bridge"} <= set(registered_backends())
    assert isinstance(load_backend("hosted"), HostedBackend)
    assert isinstance(load_backend("BRIDGE"), BridgeBackend)
    with pytest.raises(ValueError):
        load_backend("carrier-pigeon")


# ---------------------------------------------------------------------------
# Hosted
# ---------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_hosted_posts_prompt_tools_and_history() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"output": [{"type": "output_text", "text": "ok"}]})

    backend = HostedBackend(
        url="https://model.test/v1/responses",
        token="secret",
        model="tiny",
        transport=httpx.MockTransport(handler),
    )
    raw = await backend.call(MESSAGES, "be nice", TOOLS)

    assert seen["auth"] == "Bearer secret"
    assert seen["body"]["model"] == "tiny"
    assert seen["body"]["instructions"] == "be nice"
    assert seen["body"]["input"] == MESSAGES
    assert seen["body"]["tools"][0]["name"] == "plant"
    assert backend.parse(raw).text == "ok"


@pytest.mark.asyncio
async def test_hosted_error_status_raises_backend_error() -> None:
    backend = HostedBackend(
        url="https://model.test/v1/responses",
        transport=httpx.MockTransport(lambda r: httpx.Response(503, text="overloaded")),
    )

    with pytest.raises(BackendError, match="503"):
        await backend.call(MESSAGES, "", [])


@pytest.mark.asyncio
async def test_hosted_retries_connection_errors() -> None:
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) == 1:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200, json={"result": "back"})

    backend = HostedBackend(
        url="https://model.test/v1/responses",
        max_retries=1,
        transport=httpx.MockTransport(handler),
    )

    raw = await backend.call(MESSAGES, "", [])

    assert len(attempts) == 2
    assert raw == {"result": "back"}


@pytest.mark.asyncio
async def test_hosted_gives_up_after_retries() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    backend = HostedBackend(
        url="https://model.test/v1/responses", max_retries=0, transport=httpx.MockTransport(handler)
    )

    with pytest.raises(BackendError):
        await backend.call(MESSAGES, "", [])


@pytest.mark.asyncio
async def test_hosted_non_json_body_is_returned_as_text() -> None:
    backend = HostedBackend(
        url="https://model.test/v1/responses",
        transport=httpx.MockTransport(lambda r: httpx.Response(200, text="plain words")),
    )

    raw = await backend.call(MESSAGES, "", [])

    assert raw == "plain words"
    assert backend.parse(raw).text == "plain words"


# ---------------------------------------------------------------------------
# Bridge
# ---------------------------------------------------------------------------
def _bridge(handler) -> BridgeBackend:
    return BridgeBackend(
        base_url="http://bridge.test", history_limit=2, transport=httpx.MockTransport(handler)
    )


@pytest.mark.asyncio
async def test_bridge_chat_request_and_reply_shape() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "text": "Here you go",
                "toolCalls": [{"name": "harvest", "arguments": {"reason": "knock knock"}}],
                "raw": "...",
            },
        )

    backend = _bridge(handler)
    history = MESSAGES * 3
    raw = await backend.call(
        history,
        "ignored",
        TOOLS,
        {"utterance": "knock knock", "interaction": {"type": "click"}, "gold": 5},
    )
    parsed = backend.parse(raw)

    assert seen["path"] == "/api/chat"
    assert seen["body"]["message"] == "knock knock"
    assert seen["body"]["interaction"] == {"type": "click"}
    assert seen["body"]["context"] == {"gold": 5}
    assert len(seen["body"]["history"]) == 2
    assert parsed.text == "Here you go"
    assert [(c.name, c.arguments) for c in parsed.tool_calls] == [
        ("harvest", {"reason": "knock knock"})
    ]


@pytest.mark.asyncio
async def test_bridge_falls_back_to_last_user_message() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"text": "hi"})

    await _bridge(handler).call(MESSAGES, "", [])

    assert seen["body"]["message"] == "plant a rose"
    assert seen["body"]["interaction"] is None


@pytest.mark.asyncio
async def test_bridge_server_error_raises_backend_error() -> None:
    backend = _bridge(lambda r: httpx.Response(500, json={"text": "distracted"}))

    with pytest.raises(BackendError):
        await backend.call(MESSAGES, "", [])


@pytest.mark.asyncio
async def test_bridge_push_state_reset_and_health() -> None:
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append((request.method, request.url.path, request.content))
        return httpx.Response(200, json={"success": True})

    backend = _bridge(handler)
    await backend.push_state({"gold": 3})
    await backend.reset()
    assert await backend.is_available() is True

    assert [(m, p) for m, p, _ in requests] == [
        ("POST", "/api/state"),
        ("POST", "/api/reset"),
        ("GET", "/api/health"),
    ]
    assert json.loads(requests[0][2]) == {"gold": 3}


@pytest.mark.asyncio
async def test_bridge_side_channels_swallow_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    backend = _bridge(handler)

    await backend.push_state({"gold": 1})
    await backend.reset()
    assert await backend.is_available() is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reply,text",
    [
        ([], ""),
        ("just words", "just words"),
        ({"text": "hi", "toolCalls": ["plant", {"name": "query_garden"}]}, "hi"),
        ({"text": "hi", "toolCalls": "plant"}, "hi"),
    ],
)
async def test_malformed_bridge_reply_never_breaks_a_turn(make_agent, reply, text) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/chat":
            return httpx.Response(200, json=reply)
        return httpx.Response(200, json={"success": True})

    backend = _bridge(handler)
    output = await make_agent(backend).process(AgentInput.text("hello"))

    assert output.text.startswith(text)
    assert all(e.tool_name == "query_garden" for e in output.tool_executions)
