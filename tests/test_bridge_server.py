"""Tests for the bridge server and the CLI executor."""

import sys
import textwrap
from typing import List

import pytest
from fastapi.testclient import TestClient

from verdant.agent.prompts import AGENT_CONFUSED
from verdant.backends.parsing import parse_model_output
from verdant.bridge.executor import (
    ClaudeExecutionError,
    ClaudeExecutor,
    ClaudeResult,
)
from verdant.bridge.server import (
    build_prompt,
    create_app,
    pin_harvest_reason,
)
from verdant.core.schema import ToolCall


class FakeExecutor:
    """Records prompts and replies with canned CLI output."""

    def __init__(self, *replies: str, error: Exception | None = None):
        self.replies = list(replies)
        self.prompts: List[str] = []
        self.error = error

    async def execute(self, prompt: str) -> ClaudeResult:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        raw = self.replies.pop(0) if self.replies else ""
        parsed = parse_model_output(raw)
        return ClaudeResult(text=parsed.text, tool_calls=parsed.tool_calls, raw=raw)


def test_pin_harvest_reason_only_touches_harvest() -> None:
    calls = [
        ToolCall(name="harvest", arguments={"reason": "paraphrase", "flowerId": "f1"}),
        ToolCall(name="plant", arguments={"varietyKey": "粉花"}),
    ]

    pinned = pin_harvest_reason(calls, "what the user said")

    assert pinned[0].arguments == {"reason": "what the user said", "flowerId": "f1"}
    assert pinned[1].arguments == {"varietyKey": "粉花"}
    assert calls[0].arguments["reason"] == "paraphrase"


def test_build_prompt_includes_history_and_message() -> None:
    prompt = build_prompt(
        "# Garden state\nGold: 3",
        "plant something",
        [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}],
    )

    assert "Gold: 3" in prompt
    assert "User: hi" in prompt
    assert "You: hello" in prompt
    assert prompt.index("# Current user message") < prompt.index("plant something")


def test_chat_pins_reason_from_action_block() -> None:
    reply = 'Fine, fine!\n```action\n{"action": "harvest", "reason": "a joke"}\n```'
    executor = FakeExecutor(reply)

    with TestClient(create_app(executor)) as client:
        resp = client.post("/api/chat", json={"message": "Why did the bee marry? Honey!"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["text"] == "Fine, fine!"
    assert body["toolCalls"] == [
        {"name": "harvest", "arguments": {"reason": "Why did the bee marry? Honey!"}}
    ]


def test_chat_pins_reason_from_structured_calls() -> None:
    reply = (
        '[{"type": "text", "text": "ok"}, '
        '{"type": "tool_use", "name": "harvest", "input": {"reason": "nope"}}]'
    )

    with TestClient(create_app(FakeExecutor(reply))) as client:
        body = client.post("/api/chat", json={"message": "knock knock"}).json()

    assert body["toolCalls"][0]["arguments"]["reason"] == "knock knock"


def test_pushed_state_reaches_the_prompt() -> None:
    executor = FakeExecutor("hello")

    with TestClient(create_app(executor)) as client:
        client.post(
            "/api/state",
            json={
                "gold": 42,
                "available_varieties": [{"key": "粉花", "display_name": "Pink"}],
            },
        )
        client.post(
            "/api/chat",
            json={"message": "hi", "interaction": {"type": "click", "entity_name": "Sunny"}},
        )

    prompt = executor.prompts[0]
    assert "Gold: 42" in prompt
    assert "- 粉花: Pink" in prompt
    assert "[The user clicked Sunny]" in prompt
    assert "The user says: hi" in prompt


def test_chat_failure_returns_confused_text() -> None:
    executor = FakeExecutor(error=ClaudeExecutionError("claude exited with code 1"))

    with TestClient(create_app(executor)) as client:
        resp = client.post("/api/chat", json={"message": "hi"})

    assert resp.status_code == 500
    assert resp.json()["text"] == AGENT_CONFUSED


def test_history_reset_and_health() -> None:
    app = create_app(FakeExecutor("one", "two"))

    with TestClient(app) as client:
        client.post("/api/chat", json={"message": "first"})
        client.post("/api/chat", json={"message": "second"})
        assert [m["content"] for m in app.state.bridge.history] == [
            "first",
            "one",
            "second",
            "two",
        ]

        assert client.post("/api/reset").json() == {"success": True}
        assert app.state.bridge.history == []
        assert client.get("/api/health").json()["status"] == "ok"


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------
def _script(tmp_path, body: str) -> str:
    path = tmp_path / "fake_claude.py"
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    return f"{sys.executable} {path}"


def test_executor_argv() -> None:
    executor = ClaudeExecutor(command="claude --model tiny")

    assert executor.argv() == ["claude", "--model", "tiny", "-p", "--output-format", "json"]


@pytest.mark.asyncio
async def test_executor_feeds_prompt_on_stdin(tmp_path) -> None:
    command = _script(
        tmp_path,
        """
        import json, sys
        prompt = sys.stdin.read()
        print(json.dumps({"result": "echo: " + prompt}))
        """,
    )

    result = await ClaudeExecutor(command=command, timeout=10).execute("hello there")

    assert result.text == "echo: hello there"
    assert "echo: hello there" in result.raw


@pytest.mark.asyncio
async def test_executor_nonzero_exit_without_output(tmp_path) -> None:
    command = _script(
        tmp_path,
        """
        import sys
        sys.stderr.write("not logged in")
        sys.exit(3)
        """,
    )

    with pytest.raises(ClaudeExecutionError, match="code 3"):
        await ClaudeExecutor(command=command, timeout=10).execute("hi")


@pytest.mark.asyncio
async def test_executor_missing_command(tmp_path) -> None:
    executor = ClaudeExecutor(command=str(tmp_path / "no-such-claude"), timeout=10)

    with pytest.raises(ClaudeExecutionError, match="could not start"):
        await executor.execute("hi")


@pytest.mark.asyncio
async def test_executor_timeout(tmp_path) -> None:
    command = _script(
        tmp_path,
        """
        import time
        time.sleep(5)
        """,
    )

    with pytest.raises(ClaudeExecutionError, match="timed out"):
        await ClaudeExecutor(command=command, timeout=0.2).execute("hi")
