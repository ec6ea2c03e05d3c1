"""Tests for the CLI client helpers."""

import json

import httpx

from verdant.client.cli import (
    call_api,
    print_turn,
)
from verdant.common import (
    AnsiColors,
    colored_print,
    colorize,
    status_color,
    use_color,
)


def test_call_api_posts_json() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"reply": "hi", "session_id": "s1"})

    result = call_api(
        "/agent",
        {"message": "hello"},
        base_url="http://api.test",
        transport=httpx.MockTransport(handler),
    )

    assert result == {"reply": "hi", "session_id": "s1"}
    assert seen == {"url": "http://api.test/agent", "body": {"message": "hello"}}


def test_call_api_surfaces_error_detail() -> None:
    transport = httpx.MockTransport(
        lambda r: httpx.Response(404, json={"detail": "Unknown session: s9"})
    )

    result = call_api("/state", {}, base_url="http://api.test", transport=transport)

    assert result["error"] is True
    assert result["reply"] == "API error: Unknown session: s9"


def test_print_turn(capsys) -> None:
    print_turn(
        {
            "reply": "Done!",
            "user_prompt": "Hi hi! Got a joke for me?",
            "tool_executions": [
                {"tool_name": "plant", "result": {"success": True, "message": "Planted 1"}}
            ],
        }
    )

    out = capsys.readouterr().out
    assert "Hi hi! Got a joke for me?" in out
    assert "[plant] Planted 1" in out
    assert "Done!" in out


def test_print_turn_debounced(capsys) -> None:
    print_turn({"debounced": True, "reply": ""})

    assert "repeated too quickly" in capsys.readouterr().out


def test_colorize_and_no_color(monkeypatch, capsys) -> None:
    assert colorize("hi", AnsiColors.RED) == "\033[91mhi\033[0m"
    assert colorize("hi", AnsiColors.RED, enabled=False) == "hi"
    assert status_color(False) is AnsiColors.RED

    monkeypatch.setenv("NO_COLOR", "1")
    assert use_color() is False
    colored_print("plain", AnsiColors.GREEN)
    assert capsys.readouterr().out == "plain\n"
