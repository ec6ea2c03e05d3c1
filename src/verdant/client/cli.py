"""CLI client for the Verdant session API."""

from __future__ import annotations

import logging
import time
from typing import (
    Any,
    Dict,
    Tuple,
    cast,
)

import httpx

from verdant.common import (
    AnsiColors,
    colored_print,
    status_color,
)
from verdant.config import settings

logger = logging.getLogger(__name__)

HELP = (
    "Commands: /click <flower_id>  /garden  /reset  /help  (exit or quit to leave)\n"
    "Anything else is sent to the garden spirit."
)


# ---------------------------------------------------------------------------
# CLI Client
# ---------------------------------------------------------------------------
def get_user_message() -> Tuple[str, bool]:
    """
    Get a message from the user via standard input.

    Returns:
        Tuple of (user_input, success_flag)
        The success_flag is False if input couldn't be read (e.g., Ctrl+C)
    """
    import signal  # pylint: disable=import-outside-toplevel

    # Ensure SIGINT breaks out of slow system calls such as read()
    signal.siginterrupt(signal.SIGINT, True)

    try:
        user_input = input().strip()
        return user_input, True
    except (EOFError, KeyboardInterrupt):
        return "", False


def call_api(
    endpoint: str,
    data: Dict[str, Any] | None = None,
    method: str = "POST",
    max_retries: int = 5,
    base_url: str | None = None,
    transport: httpx.BaseTransport | None = None,
) -> Dict[str, Any]:
    """Call the API and return the JSON response, retrying while the server starts up."""
    api_url = f"{base_url or f'http://localhost:{settings.API_PORT}'}{endpoint}"

    for attempt in range(max_retries):
        response = None
        try:
            with httpx.Client(timeout=60.0, transport=transport) as client:
                if method == "GET":
                    response = client.get(api_url)
                else:
                    response = client.post(api_url, json=data or {})
                response.raise_for_status()
                return cast(Dict[str, Any], response.json())
        except httpx.HTTPError as e:
            # On connection refused, retry with exponential backoff
            if isinstance(e, httpx.ConnectError) and attempt < max_retries - 1:
                retry_delay = 0.5 * (2**attempt)  # exponential backoff: 0.5s, 1s, 2s, 4s...
                logger.info(
                    "API not ready yet, retrying in %.1f seconds (attempt %d/%d)...",
                    retry_delay,
                    attempt + 1,
                    max_retries,
                )
                time.sleep(retry_delay)
                continue

            logger.error("API request error: %s", str(e))
            error_msg = f"Error connecting to API: {str(e)}"
            if response is not None:
                try:
                    error_data = response.json()
                    if "detail" in error_data:
                        error_msg = f"API error: {error_data['detail']}"
                except ValueError:
                    pass
            colored_print(error_msg, AnsiColors.RED)
            return {"reply": error_msg, "error": True}

    error_msg = f"Failed to connect to API after {max_retries} attempts"
    colored_print(error_msg, AnsiColors.RED)
    return {"reply": error_msg, "error": True}


def print_turn(response: Dict[str, Any]) -> None:
    """Print tool executions and the reply of one turn."""
    if response.get("debounced"):
        colored_print("(ignored: repeated too quickly)", AnsiColors.RED)
        return
    if response.get("user_prompt"):
        colored_print(response["user_prompt"], AnsiColors.BLUE)
    for execution in response.get("tool_executions") or []:
        result = execution.get("result", {})
        color = status_color(bool(result.get("success")))
        colored_print(f"[{execution.get('tool_name')}] {result.get('message', '')}", color)
    colored_print(response.get("reply") or "(no reply)", AnsiColors.YELLOW)


def print_garden(snapshot: Dict[str, Any]) -> None:
    counters = snapshot.get("counters", {})
    summary = snapshot.get("summary", {})
    colored_print(
        f"Gold: {counters.get('gold', 0)}  "
        f"Garden: {counters.get('cols', '?')}x{counters.get('rows', '?')}  "
        f"Flowers: {summary.get('total', 0)} ({summary.get('harvestable', 0)} ready)",
        AnsiColors.GREEN,
    )
    for flower in snapshot.get("flowers", []):
        status = "ready" if flower.get("is_harvestable") else f"{flower.get('growth_percent')}%"
        colored_print(
            f"  {flower.get('id')}  {flower.get('name')} at ({flower.get('col')},"
            f"{flower.get('row')})  {status}",
            AnsiColors.BLUE,
        )


def handle_command(session_id: str, line: str) -> None:
    """Dispatch one line of user input."""
    if line in {"/help", "/?"}:
        colored_print(HELP, AnsiColors.BLUE)
    elif line == "/garden":
        print_garden(call_api(f"/sessions/{session_id}/garden", method="GET"))
    elif line == "/reset":
        call_api(f"/sessions/{session_id}/reset")
        colored_print("Conversation reset.", AnsiColors.GREEN)
    elif line.startswith("/click"):
        _, _, target = line.partition(" ")
        if not target.strip():
            colored_print("Usage: /click <flower_id>", AnsiColors.RED)
            return
        print_turn(
            call_api(
                "/interactions",
                {"type": "click", "target": target.strip(), "session_id": session_id},
            )
        )
    else:
        print_turn(call_api("/agent", {"message": line, "session_id": session_id}))


def run_cli() -> None:
    """Run the CLI client that communicates with the API."""
    session_response = call_api("/sessions", {})
    session_id = session_response.get("session_id")

    if not session_id:
        colored_print("⚠️ Failed to create a session", AnsiColors.RED)
        return

    colored_print(
        "\n🌱 Verdant garden - type 'exit' or 'quit' (or Ctrl+C) to exit", AnsiColors.GREEN
    )
    colored_print(HELP, AnsiColors.BLUE)
    if session_response.get("greeting"):
        colored_print(session_response["greeting"], AnsiColors.YELLOW)

    while True:
        colored_print("\n🧑 You: ", AnsiColors.BLUE, end="")
        user_msg, ok = get_user_message()
        if not ok:
            break  # Exit if user input couldn't be retrieved (e.g., Ctrl+C)
        if user_msg.lower() in {"exit", "quit"}:
            break
        if not user_msg:
            continue
        handle_command(session_id, user_msg)


if __name__ == "__main__":
    run_cli()
