"""Persist agent turns to a lightweight JSON-lines audit log."""

import json
import logging
from pathlib import Path

from verdant.core.schema import (
    AgentInput,
    AgentOutput,
)

logger = logging.getLogger(__name__)


class TurnLog:
    """Append-only JSONL file with one record per completed turn."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def init(self) -> None:
        """
        Ensure the log file exists.
        Called once when a session is created.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self.path.touch()  # Create an empty file if it doesn't exist

    def save_turn(
        self, session_id: str | None, agent_input: AgentInput, output: AgentOutput
    ) -> None:
        if agent_input.type == "text":
            user = agent_input.content
        else:
            user = agent_input.event.to_agent_input() if agent_input.event is not None else None
        record = {
            "session": session_id,
            "input_type": agent_input.type,
            "input": user,
            "output": output.model_dump(),
        }
        try:
            with self.path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")
        except OSError as exc:
            logger.warning("Could not append turn to %s: %s", self.path, exc)

    def read_turns(self) -> list[dict]:
        if not self.path.exists():
            return []
        with self.path.open(encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]
