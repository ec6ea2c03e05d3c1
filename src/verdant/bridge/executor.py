"""Run the Claude CLI in headless mode and parse what it prints."""

import asyncio
import logging
import shlex
from typing import (
    List,
    Optional,
)

from pydantic import (
    BaseModel,
    Field,
)

from verdant.backends.parsing import parse_model_output
from verdant.config import settings
from verdant.core.schema import ToolCall

logger = logging.getLogger(__name__)


class ClaudeExecutionError(RuntimeError):
    """The CLI could not be started, timed out, or failed without printing anything."""


class ClaudeResult(BaseModel):
    text: str = ""
    tool_calls: List[ToolCall] = Field(default_factory=list)
    raw: str = ""


class ClaudeExecutor:
    """
    Wraps one ``claude -p --output-format json`` invocation per prompt.

    The prompt goes in on stdin so no shell quoting is involved.  A non-zero exit is only an
    error when nothing was printed; partial output is still parsed.
    """

    def __init__(
        self, command: str | None = None, timeout: float | None = None, cwd: Optional[str] = None
    ):
        self.command = shlex.split(command or settings.CLAUDE_COMMAND)
        self.timeout = timeout if timeout is not None else settings.CLAUDE_TIMEOUT
        self.cwd = cwd

    def argv(self) -> List[str]:
        return [*self.command, "-p", "--output-format", "json"]

    async def execute(self, prompt: str) -> ClaudeResult:
        logger.info("Running %s (prompt length %d)", self.command[0], len(prompt))
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.argv(),
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.cwd,
            )
        except OSError as exc:
            raise ClaudeExecutionError(f"could not start {self.command[0]}: {exc}") from exc

        try:
            stdout_b, stderr_b = await asyncio.wait_for(
                proc.communicate(prompt.encode("utf-8")), timeout=self.timeout
            )
        except asyncio.TimeoutError as exc:
            proc.kill()
            await proc.wait()
            raise ClaudeExecutionError(
                f"{self.command[0]} timed out after {self.timeout}s"
            ) from exc

        stdout = stdout_b.decode("utf-8", errors="replace")
        stderr = stderr_b.decode("utf-8", errors="replace")
        if proc.returncode != 0 and not stdout.strip():
            logger.error("%s exited with code %s: %s", self.command[0], proc.returncode, stderr)
            raise ClaudeExecutionError(
                f"{self.command[0]} exited with code {proc.returncode}: {stderr.strip()}"
            )

        parsed = parse_model_output(stdout)
        return ClaudeResult(text=parsed.text, tool_calls=parsed.tool_calls, raw=stdout)
