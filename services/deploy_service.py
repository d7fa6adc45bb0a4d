"""Run the external publish command that rebuilds and ships the static site."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from utils.errors import DeployError

LOGGER = logging.getLogger(__name__)

# Output returned to the client is trimmed to the last few KB.
_MAX_OUTPUT_CHARS = 4000


@dataclass
class DeployResult:
    success: bool
    message: str
    output: str = ""
    duration: float = 0.0


class DeployService:
    """Invoke a configured command and report success or failure.

    Args:
        command: Argument vector, e.g. `["npm", "run", "deploy"]`.
        cwd: Working directory for the command.
    """

    def __init__(self, command: Sequence[str], cwd: Path | str) -> None:
        self.command: List[str] = list(command)
        self.cwd = Path(cwd)

    async def deploy(self) -> DeployResult:
        """Run the command to completion.

        Raises:
            DeployError: The command could not be started or exited non-zero.
                The error details carry the exit code and trimmed output.
        """
        started = time.perf_counter()
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.command,
                cwd=str(self.cwd),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as exc:
            LOGGER.error("Deploy command %s could not be started: %s", self.command, exc)
            raise DeployError("Deploy failed", {"details": str(exc)}) from exc

        stdout, _ = await proc.communicate()
        output = (stdout or b"").decode("utf-8", errors="replace")[-_MAX_OUTPUT_CHARS:]
        duration = time.perf_counter() - started

        if proc.returncode != 0:
            LOGGER.error("Deploy failed with exit code %s after %.1fs", proc.returncode, duration)
            raise DeployError(
                "Deploy failed",
                {"details": output.strip() or f"exit code {proc.returncode}", "exit_code": proc.returncode},
            )

        LOGGER.info("Deploy finished in %.1fs", duration)
        return DeployResult(success=True, message="Deployed successfully", output=output, duration=duration)
