"""
Command target: runs an executable or a shell line for every scan event.

The file path is passed as the single argument to `path`, and is exported as
FILE_PATH in the environment of both `path` and `raw` commands.
"""

import asyncio
import logging
import os
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from autopulse.core.exceptions import TargetProcessError
from autopulse.models import ScanEvent


class CommandTarget(BaseModel):
    type: Literal["command"] = "command"
    path: Optional[str] = Field(default=None, description="Executable called with the file path")
    raw: Optional[str] = Field(default=None, description="Shell line, may reference $FILE_PATH")
    timeout: Optional[float] = Field(default=None, gt=0, description="Seconds before the command is killed")

    @model_validator(mode="after")
    def _exactly_one_command(self) -> "CommandTarget":
        if (self.path is None) == (self.raw is None):
            raise ValueError("command target needs exactly one of 'path' or 'raw'")
        return self

    async def _spawn(self, event: ScanEvent) -> asyncio.subprocess.Process:
        env = {**os.environ, "FILE_PATH": event.file_path}
        if self.path is not None:
            return await asyncio.create_subprocess_exec(
                self.path,
                event.file_path,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        return await asyncio.create_subprocess_shell(
            self.raw,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )

    async def process(self, event: ScanEvent) -> None:
        try:
            proc = await self._spawn(event)
        except OSError as e:
            raise TargetProcessError("command", f"could not start command: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise TargetProcessError("command", f"timed out after {self.timeout}s")
        except asyncio.CancelledError:
            # Dispatcher timeout or shutdown, don't leave the child behind
            proc.kill()
            await proc.wait()
            raise

        if stdout:
            logging.debug(f"Command output for {event.file_path}: {stdout.decode(errors='replace').strip()}")

        if proc.returncode != 0:
            raise TargetProcessError(
                "command",
                f"exit code {proc.returncode}: {stderr.decode(errors='replace').strip()}",
            )
