"""Subprocess execution returning Results.

Every external program autoship drives (git, gh) goes through `run`, which
captures output and turns non-zero exits, timeouts and spawn failures into a
`ProcessError` value.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from autoship.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: Exit code, or -1 when the process never completed.
        stdout: Captured standard output.
        stderr: Captured standard error.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
    input_text: str | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return its stdout.

    Args:
        cmd: Command and arguments.
        cwd: Working directory.
        env: Environment (inherits the current one if None).
        timeout: Maximum seconds to wait.
        input_text: Text fed to the process on stdin.

    Returns:
        Ok(stdout) on success, Err(ProcessError) otherwise.
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            input=input_text,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout=e.stdout if isinstance(e.stdout, str) else "",
                stderr=f"Command timed out after {timeout}s",
            )
        )
    except OSError as e:
        return Err(ProcessError(command=tuple(cmd), returncode=-1, stdout="", stderr=str(e)))

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        )

    return Ok(proc.stdout)
