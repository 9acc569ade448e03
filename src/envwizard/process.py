"""Subprocess execution.

Commands are always given as argument lists. Status probes capture output
and have a timeout; interactive steps (installers, logins, linking) inherit
the terminal and run until the child exits.
"""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of a child process."""

    exit_code: int | None
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        """True when the process ran and exited with code 0."""
        return self.exit_code == 0 and not self.timed_out

    @property
    def failure_message(self) -> str:
        """Human-readable reason for a failed run."""
        if self.timed_out:
            return "timed out"
        if self.error:
            return self.error
        detail = self.stderr.strip().splitlines()[-1] if self.stderr.strip() else ""
        if detail:
            return f"exited with code {self.exit_code}: {detail}"
        return f"exited with code {self.exit_code}"


class ProcessRunner:
    """Run external commands and report their exit status."""

    def which(self, name: str) -> str | None:
        """Locate an executable on PATH."""
        return shutil.which(name)

    def _resolve(self, args: list[str]) -> list[str]:
        # Resolves .cmd/.exe shims on Windows without going through a shell
        resolved = shutil.which(args[0])
        return [resolved, *args[1:]] if resolved else list(args)

    def capture(
        self,
        args: list[str],
        timeout: float = 10.0,
        cwd: Path | None = None,
    ) -> ProcessResult:
        """Run a read-only probe, capturing its output.

        Args:
            args: Command and arguments
            timeout: Seconds before the probe is abandoned
            cwd: Working directory

        Returns:
            ProcessResult; a missing executable or timeout is reported,
            never raised.
        """
        logger.debug("probe", command=args[0], args=args[1:])
        try:
            result = subprocess.run(
                self._resolve(args),
                capture_output=True,
                text=True,
                timeout=timeout,
                cwd=cwd,
            )
        except subprocess.TimeoutExpired:
            logger.info("probe_timeout", command=args[0], timeout=timeout)
            return ProcessResult(exit_code=None, timed_out=True)
        except FileNotFoundError:
            return ProcessResult(exit_code=None, error=f"{args[0]} not found")
        except OSError as e:
            return ProcessResult(exit_code=None, error=str(e))

        return ProcessResult(
            exit_code=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )

    def interactive(self, args: list[str], cwd: Path | None = None) -> ProcessResult:
        """Run a command attached to the user's terminal.

        Blocks until the child exits. No timeout is applied.

        Args:
            args: Command and arguments
            cwd: Working directory

        Returns:
            ProcessResult with the exit code only.
        """
        logger.info("spawn", command=args[0], args=args[1:])
        try:
            result = subprocess.run(self._resolve(args), cwd=cwd)
        except FileNotFoundError:
            return ProcessResult(exit_code=None, error=f"{args[0]} not found")
        except OSError as e:
            return ProcessResult(exit_code=None, error=str(e))

        logger.info("spawn_exit", command=args[0], exit_code=result.returncode)
        return ProcessResult(exit_code=result.returncode)
