"""Subprocess invocation for git and gh."""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional

from ..core.types import CommandError

logger = logging.getLogger(__name__)

CAPTURE = "capture"
PASSTHROUGH = "passthrough"
QUIET = "quiet"


class CommandRunner:
    """Runs one external program in one of three modes.

    - capture: stdout and stderr are collected, stdout is returned
    - passthrough: the terminal is handed to the child process
    - quiet: output is discarded and only the exit code matters
    """

    def __init__(self, program: str = "git", cwd: Optional[Path] = None):
        self.program = program
        self.cwd = cwd

    def capture(self, *args: str, input: Optional[str] = None) -> str:
        """Run and return stdout, raising CommandError on a non-zero exit."""
        result = self._execute(list(args), CAPTURE, input=input)
        if result.returncode != 0:
            raise CommandError(self._argv(args), result.returncode, result.stderr)
        return result.stdout

    def capture_bytes(self, *args: str) -> bytes:
        """Run and return raw stdout, for content that may not be text."""
        result = self._execute(list(args), CAPTURE, text=False)
        if result.returncode != 0:
            stderr = (result.stderr or b"").decode("utf-8", errors="replace")
            raise CommandError(self._argv(args), result.returncode, stderr)
        return result.stdout

    def passthrough(self, *args: str) -> None:
        """Run attached to the terminal, raising CommandError on a non-zero exit."""
        result = self._execute(list(args), PASSTHROUGH)
        if result.returncode != 0:
            raise CommandError(self._argv(args), result.returncode)

    def quiet(self, *args: str) -> int:
        """Run with output discarded and return the exit code."""
        return self._execute(list(args), QUIET).returncode

    def _argv(self, args) -> List[str]:
        return [self.program] + list(args)

    def _execute(self, args: List[str], mode: str,
                 input: Optional[str] = None, text: bool = True) -> subprocess.CompletedProcess:
        """Spawn the process and wait for it to exit."""
        argv = self._argv(args)
        logger.debug("Running %s command: %s", mode, " ".join(argv))

        kwargs = {"cwd": self.cwd}
        if mode == CAPTURE:
            kwargs.update(capture_output=True, text=text, input=input)
        elif mode == QUIET:
            kwargs.update(stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)

        try:
            result = subprocess.run(argv, check=False, **kwargs)
        except FileNotFoundError:
            raise CommandError(argv, 127, f"{self.program}: command not found")

        if result.returncode != 0:
            logger.debug("Command exited with status %d: %s", result.returncode, " ".join(argv))
        return result
