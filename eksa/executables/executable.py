"""Subprocess wrapper for the external CLIs eksa drives.

The control plane never reimplements clusterctl / kubectl internals;
it shells out and parses what comes back.
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Dict, Optional

from eksa.errors import ExecutableError

logger = logging.getLogger(__name__)


@dataclass
class ExecResult:
    """Outcome of one CLI invocation."""

    command: str
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


class Executable:
    """A named binary on ``PATH``."""

    def __init__(self, binary: str) -> None:
        self.binary = binary

    def run(self, *args: str, env: Optional[Dict[str, str]] = None) -> ExecResult:
        """Run the binary and return its result without judging it.

        *env* entries are layered over the current environment.  A missing
        binary is reported as return code 127.
        """
        cmd = [self.binary, *args]
        full_env = {**os.environ}
        if env:
            full_env.update(env)

        logger.info("Running: %s", " ".join(cmd))
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, env=full_env)
        except FileNotFoundError:
            return ExecResult(
                command=" ".join(cmd),
                returncode=127,
                stderr=f"{self.binary} CLI not found on PATH",
            )
        return ExecResult(
            command=" ".join(cmd),
            returncode=proc.returncode,
            stdout=proc.stdout.strip(),
            stderr=proc.stderr.strip(),
        )

    def execute(self, *args: str, env: Optional[Dict[str, str]] = None) -> ExecResult:
        """Like :meth:`run` but raise :class:`ExecutableError` on failure."""
        result = self.run(*args, env=env)
        if not result.success:
            logger.error(
                "%s failed (rc=%d): %s",
                result.command,
                result.returncode,
                result.stderr or "(no stderr)",
            )
            raise ExecutableError(result.command, result.returncode, result.stderr)
        return result
