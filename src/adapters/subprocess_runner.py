"""`CommandRunner` backed by `subprocess`."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Mapping, Sequence

from core.domain.models import CommandResult
from core.log_config import get_logger

logger = get_logger(__name__)

# Exit status reported when the executable cannot be found, as shells do.
COMMAND_NOT_FOUND = 127


class SubprocessRunner:
    """Runs commands for real.

    Without `capture`, stdin/stdout/stderr are inherited so git progress and
    ssh-keygen passphrase prompts reach the terminal.
    """

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        capture: bool = False,
        input_text: str | None = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        argv = [str(a) for a in args]
        logger.debug("exec: %s (cwd=%s)", " ".join(argv), cwd or ".")
        try:
            completed = subprocess.run(
                argv,
                cwd=str(cwd) if cwd else None,
                capture_output=capture,
                input=input_text,
                text=True,
                env=dict(env) if env is not None else None,
                timeout=timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            logger.debug("exec failed: %s", exc)
            return CommandResult(args=argv, returncode=COMMAND_NOT_FOUND, stderr=str(exc))
        except subprocess.TimeoutExpired as exc:
            logger.debug("exec timed out after %ss", exc.timeout)
            return CommandResult(args=argv, returncode=1, stderr=f"timed out after {exc.timeout}s")

        logger.debug("exit status %s", completed.returncode)
        return CommandResult(
            args=argv,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )

    def which(self, name: str) -> str | None:
        return shutil.which(name)
