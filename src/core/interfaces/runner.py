"""External command contract."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Protocol, Sequence, runtime_checkable

from core.domain.models import CommandResult


@runtime_checkable
class CommandRunner(Protocol):
    """Runs external tools (git, ssh, pip, npm...).

    Rules:
    - A command that cannot be launched returns a non-zero `CommandResult`
      instead of raising.
    - With `capture=False` the child inherits the terminal, so interactive
      tools (ssh-keygen, git credential prompts) keep working.
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
        ...

    def which(self, name: str) -> str | None:
        """Absolute path of `name` on PATH, or None."""

        ...
