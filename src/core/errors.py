"""Core exceptions.

Services raise these; the CLI layer turns them into a red message on stderr
and exit status 1.
"""

from __future__ import annotations


class GitstrapError(Exception):
    """Base exception for gitstrap operations."""


class InvalidReferenceError(GitstrapError):
    """The repository reference is missing or cannot be parsed."""


class ToolMissingError(GitstrapError):
    """A required external command is not available on PATH."""

    def __init__(self, tool: str, hint: str | None = None) -> None:
        self.tool = tool
        self.hint = hint
        message = f"{tool} is not installed"
        if hint:
            message = f"{message}. {hint}"
        super().__init__(message)


class CloneFailedError(GitstrapError):
    """Every clone attempt failed or the operator declined the fallback."""

    def __init__(self, message: str, attempted_urls: list[str] | None = None) -> None:
        super().__init__(message)
        self.attempted_urls = attempted_urls or []


class BootstrapError(GitstrapError):
    """An optional post-clone bootstrap step failed."""


class SshSetupError(GitstrapError):
    """SSH key provisioning could not complete."""
