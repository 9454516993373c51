"""Domain models (Pydantic v2).

These describe *what* a clone or an SSH account setup is made of, never how
the external tools are invoked.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class Transport(str, Enum):
    """Network transport used to fetch repository data."""

    SSH = "ssh"
    HTTPS = "https"


class MessageLevel(str, Enum):
    """Severity of an operator-facing message."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    PLAIN = "plain"


class CloneState(str, Enum):
    CLONE_PRIMARY = "clone_primary"
    EVALUATE_FALLBACK = "evaluate_fallback"
    CLONE_FALLBACK = "clone_fallback"
    DONE = "done"
    FAILED = "failed"


class ShorthandReference(BaseModel):
    """`owner/name` reference without a transport-specific URL."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["shorthand"] = "shorthand"
    raw: str = Field(..., min_length=1, description="Reference exactly as typed.")
    owner: str = Field(..., min_length=1, description="Account or organisation segment.")
    name: str = Field(..., min_length=1, description="Repository name without `.git`.")


class HttpsReference(BaseModel):
    """Full HTTPS URL on the known host."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["https"] = "https"
    raw: str = Field(..., min_length=1)
    owner: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)


class OtherUrlReference(BaseModel):
    """SSH URL or any other form, cloned verbatim."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["other"] = "other"
    raw: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)


RepositoryReference = Annotated[
    Union[ShorthandReference, HttpsReference, OtherUrlReference],
    Field(discriminator="kind"),
]


class ResolvedSource(BaseModel):
    """Clone URL chosen for this run together with its transport."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., min_length=1)
    transport: Transport


class CloneRequest(BaseModel):
    source: ResolvedSource
    target_dir: Path = Field(..., description="Destination passed to `git clone`.")
    branch: str | None = Field(
        default=None,
        description="Branch passed as `-b`; None keeps the remote default branch.",
    )


class CloneOutcome(BaseModel):
    """Result of the clone state machine."""

    state: CloneState
    target_dir: Path
    url: str | None = Field(
        default=None,
        description="URL that produced the working copy (None when every attempt failed).",
    )
    attempted_urls: list[str] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state is CloneState.DONE


class CommandResult(BaseModel):
    """Exit status and captured output of one external command."""

    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return f"{self.stdout}{self.stderr}"


class InterpreterCandidate(BaseModel):
    """A Python interpreter found on PATH during bootstrap."""

    command: str = Field(..., min_length=1, description="Executable name, e.g. `python3.11`.")
    label: str = Field(..., min_length=1, description="Menu label, e.g. `python3 (v3.11)`.")


class SshAccount(BaseModel):
    """One hosting-provider account provisioned by ssh-setup."""

    nickname: str = Field(
        ...,
        min_length=1,
        max_length=64,
        pattern=r"^[A-Za-z0-9_.-]+$",
        description="Short name used in the key filename and host alias (e.g. `work`).",
    )
    email: str = Field(..., min_length=3, description="Comment embedded in the key.")
    username: str = Field(..., min_length=1, description="Account username on the host.")
