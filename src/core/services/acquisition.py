"""Repository acquisition workflow.

The clone itself is a small state machine:

    CLONE_PRIMARY -> DONE
                  -> EVALUATE_FALLBACK -> CLONE_FALLBACK -> DONE | FAILED
                                       -> FAILED

Each state has one handler that takes the run context and returns the next
state. Side effects go through the injected `CommandRunner` and `Operator`,
so tests drive the whole flow with canned results and canned answers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from core.config import AppSettings
from core.domain.models import (
    CloneOutcome,
    CloneRequest,
    CloneState,
    MessageLevel,
    RepositoryReference,
    ShorthandReference,
)
from core.domain.reference import https_fallback_for, parse_reference
from core.errors import CloneFailedError, ToolMissingError
from core.interfaces.operator import Operator
from core.interfaces.runner import CommandRunner
from core.log_config import get_logger
from core.services.bootstrap import run_bootstrap
from core.services.transport import confirm_owner, resolve_source

logger = get_logger(__name__)

CLONE_FAILURE_CHECKLIST: tuple[str, ...] = (
    "Repository URL",
    "Repository permissions (private vs. public)",
    "Branch name",
    "Your authentication setup (SSH key or token)",
    "Your internet connection",
)


def build_clone_command(url: str, target_dir: Path, branch: str | None) -> list[str]:
    args = ["git", "clone"]
    if branch:
        args += ["-b", branch]
    args += [url, str(target_dir)]
    return args


def ensure_git(runner: CommandRunner, operator: Operator) -> None:
    """Make sure `git` is on PATH, offering an apt install when possible."""

    if runner.which("git"):
        return

    if runner.which("apt-get") and operator.confirm("Git is not installed. Install it with apt?", default=True):
        operator.notify(MessageLevel.INFO, "Installing git...")
        runner.run(["sudo", "apt-get", "update"])
        runner.run(["sudo", "apt-get", "install", "-y", "git"])
        if runner.which("git"):
            operator.notify(MessageLevel.SUCCESS, "Git installed")
            return

    raise ToolMissingError("git", "Install it from https://git-scm.com/downloads and retry.")


def ask_branch(operator: Operator) -> str | None:
    """Ask whether to clone a specific branch; blank keeps the default branch."""

    if not operator.confirm("Do you want to clone a specific branch?", default=False):
        return None
    branch = operator.ask("Enter branch name (leave empty for default branch)", default="").strip()
    return branch or None


def prepare_clone(
    raw_reference: str,
    *,
    target_dir: str | None,
    branch: str | None,
    runner: CommandRunner,
    operator: Operator,
    settings: AppSettings,
) -> CloneRequest:
    """Turn the CLI arguments into a `CloneRequest` (all pre-clone prompts)."""

    reference: RepositoryReference = parse_reference(
        raw_reference,
        host=settings.github_host,
        ssh_user=settings.ssh_user,
    )
    logger.debug("parsed reference: %r", reference)

    if isinstance(reference, ShorthandReference):
        reference = confirm_owner(reference, operator)

    source = resolve_source(reference, runner=runner, operator=operator, settings=settings)

    target = Path(target_dir) if target_dir else Path(reference.name)

    if not branch:
        branch = ask_branch(operator)

    return CloneRequest(source=source, target_dir=target, branch=branch or None)


@dataclass
class CloneRun:
    """Mutable context shared by the state handlers of one clone."""

    request: CloneRequest
    current_url: str
    fallback_url: str | None = None
    attempted_urls: list[str] = field(default_factory=list)


StateHandler = Callable[[CloneRun], CloneState]


class CloneWorkflow:
    """Clone with SSH → HTTPS fallback.

    A failing HTTPS clone is terminal: no SSH retry is offered in that
    direction.
    """

    def __init__(self, *, runner: CommandRunner, operator: Operator, settings: AppSettings | None = None) -> None:
        self._runner = runner
        self._operator = operator
        self._settings = settings or AppSettings()
        self._handlers: dict[CloneState, StateHandler] = {
            CloneState.CLONE_PRIMARY: self._clone_primary,
            CloneState.EVALUATE_FALLBACK: self._evaluate_fallback,
            CloneState.CLONE_FALLBACK: self._clone_fallback,
        }

    def run(self, request: CloneRequest) -> CloneOutcome:
        ctx = CloneRun(request=request, current_url=request.source.url)
        state = CloneState.CLONE_PRIMARY
        while state not in (CloneState.DONE, CloneState.FAILED):
            logger.debug("clone state: %s", state.value)
            state = self._handlers[state](ctx)

        return CloneOutcome(
            state=state,
            target_dir=request.target_dir,
            url=ctx.current_url if state is CloneState.DONE else None,
            attempted_urls=list(ctx.attempted_urls),
        )

    def _git_clone(self, ctx: CloneRun, url: str) -> bool:
        ctx.attempted_urls.append(url)
        args = build_clone_command(url, ctx.request.target_dir, ctx.request.branch)
        logger.debug("running: %s", " ".join(args))
        return self._runner.run(args).ok

    def _clone_primary(self, ctx: CloneRun) -> CloneState:
        self._operator.notify(
            MessageLevel.INFO,
            f"Cloning repository from {ctx.current_url} into {ctx.request.target_dir}...",
        )
        if self._git_clone(ctx, ctx.current_url):
            self._operator.notify(MessageLevel.SUCCESS, "Repository cloned successfully!")
            return CloneState.DONE

        self._operator.notify(MessageLevel.ERROR, "Failed to clone repository. Please check:")
        for item in CLONE_FAILURE_CHECKLIST:
            if item == "Branch name" and ctx.request.branch:
                item = f"Branch name (if specified: {ctx.request.branch})"
            self._operator.notify(MessageLevel.PLAIN, f"  - {item}")
        return CloneState.EVALUATE_FALLBACK

    def _evaluate_fallback(self, ctx: CloneRun) -> CloneState:
        fallback = https_fallback_for(
            ctx.current_url,
            host=self._settings.github_host,
            ssh_user=self._settings.ssh_user,
            alias_prefix=self._settings.host_alias_prefix,
        )
        if fallback is None:
            return CloneState.FAILED

        ctx.fallback_url = fallback
        if not self._operator.confirm(f"Would you like to try with HTTPS instead? ({fallback})", default=True):
            return CloneState.FAILED
        return CloneState.CLONE_FALLBACK

    def _clone_fallback(self, ctx: CloneRun) -> CloneState:
        assert ctx.fallback_url is not None
        ctx.current_url = ctx.fallback_url
        if ctx.request.branch:
            self._operator.notify(
                MessageLevel.INFO,
                f"Trying with HTTPS URL: {ctx.current_url} (branch: {ctx.request.branch})",
            )
        else:
            self._operator.notify(MessageLevel.INFO, f"Trying with HTTPS URL: {ctx.current_url}")

        if self._git_clone(ctx, ctx.current_url):
            self._operator.notify(MessageLevel.SUCCESS, "Repository cloned successfully using HTTPS!")
            return CloneState.DONE

        self._operator.notify(
            MessageLevel.ERROR,
            "HTTPS clone also failed. Please double-check the repository name and your permissions.",
        )
        return CloneState.FAILED


def acquire_repository(
    raw_reference: str,
    *,
    target_dir: str | None = None,
    branch: str | None = None,
    runner: CommandRunner,
    operator: Operator,
    settings: AppSettings | None = None,
    bootstrap: bool = True,
) -> CloneOutcome:
    """Full clone run: git check, resolution, clone with fallback, bootstrap.

    Raises `CloneFailedError` when no working copy was produced. Bootstrap
    failures are reported through the operator and never raise.
    """

    settings = settings or AppSettings()
    ensure_git(runner, operator)

    request = prepare_clone(
        raw_reference,
        target_dir=target_dir,
        branch=branch,
        runner=runner,
        operator=operator,
        settings=settings,
    )
    outcome = CloneWorkflow(runner=runner, operator=operator, settings=settings).run(request)
    if not outcome.succeeded:
        raise CloneFailedError(
            f"Could not clone {request.source.url} into {request.target_dir}",
            attempted_urls=outcome.attempted_urls,
        )

    workdir = outcome.target_dir.resolve()
    operator.notify(MessageLevel.INFO, f"Working directory for setup: {workdir}")

    if bootstrap:
        run_bootstrap(workdir, runner=runner, operator=operator, settings=settings)

    operator.notify(MessageLevel.SUCCESS, f"Repository successfully cloned and set up at: {workdir}")
    operator.notify(MessageLevel.INFO, "Happy coding!")
    return outcome
