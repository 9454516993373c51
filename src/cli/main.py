"""gitstrap command-line interface (Typer).

Commands:
- `gitstrap clone <ref> [dir] [branch]` (also installed as `gitstrap-clone`)
- `gitstrap ssh-setup`
- `gitstrap doctor run|configure`
"""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console

from adapters.console_operator import ConsoleOperator
from adapters.subprocess_runner import SubprocessRunner
from cli.doctor import app as doctor_app
from cli.ui_components import print_banner, print_clone_usage, print_ssh_next_steps
from core.config import AppSettings
from core.domain.models import MessageLevel, SshAccount
from core.errors import CloneFailedError, GitstrapError
from core.log_config import setup_logging
from core.services.acquisition import acquire_repository
from core.services.ssh_setup import setup_account

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Clone GitHub repositories over SSH or HTTPS and manage per-account SSH keys.",
)
app.add_typer(doctor_app, name="doctor")

# Standalone entry point: `gitstrap-clone <ref> [dir] [branch]`.
clone_app = typer.Typer(add_completion=False)

_console = Console()
_err_console = Console(stderr=True)


def _init(verbose: bool) -> AppSettings:
    settings = AppSettings()
    setup_logging("DEBUG" if verbose else settings.log_level)
    return settings


def clone(
    repository: str | None = typer.Argument(
        None,
        help="owner/name, https://github.com/owner/name.git or git@github.com:owner/name.git",
        show_default=False,
    ),
    target_dir: str | None = typer.Argument(None, help="Destination directory (default: repository name).", show_default=False),
    branch: str | None = typer.Argument(None, help="Branch to clone (asked interactively when omitted).", show_default=False),
    no_bootstrap: bool = typer.Option(False, "--no-bootstrap", help="Skip the virtualenv / npm install prompts."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every external command."),
) -> None:
    """Clone a repository, preferring SSH when it is set up, then bootstrap it."""

    settings = _init(verbose)

    if not repository:
        print_clone_usage(_err_console)
        raise typer.Exit(code=1)

    operator = ConsoleOperator(_console, _err_console)
    try:
        acquire_repository(
            repository,
            target_dir=target_dir,
            branch=branch,
            runner=SubprocessRunner(),
            operator=operator,
            settings=settings,
            bootstrap=not no_bootstrap,
        )
    except CloneFailedError:
        # The workflow already printed the checklist and the failing URL.
        raise typer.Exit(code=1)
    except GitstrapError as exc:
        operator.notify(MessageLevel.ERROR, str(exc))
        raise typer.Exit(code=1)


app.command("clone")(clone)
clone_app.command()(clone)


@app.command("ssh-setup")
def ssh_setup(
    nickname: str | None = typer.Option(None, "--nickname", "-n", help="Account nickname (e.g. personal, work)."),
    email: str | None = typer.Option(None, "--email", "-e", help="Email associated with the account."),
    username: str | None = typer.Option(None, "--username", "-u", help="GitHub username for the account."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every external command."),
) -> None:
    """Create an SSH key and host alias for one GitHub account.

    Run it again with another nickname to add more accounts.
    """

    settings = _init(verbose)
    operator = ConsoleOperator(_console, _err_console)
    runner = SubprocessRunner()

    print_banner(_console, "GitHub SSH Setup", "Run it once per account to set up multiple accounts")
    if not runner.which("xclip"):
        operator.notify(MessageLevel.WARNING, "xclip is not installed. You will need to manually copy the public key.")
        operator.notify(MessageLevel.WARNING, "Install it with: sudo apt install xclip")

    nickname = nickname or typer.prompt("Enter a nickname for this GitHub account (e.g., personal, work)")
    email = email or typer.prompt("Enter the email associated with this GitHub account")
    username = username or typer.prompt("Enter your GitHub username for this account")

    try:
        account = SshAccount(nickname=nickname.strip(), email=email.strip(), username=username.strip())
    except ValidationError as exc:
        operator.notify(MessageLevel.ERROR, f"Invalid account details: {exc.errors()[0]['msg']}")
        raise typer.Exit(code=1)

    try:
        result = setup_account(
            account,
            home=Path.home(),
            runner=runner,
            operator=operator,
            settings=settings,
        )
    except GitstrapError as exc:
        operator.notify(MessageLevel.ERROR, str(exc))
        raise typer.Exit(code=1)

    pub_path = result.key_path.with_name(result.key_path.name + ".pub")
    public_key = pub_path.read_text(encoding="utf-8") if pub_path.is_file() else None
    print_ssh_next_steps(_console, result, settings, public_key=public_key)


def run() -> None:
    app()


def run_clone() -> None:
    clone_app()
