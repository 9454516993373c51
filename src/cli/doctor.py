"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import check_https
from adapters.subprocess_runner import SubprocessRunner
from cli.ui_components import build_settings_table
from core.config import AppSettings, write_user_env_vars
from core.domain.reference import https_prefix
from core.services.transport import probe_ssh

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()

# (tool, required, hint)
_TOOLS: tuple[tuple[str, bool, str], ...] = (
    ("git", True, "Needed by `clone`"),
    ("ssh", True, "Needed for the SSH probe and SSH clones"),
    ("ssh-keygen", False, "Needed by `ssh-setup`"),
    ("ssh-agent", False, "Loads keys for the current session"),
    ("xclip", False, "Copies public keys to the clipboard"),
)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()
    runner = SubprocessRunner()

    table = Table(title="gitstrap doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    missing_required = False
    for tool, required, hint in _TOOLS:
        path = runner.which(tool)
        if path:
            table.add_row(tool, "OK", path)
        elif required:
            missing_required = True
            table.add_row(tool, "FAIL", hint)
        else:
            table.add_row(tool, "OPTIONAL", hint)

    if runner.which("ssh"):
        ok_ssh = probe_ssh(runner, settings)
        table.add_row(
            "SSH auth",
            "OK" if ok_ssh else "FAIL",
            f"{settings.ssh_user}@{settings.github_host}" if ok_ssh else "No key accepted -> clones fall back to HTTPS",
        )

    ok_http, detail_http = asyncio.run(check_https(https_prefix(settings.github_host), settings))
    table.add_row("HTTPS connectivity", "OK" if ok_http else "FAIL", detail_http)

    _console.print(table)
    _console.print(build_settings_table(settings))

    if missing_required:
        _console.print("\n[yellow]Note:[/yellow] install the missing tools before running `gitstrap clone`.")


@app.command()
def configure() -> None:
    """Interactive setup (stores preferences in the user config .env)."""

    settings = AppSettings()

    host = typer.prompt("Git hosting host", default=settings.github_host, show_default=True).strip()
    ssh_user = typer.prompt("SSH user", default=settings.ssh_user, show_default=True).strip()
    venv_dir = typer.prompt("Virtualenv directory", default=settings.venv_dir, show_default=True).strip()

    if not host or not ssh_user or not venv_dir:
        raise typer.BadParameter("host, SSH user and virtualenv directory are required")

    env_path = write_user_env_vars(
        {
            "GITSTRAP_GITHUB_HOST": host,
            "GITSTRAP_SSH_USER": ssh_user,
            "GITSTRAP_VENV_DIR": venv_dir,
        }
    )

    _console.print(f"[green]Saved config to:[/green] {env_path}")
