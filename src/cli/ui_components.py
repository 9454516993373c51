"""Rich UI components for the CLI.

Kept apart from the commands so banners, usage text and the SSH next-steps
screen can be reused and tested on their own.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import AppSettings
from core.services.ssh_setup import SshSetupResult, clone_url_hint

CLONE_USAGE = "Usage: gitstrap-clone <repository_url_or_path> [target_directory] [branch_name]"
CLONE_EXAMPLES: tuple[str, ...] = (
    "gitstrap-clone https://github.com/username/repo.git",
    "gitstrap-clone git@github.com:username/repo.git my-project",
    "gitstrap-clone username/repo my-project develop",
)


def print_banner(console: Console, title: str, subtitle: str) -> None:
    body = Align.center(
        Text.assemble(Text(title, style="bold cyan"), "\n", Text(subtitle, style="dim")),
        vertical="middle",
    )
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def print_clone_usage(console: Console) -> None:
    """Usage block shown when the repository argument is missing."""

    console.print("✗ Please provide a GitHub repository URL or path", style="bold red", markup=False)
    console.print(CLONE_USAGE, markup=False, highlight=False)
    console.print("Examples:")
    for example in CLONE_EXAMPLES:
        console.print(f"  {example}", markup=False, highlight=False)


def build_settings_table(settings: AppSettings) -> Table:
    table = Table(title="Effective settings")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")
    for name in ("github_host", "ssh_user", "host_alias_prefix", "venv_dir", "python_manifest", "node_manifest"):
        table.add_row(name, str(getattr(settings, name)))
    table.add_row("python_versions", ", ".join(settings.python_versions))
    return table


def print_ssh_next_steps(
    console: Console,
    result: SshSetupResult,
    settings: AppSettings,
    *,
    public_key: str | None,
) -> None:
    """Instructions printed at the end of `gitstrap ssh-setup`."""

    account = result.account
    console.print("Next steps:", style="bold blue")
    console.print("1. Add your SSH public key to your GitHub account:\n")
    if result.key_copied:
        console.print("   Key copied to clipboard! Paste it in GitHub.")
    elif public_key:
        console.print("   Copy the following key content:")
        console.print(public_key.strip(), markup=False, highlight=False, soft_wrap=True)
    console.print("")
    console.print("   - Go to GitHub → Settings → SSH and GPG keys → New SSH key")
    console.print(f"   - Title: {account.nickname}", markup=False)
    console.print("   - Paste the key and save\n")

    url = clone_url_hint(account, host_alias=result.host_alias, settings=settings)
    console.print("Working with repositories:", style="bold blue")
    if result.first_account:
        console.print("For repositories linked to this account, use the standard URL:")
    else:
        console.print("For repositories linked to this account, use the SSH host alias:")
    console.print(f"  git clone {url}", markup=False, highlight=False)
    console.print(f"  or for existing repos: git remote set-url origin {url}\n", markup=False, highlight=False)

    console.print("To set up per-repository Git configuration, run these commands in your repository:")
    console.print('  git config user.name "Your Name"', markup=False, highlight=False)
    console.print(f'  git config user.email "{account.email}"\n', markup=False, highlight=False)

    console.print(f"✓ Setup complete for account: {account.nickname}!", style="bold green", markup=False)
    if result.shell_rc is not None:
        console.print(
            f"You may need to restart your terminal or run 'source {result.shell_rc}' "
            "to load the SSH agent configuration.",
            markup=False,
        )
