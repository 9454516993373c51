"""SSH key and host alias provisioning for one GitHub account.

Run once per account. The first account owns the plain `github.com` host;
later accounts get a `github-<nickname>` alias so that
`git@github-<nickname>:user/repo.git` picks the right key.
"""

from __future__ import annotations

import os
import re
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from core.config import AppSettings
from core.domain.models import MessageLevel, SshAccount
from core.errors import SshSetupError
from core.interfaces.operator import Operator
from core.interfaces.runner import CommandRunner
from core.log_config import get_logger

logger = get_logger(__name__)

KEY_PREFIX = "github_"

_AGENT_EVAL_RE = re.compile(r"eval.*ssh-agent")
_AGENT_ENV_RE = re.compile(r"(SSH_AUTH_SOCK|SSH_AGENT_PID)=([^;\s]+)")


class RcUpdate(str, Enum):
    ALREADY_PRESENT = "already_present"
    INSERTED = "inserted"
    APPENDED = "appended"


@dataclass
class SshPaths:
    home: Path

    @property
    def ssh_dir(self) -> Path:
        return self.home / ".ssh"

    @property
    def config(self) -> Path:
        return self.ssh_dir / "config"

    def key(self, nickname: str) -> Path:
        return self.ssh_dir / f"{KEY_PREFIX}{nickname}"


@dataclass
class SshSetupResult:
    account: SshAccount
    host_alias: str
    first_account: bool
    key_path: Path
    config_backup: Path | None = None
    shell_rc: Path | None = None
    agent_loaded: bool = False
    key_copied: bool = False


def key_reference(nickname: str) -> str:
    """Home-relative key path as written into config files."""

    return f"~/.ssh/{KEY_PREFIX}{nickname}"


def is_first_account(config_path: Path, settings: AppSettings) -> bool:
    """True when no GitHub host block has been written yet."""

    if not config_path.is_file():
        return True
    text = config_path.read_text(encoding="utf-8", errors="replace")
    alias_re = rf"^\s*Host\s+{re.escape(settings.host_alias_prefix)}\S+"
    host_re = rf"^\s*Host\s+{re.escape(settings.github_host)}\s*$"
    return re.search(alias_re, text, re.MULTILINE) is None and re.search(host_re, text, re.MULTILINE) is None


def host_alias_for(account: SshAccount, *, first: bool, settings: AppSettings) -> str:
    return settings.github_host if first else f"{settings.host_alias_prefix}{account.nickname}"


def render_host_block(account: SshAccount, *, host_alias: str, settings: AppSettings) -> str:
    return (
        f"# GitHub account: {account.nickname} ({account.email})\n"
        f"Host {host_alias}\n"
        f"  HostName {settings.github_host}\n"
        f"  User {settings.ssh_user}\n"
        f"  IdentityFile {key_reference(account.nickname)}\n"
        f"  IdentitiesOnly yes\n"
        "\n"
    )


def clone_url_hint(account: SshAccount, *, host_alias: str, settings: AppSettings) -> str:
    return f"{settings.ssh_user}@{host_alias}:{account.username}/repo-name.git"


def ensure_ssh_dir(paths: SshPaths) -> None:
    paths.ssh_dir.mkdir(parents=True, exist_ok=True)
    os.chmod(paths.ssh_dir, 0o700)


def update_ssh_config(config_path: Path, block: str) -> Path | None:
    """Append `block` to the SSH config, backing up an existing file first.

    Returns the backup path when one was written.
    """

    backup: Path | None = None
    if config_path.exists():
        backup = config_path.with_name(config_path.name + ".backup")
        shutil.copy2(config_path, backup)

    existing = config_path.read_text(encoding="utf-8") if config_path.exists() else ""
    if existing and not existing.endswith("\n"):
        existing += "\n"
    config_path.write_text(existing + block, encoding="utf-8")
    os.chmod(config_path, 0o600)
    return backup


def pick_shell_rc(home: Path) -> Path | None:
    for name in (".zshrc", ".bashrc"):
        candidate = home / name
        if candidate.is_file():
            return candidate
    return None


def ssh_add_line(nickname: str) -> str:
    return f"  ssh-add {key_reference(nickname)} > /dev/null 2>&1"


def update_shell_rc(rc_path: Path, nickname: str) -> RcUpdate:
    """Make the shell start an agent and load this account's key."""

    text = rc_path.read_text(encoding="utf-8")
    add_line = ssh_add_line(nickname)

    if "ssh-agent" in text:
        if re.search(rf"{re.escape(key_reference(nickname))}(?:\s|$)", text, re.MULTILINE):
            return RcUpdate.ALREADY_PRESENT
        lines = text.splitlines()
        for index, line in enumerate(lines):
            if _AGENT_EVAL_RE.search(line):
                lines.insert(index + 1, add_line)
                rc_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
                return RcUpdate.INSERTED

    if text and not text.endswith("\n"):
        text += "\n"
    text += (
        "\n"
        "# Start SSH agent and add keys automatically\n"
        'if [ -z "$SSH_AUTH_SOCK" ]; then\n'
        '  eval "$(ssh-agent -s)" > /dev/null\n'
        f"{add_line}\n"
        "fi\n"
    )
    rc_path.write_text(text, encoding="utf-8")
    return RcUpdate.APPENDED


def parse_agent_env(output: str) -> dict[str, str]:
    """Extract SSH_AUTH_SOCK / SSH_AGENT_PID from `ssh-agent -s` output."""

    return {key: value for key, value in _AGENT_ENV_RE.findall(output)}


def add_key_to_agent(key_path: Path, *, runner: CommandRunner) -> bool:
    """Load the key into the running agent, starting one when needed."""

    env: dict[str, str] | None = None
    if not os.environ.get("SSH_AUTH_SOCK"):
        started = runner.run(["ssh-agent", "-s"], capture=True)
        agent_env = parse_agent_env(started.stdout)
        if not started.ok or "SSH_AUTH_SOCK" not in agent_env:
            logger.debug("ssh-agent did not start: %r", started.output)
            return False
        env = {**os.environ, **agent_env}

    return runner.run(["ssh-add", str(key_path)], capture=True, env=env).ok


def copy_public_key(pub_path: Path, *, runner: CommandRunner) -> bool:
    if not runner.which("xclip"):
        return False
    content = pub_path.read_text(encoding="utf-8")
    # xclip forks a child that keeps serving the selection; captured output
    # pipes would stay open until that child exits.
    return runner.run(["xclip", "-selection", "clipboard"], input_text=content).ok


def generate_key(
    account: SshAccount,
    key_path: Path,
    *,
    runner: CommandRunner,
    operator: Operator,
    settings: AppSettings,
) -> None:
    if key_path.exists() and operator.confirm(f"Key {key_path} already exists. Reuse it?", default=True):
        operator.notify(MessageLevel.INFO, f"Reusing existing key at {key_path}")
        return

    operator.notify(MessageLevel.INFO, f"Generating SSH key for {account.nickname} account...")
    result = runner.run(
        ["ssh-keygen", "-t", settings.ssh_key_type, "-C", account.email, "-f", str(key_path)],
    )
    if not result.ok:
        raise SshSetupError(f"ssh-keygen failed with exit status {result.returncode}")
    operator.notify(MessageLevel.SUCCESS, f"SSH key generated at {key_path}")


def setup_account(
    account: SshAccount,
    *,
    home: Path,
    runner: CommandRunner,
    operator: Operator,
    settings: AppSettings,
) -> SshSetupResult:
    """Provision key, SSH config block, shell rc and agent for `account`."""

    if not runner.which("ssh-keygen"):
        raise SshSetupError("ssh-keygen is not installed (install the OpenSSH client)")

    paths = SshPaths(home=home)
    first = is_first_account(paths.config, settings)
    if first:
        operator.notify(MessageLevel.INFO, "This appears to be your first GitHub account setup.")
    else:
        operator.notify(MessageLevel.INFO, "This appears to be an additional GitHub account setup.")

    ensure_ssh_dir(paths)
    key_path = paths.key(account.nickname)
    generate_key(account, key_path, runner=runner, operator=operator, settings=settings)

    alias = host_alias_for(account, first=first, settings=settings)
    result = SshSetupResult(account=account, host_alias=alias, first_account=first, key_path=key_path)

    operator.notify(MessageLevel.INFO, f"Updating SSH config at {paths.config}...")
    result.config_backup = update_ssh_config(
        paths.config,
        render_host_block(account, host_alias=alias, settings=settings),
    )
    if result.config_backup:
        operator.notify(MessageLevel.SUCCESS, f"Created backup of existing SSH config at {result.config_backup}")
    operator.notify(MessageLevel.SUCCESS, "SSH config updated")

    operator.notify(MessageLevel.INFO, "Setting up your shell to automatically load this SSH key...")
    result.shell_rc = pick_shell_rc(home)
    if result.shell_rc is None:
        operator.notify(
            MessageLevel.WARNING,
            "Could not find .zshrc or .bashrc. You will need to manually set up SSH agent.",
        )
    else:
        outcome = update_shell_rc(result.shell_rc, account.nickname)
        if outcome is RcUpdate.ALREADY_PRESENT:
            operator.notify(MessageLevel.WARNING, f"SSH key {account.nickname} already configured in {result.shell_rc}")
        elif outcome is RcUpdate.INSERTED:
            operator.notify(MessageLevel.SUCCESS, f"Added key to existing SSH agent configuration in {result.shell_rc}")
        else:
            operator.notify(MessageLevel.SUCCESS, f"Added new SSH agent configuration to {result.shell_rc}")

    result.agent_loaded = add_key_to_agent(key_path, runner=runner)
    if result.agent_loaded:
        operator.notify(MessageLevel.SUCCESS, "SSH agent started and key added for current session")
    else:
        operator.notify(MessageLevel.WARNING, f"Could not add the key to ssh-agent. Run: ssh-add {key_path}")

    pub_path = key_path.with_name(key_path.name + ".pub")
    if pub_path.is_file():
        result.key_copied = copy_public_key(pub_path, runner=runner)
    return result
