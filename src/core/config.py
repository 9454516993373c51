"""Core configuration.

Environment variables (prefix ``GITSTRAP_``) are read through pydantic-settings
from the project `.env` first and then from the per-user `.env` written by
``gitstrap doctor configure``.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no extra dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "gitstrap"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "gitstrap"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "gitstrap"
    return Path.home() / ".config" / "gitstrap"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], env_path: Path | None = None) -> Path:
    """Write or update variables in the user's global `.env`."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# gitstrap user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Central application settings."""

    model_config = SettingsConfigDict(
        env_prefix="GITSTRAP_",
        extra="ignore",
        case_sensitive=False,
        # Project first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    github_host: str = Field(
        default="github.com",
        min_length=1,
        description="Hosting provider used for shorthand references and URL rewriting.",
    )
    ssh_user: str = Field(
        default="git",
        min_length=1,
        description="User part of SSH clone URLs (git@<host>:owner/name.git).",
    )
    host_alias_prefix: str = Field(
        default="github-",
        min_length=1,
        description="Prefix of per-account SSH host aliases written by ssh-setup.",
    )
    ssh_probe_timeout_seconds: int = Field(
        default=10,
        ge=1,
        le=120,
        description="ConnectTimeout for the non-interactive SSH authentication probe.",
    )
    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for the HTTPS reachability check in `doctor run`.",
    )
    user_agent: str = Field(
        default="gitstrap/0.1",
        min_length=1,
        description="User-Agent for HTTP requests.",
    )

    python_versions: list[str] = Field(
        default_factory=lambda: ["3.7", "3.8", "3.9", "3.10", "3.11", "3.12", "3.13"],
        description="Interpreter suffixes probed as `python<version>` during bootstrap.",
    )
    python_manifest: str = Field(
        default="requirements.txt",
        min_length=1,
        description="Marker file that enables the Python virtualenv bootstrap.",
    )
    node_manifest: str = Field(
        default="package.json",
        min_length=1,
        description="Marker file that enables the Node dependency install.",
    )
    venv_dir: str = Field(
        default="venv",
        min_length=1,
        description="Virtual environment directory created inside the clone.",
    )

    ssh_key_type: str = Field(
        default="ed25519",
        min_length=1,
        description="Key type passed to ssh-keygen -t.",
    )

    log_level: str = Field(
        default="WARNING",
        description="Level for diagnostic logging (DEBUG, INFO, WARNING, ERROR).",
    )
