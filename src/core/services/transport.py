"""Transport selection: SSH authentication probe and URL resolution."""

from __future__ import annotations

from core.config import AppSettings
from core.domain.models import (
    HttpsReference,
    MessageLevel,
    OtherUrlReference,
    RepositoryReference,
    ResolvedSource,
    ShorthandReference,
    Transport,
)
from core.domain.reference import https_url, is_ssh_url, ssh_url
from core.interfaces.operator import Operator
from core.interfaces.runner import CommandRunner
from core.log_config import get_logger

logger = get_logger(__name__)


def build_probe_command(settings: AppSettings) -> list[str]:
    return [
        "ssh",
        "-o",
        "BatchMode=yes",
        "-o",
        "StrictHostKeyChecking=no",
        "-o",
        f"ConnectTimeout={settings.ssh_probe_timeout_seconds}",
        "-T",
        f"{settings.ssh_user}@{settings.github_host}",
    ]


def probe_ssh(runner: CommandRunner, settings: AppSettings) -> bool:
    """True when the host greets us with a successful key authentication.

    `ssh -T` exits 1 even on success (no shell is granted), so the output is
    inspected instead of the exit status.
    """

    result = runner.run(
        build_probe_command(settings),
        capture=True,
        timeout=settings.ssh_probe_timeout_seconds + 5,
    )
    ok = "success" in result.output.lower()
    logger.debug("ssh probe rc=%s ok=%s output=%r", result.returncode, ok, result.output.strip())
    return ok


def confirm_owner(reference: ShorthandReference, operator: Operator) -> ShorthandReference:
    """Let the operator correct the owner segment of a shorthand reference."""

    operator.notify(MessageLevel.INFO, f"Using GitHub username: {reference.owner}")
    if operator.confirm("Is this correct?", default=True):
        return reference

    owner = operator.ask("Enter the correct GitHub username", default=reference.owner).strip()
    if not owner or owner == reference.owner:
        return reference
    return reference.model_copy(update={"owner": owner})


def resolve_source(
    reference: RepositoryReference,
    *,
    runner: CommandRunner,
    operator: Operator,
    settings: AppSettings,
) -> ResolvedSource:
    """Pick the clone URL for `reference`.

    Shorthand and HTTPS references start from HTTPS and are offered the SSH
    form when the probe succeeds; other URLs are used verbatim.
    """

    if isinstance(reference, OtherUrlReference):
        transport = Transport.SSH if is_ssh_url(reference.raw, ssh_user=settings.ssh_user) else Transport.HTTPS
        return ResolvedSource(url=reference.raw, transport=transport)

    if isinstance(reference, ShorthandReference):
        https = https_url(reference.owner, reference.name, host=settings.github_host)
    else:
        assert isinstance(reference, HttpsReference)
        https = reference.raw

    operator.notify(MessageLevel.INFO, "Checking for SSH authentication...")
    if not probe_ssh(runner, settings):
        operator.notify(MessageLevel.WARNING, "SSH authentication not available. Using HTTPS URL.")
        operator.notify(MessageLevel.INFO, f"Using HTTPS URL: {https}")
        return ResolvedSource(url=https, transport=Transport.HTTPS)

    operator.notify(MessageLevel.SUCCESS, "SSH authentication to GitHub is working!")
    ssh = ssh_url(reference.owner, reference.name, host=settings.github_host, ssh_user=settings.ssh_user)
    if operator.confirm("Would you like to use SSH instead of HTTPS?", default=True):
        operator.notify(MessageLevel.INFO, f"Using SSH URL: {ssh}")
        return ResolvedSource(url=ssh, transport=Transport.SSH)

    operator.notify(MessageLevel.INFO, f"Using HTTPS URL: {https}")
    return ResolvedSource(url=https, transport=Transport.HTTPS)
