"""Repository reference parsing and URL rewriting.

Accepted inputs:
- `owner/name` shorthand
- `https://<host>/owner/name(.git)`
- anything else (SSH URLs, other hosts, local paths), cloned verbatim
"""

from __future__ import annotations

import re

from core.domain.models import (
    HttpsReference,
    OtherUrlReference,
    RepositoryReference,
    ShorthandReference,
)
from core.errors import InvalidReferenceError

DEFAULT_HOST = "github.com"
DEFAULT_SSH_USER = "git"
DEFAULT_ALIAS_PREFIX = "github-"


def strip_git_suffix(value: str) -> str:
    return value[: -len(".git")] if value.endswith(".git") else value


def repository_name_from_url(url: str) -> str:
    """Final path segment of a URL (split on `/` or `:`) without `.git`."""

    cleaned = strip_git_suffix(url.strip().rstrip("/"))
    return re.split(r"[/:]", cleaned)[-1]


def https_prefix(host: str = DEFAULT_HOST) -> str:
    return f"https://{host}/"


def https_url(owner: str, name: str, *, host: str = DEFAULT_HOST) -> str:
    return f"{https_prefix(host)}{owner}/{name}.git"


def ssh_url(owner: str, name: str, *, host: str = DEFAULT_HOST, ssh_user: str = DEFAULT_SSH_USER) -> str:
    return f"{ssh_user}@{host}:{owner}/{name}.git"


def parse_reference(
    raw: str,
    *,
    host: str = DEFAULT_HOST,
    ssh_user: str = DEFAULT_SSH_USER,
) -> RepositoryReference:
    """Classify `raw` into shorthand, HTTPS URL or verbatim URL.

    Raises `InvalidReferenceError` when the owner or name would be empty.
    """

    value = (raw or "").strip()
    if not value:
        raise InvalidReferenceError("Please provide a GitHub repository URL or path")

    looks_like_url = "://" in value or host in value or value.startswith(f"{ssh_user}@")
    if "/" in value and not looks_like_url:
        segments = value.split("/")
        owner = segments[0].strip()
        name = strip_git_suffix(segments[1].strip())
        if not owner or not name:
            raise InvalidReferenceError(f"Invalid repository shorthand: {value!r} (expected owner/name)")
        return ShorthandReference(raw=value, owner=owner, name=name)

    prefix = https_prefix(host)
    if value.startswith(prefix):
        path = strip_git_suffix(value[len(prefix):].strip("/"))
        segments = path.split("/")
        if len(segments) < 2 or not segments[0] or not segments[1]:
            raise InvalidReferenceError(f"Invalid repository URL: {value!r} (expected {prefix}owner/name)")
        return HttpsReference(raw=value, owner=segments[0], name=strip_git_suffix(segments[1]))

    name = repository_name_from_url(value)
    if not name:
        raise InvalidReferenceError(f"Cannot derive a repository name from {value!r}")
    return OtherUrlReference(raw=value, name=name)


# scp-like form (`git@host:owner/name`) and URL form (`ssh://git@host[:port]/owner/name`).
_SCP_URL_RE = r"^{user}@(?P<host>[^:/]+):(?P<path>.+)$"
_SSH_SCHEME_URL_RE = r"^ssh://{user}@(?P<host>[^:/]+)(?::\d+)?/(?P<path>.+)$"


def _match_ssh_url(url: str, ssh_user: str) -> re.Match[str] | None:
    user = re.escape(ssh_user)
    for pattern in (_SSH_SCHEME_URL_RE, _SCP_URL_RE):
        match = re.match(pattern.format(user=user), url.strip())
        if match is not None:
            return match
    return None


def is_ssh_url(url: str, *, ssh_user: str = DEFAULT_SSH_USER) -> bool:
    return _match_ssh_url(url, ssh_user) is not None


def https_fallback_for(
    url: str,
    *,
    host: str = DEFAULT_HOST,
    ssh_user: str = DEFAULT_SSH_USER,
    alias_prefix: str = DEFAULT_ALIAS_PREFIX,
) -> str | None:
    """HTTPS equivalent of an SSH URL on `host` (or one of its aliases).

    Returns None for HTTPS URLs and for SSH URLs pointing at other hosts.
    """

    match = _match_ssh_url(url, ssh_user)
    if match is None:
        return None

    url_host = match.group("host")
    if url_host != host and not url_host.startswith(alias_prefix):
        return None

    path = strip_git_suffix(match.group("path").strip("/"))
    if not path:
        return None
    return f"{https_prefix(host)}{path}.git"
