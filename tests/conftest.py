from __future__ import annotations

import pytest

from core.config import AppSettings
from tests.fakes import FakeRunner, ScriptedOperator


@pytest.fixture
def settings(monkeypatch) -> AppSettings:
    for key in ("GITHUB_HOST", "SSH_USER", "VENV_DIR", "HOST_ALIAS_PREFIX"):
        monkeypatch.delenv(f"GITSTRAP_{key}", raising=False)
    return AppSettings(_env_file=None)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner(available={"git", "ssh", "python3"})


@pytest.fixture
def operator() -> ScriptedOperator:
    return ScriptedOperator()
