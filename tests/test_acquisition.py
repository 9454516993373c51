from __future__ import annotations

from pathlib import Path

import pytest

from core.domain.models import (
    CloneRequest,
    CloneState,
    MessageLevel,
    ResolvedSource,
    Transport,
)
from core.errors import CloneFailedError, InvalidReferenceError, ToolMissingError
from core.services.acquisition import (
    CloneWorkflow,
    acquire_repository,
    build_clone_command,
    ensure_git,
    prepare_clone,
)
from tests.fakes import SSH_DENIED, SSH_OK, FakeRunner, ScriptedOperator


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)


def test_build_clone_command_with_and_without_branch() -> None:
    assert build_clone_command("u", Path("d"), None) == ["git", "clone", "u", "d"]
    assert build_clone_command("u", Path("d"), "dev") == ["git", "clone", "-b", "dev", "u", "d"]


def test_shorthand_without_ssh_clones_over_https(runner: FakeRunner, operator, settings) -> None:
    runner.on("ssh", returncode=255, stderr=SSH_DENIED)

    outcome = acquire_repository("torvalds/linux", runner=runner, operator=operator, settings=settings)

    assert outcome.state is CloneState.DONE
    assert outcome.url == "https://github.com/torvalds/linux.git"
    assert runner.commands("git", "clone") == [
        ["git", "clone", "https://github.com/torvalds/linux.git", "linux"],
    ]
    assert not operator.asked("use SSH instead")


def test_shorthand_with_ssh_prefers_ssh(runner: FakeRunner, operator, settings) -> None:
    runner.on("ssh", returncode=1, stderr=SSH_OK)

    outcome = acquire_repository("owner/name", runner=runner, operator=operator, settings=settings)

    assert operator.asked("use SSH instead")
    assert outcome.url == "git@github.com:owner/name.git"


def test_operator_can_decline_ssh(runner: FakeRunner, settings) -> None:
    runner.on("ssh", returncode=1, stderr=SSH_OK)
    operator = ScriptedOperator(confirms={"use SSH instead": False})

    outcome = acquire_repository("https://github.com/owner/name.git", runner=runner, operator=operator, settings=settings)

    assert outcome.url == "https://github.com/owner/name.git"
    assert outcome.target_dir == Path("name")


def test_owner_override(runner: FakeRunner, settings) -> None:
    runner.on("ssh", returncode=255, stderr=SSH_DENIED)
    operator = ScriptedOperator(
        confirms={"Is this correct": False},
        answers={"correct GitHub username": "someone-else"},
    )

    outcome = acquire_repository("torvalds/linux", runner=runner, operator=operator, settings=settings)

    assert outcome.url == "https://github.com/someone-else/linux.git"


def test_ssh_reference_with_dir_and_branch_falls_back_to_https(runner: FakeRunner, operator, settings) -> None:
    runner.on("git", "clone", "git@github.com:user/repo.git", returncode=128)

    outcome = acquire_repository(
        "git@github.com:user/repo.git",
        target_dir="custom-dir",
        branch="develop",
        runner=runner,
        operator=operator,
        settings=settings,
    )

    assert runner.commands("git", "clone") == [
        ["git", "clone", "-b", "develop", "git@github.com:user/repo.git", "custom-dir"],
        ["git", "clone", "-b", "develop", "https://github.com/user/repo.git", "custom-dir"],
    ]
    assert outcome.url == "https://github.com/user/repo.git"
    assert any("https://github.com/user/repo.git" in q for q in operator.questions)
    # No probe for verbatim URLs, no branch question when the branch is given.
    assert not runner.commands("ssh")
    assert not operator.asked("specific branch")


def test_declined_fallback_fails(runner: FakeRunner, settings) -> None:
    runner.on("git", "clone", returncode=128)
    operator = ScriptedOperator(confirms={"try with HTTPS": False})

    with pytest.raises(CloneFailedError) as excinfo:
        acquire_repository(
            "git@github.com:user/repo.git",
            target_dir="custom-dir",
            branch="develop",
            runner=runner,
            operator=operator,
            settings=settings,
        )

    assert excinfo.value.attempted_urls == ["git@github.com:user/repo.git"]
    assert len(runner.commands("git", "clone")) == 1


def test_https_failure_offers_no_fallback(runner: FakeRunner, operator, settings) -> None:
    runner.on("ssh", returncode=255, stderr=SSH_DENIED)
    runner.on("git", "clone", returncode=128)

    with pytest.raises(CloneFailedError):
        acquire_repository("owner/name", runner=runner, operator=operator, settings=settings)

    assert len(runner.commands("git", "clone")) == 1
    assert not operator.asked("try with HTTPS")
    assert "Failed to clone repository. Please check:" in operator.texts(MessageLevel.ERROR)
    assert "  - Your internet connection" in operator.texts(MessageLevel.PLAIN)


def test_blank_branch_answer_keeps_default_branch(runner: FakeRunner, settings) -> None:
    runner.on("ssh", returncode=255)
    operator = ScriptedOperator(confirms={"specific branch": True}, answers={"branch name": ""})

    acquire_repository("owner/name", runner=runner, operator=operator, settings=settings)

    assert runner.commands("git", "clone") == [["git", "clone", "https://github.com/owner/name.git", "name"]]


def test_branch_answer_is_passed_to_clone(runner: FakeRunner, settings) -> None:
    runner.on("ssh", returncode=255)
    operator = ScriptedOperator(confirms={"specific branch": True}, answers={"branch name": "feature/x"})

    request = prepare_clone(
        "owner/name",
        target_dir=None,
        branch=None,
        runner=runner,
        operator=operator,
        settings=settings,
    )

    assert request.branch == "feature/x"
    assert request.source.transport is Transport.HTTPS


def test_invalid_reference_is_a_usage_error(runner: FakeRunner, operator, settings) -> None:
    with pytest.raises(InvalidReferenceError):
        acquire_repository("owner/", runner=runner, operator=operator, settings=settings)
    assert not runner.commands("git", "clone")


def test_fallback_failure_is_terminal(runner: FakeRunner, operator, settings) -> None:
    runner.on("git", "clone", returncode=128)
    request = CloneRequest(
        source=ResolvedSource(url="git@github-work:user/repo.git", transport=Transport.SSH),
        target_dir=Path("repo"),
    )

    outcome = CloneWorkflow(runner=runner, operator=operator, settings=settings).run(request)

    assert outcome.state is CloneState.FAILED
    assert outcome.url is None
    assert outcome.attempted_urls == ["git@github-work:user/repo.git", "https://github.com/user/repo.git"]
    assert any("HTTPS clone also failed" in m for m in operator.texts(MessageLevel.ERROR))


def test_missing_git_without_apt(operator, settings) -> None:
    runner = FakeRunner(available=set())

    with pytest.raises(ToolMissingError):
        ensure_git(runner, operator)


def test_missing_git_installed_with_apt(operator) -> None:
    runner = FakeRunner(available={"apt-get"})
    runner.on("install", "git", effect=lambda call: runner.available.add("git"))

    ensure_git(runner, operator)

    assert ["sudo", "apt-get", "install", "-y", "git"] in runner.commands("sudo")


def test_bootstrap_can_be_skipped(runner: FakeRunner, operator, settings, tmp_path: Path) -> None:
    runner.on("ssh", returncode=255)

    def make_python_repo(call) -> None:
        target = tmp_path / call.args[-1]
        target.mkdir()
        (target / "requirements.txt").write_text("requests\n", encoding="utf-8")

    runner.on("git", "clone", effect=make_python_repo)

    acquire_repository("owner/name", runner=runner, operator=operator, settings=settings, bootstrap=False)

    assert not operator.asked("virtual environment")
    assert any("successfully cloned and set up" in m for m in operator.texts(MessageLevel.SUCCESS))
    assert f"Working directory for setup: {(tmp_path / 'name').resolve()}" in operator.texts(MessageLevel.INFO)
