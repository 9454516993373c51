from __future__ import annotations

from pathlib import Path

import pytest

from core.domain.models import InterpreterCandidate, MessageLevel
from core.errors import BootstrapError
from core.services.bootstrap import (
    bootstrap_node,
    bootstrap_python,
    choose_interpreter,
    create_virtualenv,
    detect_node_manager,
    detect_required_python_version,
    discover_interpreters,
    run_bootstrap,
    venv_activate_path,
)
from tests.fakes import FakeRunner, ScriptedOperator


def _creates_venv(workdir: Path, venv_dir: str = "venv"):
    def effect(call) -> None:
        activate = venv_activate_path(workdir / venv_dir)
        activate.parent.mkdir(parents=True, exist_ok=True)
        activate.write_text("# activate\n", encoding="utf-8")

    return effect


def test_required_python_version_from_marker(tmp_path: Path) -> None:
    manifest = tmp_path / "requirements.txt"
    manifest.write_text('requests\ndataclasses; python_version < "3.7"\n', encoding="utf-8")
    assert detect_required_python_version(manifest) == "3.7"

    manifest.write_text("requests==2.31.0\n", encoding="utf-8")
    assert detect_required_python_version(manifest) is None


def test_discover_interpreters_labels_generic_python(settings) -> None:
    runner = FakeRunner(available={"python3.11", "python3"})
    runner.on("python3", "--version", stdout="Python 3.12.1\n")

    candidates = discover_interpreters(runner, settings)

    assert [c.command for c in candidates] == ["python3.11", "python3"]
    assert candidates[-1].label == "python3 (v3.12)"


def test_declared_version_wins_without_menu(settings) -> None:
    runner = FakeRunner(available={"python3.10"})
    operator = ScriptedOperator()

    chosen = choose_interpreter([], required="3.10", runner=runner, operator=operator, manifest_name="requirements.txt")

    assert chosen == "python3.10"
    assert not operator.questions


@pytest.mark.parametrize(
    ("answer", "expected"),
    [("1", "python3.9"), ("", "python3"), ("9", "python3"), ("abc", "python3")],
)
def test_interpreter_menu(answer: str, expected: str) -> None:
    candidates = [
        InterpreterCandidate(command="python3.9", label="python3.9"),
        InterpreterCandidate(command="python3", label="python3 (v3.12)"),
    ]
    operator = ScriptedOperator(answers={"Choose a Python version": answer})

    chosen = choose_interpreter(
        candidates,
        required="3.7",
        runner=FakeRunner(),
        operator=operator,
        manifest_name="requirements.txt",
    )

    assert chosen == expected
    assert "Required Python 3.7 not found in system" in operator.texts(MessageLevel.WARNING)
    assert "  2. python3 (v3.12)" in operator.texts(MessageLevel.PLAIN)


def test_empty_candidate_list_uses_default(settings) -> None:
    operator = ScriptedOperator()

    chosen = choose_interpreter([], required=None, runner=FakeRunner(), operator=operator, manifest_name="r.txt")

    assert chosen == "python3"
    assert not operator.asked("Choose a Python version")


def test_create_virtualenv_with_venv(tmp_path: Path, settings) -> None:
    runner = FakeRunner(available={"python3"})
    runner.on("-m", "venv", effect=_creates_venv(tmp_path))

    venv_path = create_virtualenv(tmp_path, "python3", runner=runner, operator=ScriptedOperator(), settings=settings)

    assert venv_path == tmp_path / "venv"
    assert runner.calls[0].args == ["python3", "-m", "venv", "venv"]
    assert runner.calls[0].cwd == tmp_path


def test_create_virtualenv_falls_back_to_virtualenv(tmp_path: Path, settings) -> None:
    runner = FakeRunner(available={"python3"})
    runner.on("-m", "virtualenv", effect=_creates_venv(tmp_path))
    # venv leaves a broken directory behind without an activation script.
    runner.on("-m", "venv", effect=lambda call: (tmp_path / "venv").mkdir())
    operator = ScriptedOperator()

    create_virtualenv(tmp_path, "python3", runner=runner, operator=operator, settings=settings)

    assert [c.args for c in runner.calls] == [
        ["python3", "-m", "venv", "venv"],
        ["pip3", "install", "virtualenv"],
        ["python3", "-m", "virtualenv", "venv"],
    ]
    assert "Trying alternative approach with virtualenv..." in operator.texts(MessageLevel.WARNING)


def test_create_virtualenv_uses_virtualenv_binary_when_present(tmp_path: Path, settings) -> None:
    runner = FakeRunner(available={"python3", "virtualenv"})
    runner.on("-p", effect=_creates_venv(tmp_path))

    create_virtualenv(tmp_path, "python3.11", runner=runner, operator=ScriptedOperator(), settings=settings)

    assert runner.calls[-1].args == ["/usr/bin/virtualenv", "-p", "python3.11", "venv"]
    assert not runner.commands("pip3")


def test_create_virtualenv_persistent_failure(tmp_path: Path, settings) -> None:
    runner = FakeRunner(available={"python3"})

    with pytest.raises(BootstrapError, match="Failed to create virtual environment"):
        create_virtualenv(tmp_path, "python3", runner=runner, operator=ScriptedOperator(), settings=settings)


def test_bootstrap_python_installs_requirements(tmp_path: Path, settings) -> None:
    (tmp_path / "requirements.txt").write_text("requests\n", encoding="utf-8")
    runner = FakeRunner(available={"python3"})
    runner.on("-m", "venv", effect=_creates_venv(tmp_path))
    operator = ScriptedOperator(confirms={"virtual environment": True})

    assert bootstrap_python(tmp_path, runner=runner, operator=operator, settings=settings) is True

    pip_calls = [c.args[1:] for c in runner.calls if c.args[1:3] == ["-m", "pip"]]
    assert pip_calls == [
        ["-m", "pip", "install", "--upgrade", "pip"],
        ["-m", "pip", "install", "-r", "requirements.txt"],
    ]
    assert any("set up successfully" in m for m in operator.texts(MessageLevel.SUCCESS))


def test_bootstrap_python_declined(tmp_path: Path, settings) -> None:
    (tmp_path / "requirements.txt").write_text("requests\n", encoding="utf-8")
    runner = FakeRunner(available={"python3"})

    assert bootstrap_python(tmp_path, runner=runner, operator=ScriptedOperator(), settings=settings) is False
    assert not runner.calls


@pytest.mark.parametrize(
    ("lockfile", "manager"),
    [("yarn.lock", "yarn"), ("pnpm-lock.yaml", "pnpm"), (None, "npm")],
)
def test_node_manager_by_lockfile(tmp_path: Path, lockfile: str | None, manager: str, settings) -> None:
    (tmp_path / "package.json").write_text("{}", encoding="utf-8")
    if lockfile:
        (tmp_path / lockfile).write_text("", encoding="utf-8")
    runner = FakeRunner(available={manager})
    operator = ScriptedOperator(confirms={"install dependencies": True})

    assert detect_node_manager(tmp_path) == manager
    assert bootstrap_node(tmp_path, runner=runner, operator=operator, settings=settings) is True
    assert runner.calls[0].args == [manager, "install"]
    assert runner.calls[0].cwd == tmp_path


def test_run_bootstrap_reports_failures_and_continues(tmp_path: Path, settings) -> None:
    (tmp_path / "requirements.txt").write_text("requests\n", encoding="utf-8")
    (tmp_path / "package.json").write_text("{}", encoding="utf-8")
    runner = FakeRunner(available={"python3", "npm"})
    operator = ScriptedOperator(confirms={"virtual environment": True, "install dependencies": True})

    failed = run_bootstrap(tmp_path, runner=runner, operator=operator, settings=settings)

    assert failed == ["python"]
    assert ["npm", "install"] in [c.args for c in runner.calls]
    assert any("Failed to create virtual environment" in m for m in operator.texts(MessageLevel.ERROR))


def test_run_bootstrap_missing_node_manager(tmp_path: Path, settings) -> None:
    (tmp_path / "package.json").write_text("{}", encoding="utf-8")
    (tmp_path / "yarn.lock").write_text("", encoding="utf-8")
    operator = ScriptedOperator(confirms={"install dependencies": True})

    failed = run_bootstrap(tmp_path, runner=FakeRunner(), operator=operator, settings=settings)

    assert failed == ["node"]
    assert any("yarn is not installed" in m for m in operator.texts(MessageLevel.ERROR))
