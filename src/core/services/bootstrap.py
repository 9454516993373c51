"""Post-clone bootstrap (Python virtualenv, Node dependencies).

Both steps are optional, interactive and best-effort: a failure is reported
to the operator and the run continues, because the clone itself already
succeeded.
"""

from __future__ import annotations

import re
import shutil
import sys
from pathlib import Path

from core.config import AppSettings
from core.domain.models import InterpreterCandidate, MessageLevel
from core.errors import BootstrapError
from core.interfaces.operator import Operator
from core.interfaces.runner import CommandRunner
from core.log_config import get_logger

logger = get_logger(__name__)

DEFAULT_PYTHON = "python3"

# First match wins; npm when no lockfile is present.
NODE_LOCKFILES: tuple[tuple[str, str], ...] = (
    ("yarn.lock", "yarn"),
    ("pnpm-lock.yaml", "pnpm"),
)
DEFAULT_NODE_MANAGER = "npm"

_VERSION_RE = re.compile(r"[0-9]+\.[0-9]+")


def _scripts_dir(venv_path: Path) -> Path:
    return venv_path / ("Scripts" if sys.platform.startswith("win") else "bin")


def venv_activate_path(venv_path: Path) -> Path:
    return _scripts_dir(venv_path) / "activate"


def venv_python_path(venv_path: Path) -> Path:
    return _scripts_dir(venv_path) / ("python.exe" if sys.platform.startswith("win") else "python")


def detect_required_python_version(manifest: Path) -> str | None:
    """First `X.Y` on the first line mentioning `python_version`, if any."""

    try:
        text = manifest.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None

    for line in text.splitlines():
        if "python_version" not in line:
            continue
        match = _VERSION_RE.search(line)
        if match:
            return match.group(0)
    return None


def discover_interpreters(runner: CommandRunner, settings: AppSettings) -> list[InterpreterCandidate]:
    candidates: list[InterpreterCandidate] = []
    for version in settings.python_versions:
        command = f"python{version}"
        if runner.which(command):
            candidates.append(InterpreterCandidate(command=command, label=command))

    if runner.which(DEFAULT_PYTHON):
        result = runner.run([DEFAULT_PYTHON, "--version"], capture=True)
        match = _VERSION_RE.search(result.output)
        label = f"{DEFAULT_PYTHON} (v{match.group(0)})" if match else DEFAULT_PYTHON
        candidates.append(InterpreterCandidate(command=DEFAULT_PYTHON, label=label))

    logger.debug("interpreters found: %s", [c.command for c in candidates])
    return candidates


def choose_interpreter(
    candidates: list[InterpreterCandidate],
    *,
    required: str | None,
    runner: CommandRunner,
    operator: Operator,
    manifest_name: str,
) -> str:
    """Pick the interpreter for the new environment.

    The manifest's declared version wins when installed; otherwise the
    operator chooses from a numbered menu, blank meaning `python3`.
    """

    if required:
        operator.notify(MessageLevel.INFO, f"Python version {required} required in {manifest_name}")
        command = f"python{required}"
        if runner.which(command):
            operator.notify(MessageLevel.SUCCESS, f"Using Python {required} as required by {manifest_name}")
            return command
        operator.notify(MessageLevel.WARNING, f"Required Python {required} not found in system")
    else:
        operator.notify(MessageLevel.INFO, f"No Python version specified in {manifest_name}")

    if not candidates:
        operator.notify(MessageLevel.WARNING, "No alternative Python versions found. Using default Python 3.")
        return DEFAULT_PYTHON

    operator.notify(MessageLevel.PLAIN, "Available Python versions:")
    for index, candidate in enumerate(candidates, start=1):
        operator.notify(MessageLevel.PLAIN, f"  {index}. {candidate.label}")

    choice = operator.ask(
        f"Choose a Python version (1-{len(candidates)}) or press Enter for default {DEFAULT_PYTHON}",
        default="",
    ).strip()
    if not choice:
        operator.notify(MessageLevel.INFO, f"Using default {DEFAULT_PYTHON}")
        return DEFAULT_PYTHON

    if choice.isdigit() and 1 <= int(choice) <= len(candidates):
        selected = candidates[int(choice) - 1]
        operator.notify(MessageLevel.INFO, f"Using {selected.label}")
        return selected.command

    operator.notify(MessageLevel.WARNING, "Invalid selection. Using default Python 3.")
    return DEFAULT_PYTHON


def create_virtualenv(
    workdir: Path,
    python: str,
    *,
    runner: CommandRunner,
    operator: Operator,
    settings: AppSettings,
) -> Path:
    """Create `<workdir>/<venv_dir>` with `python -m venv`, falling back to virtualenv."""

    venv_path = workdir / settings.venv_dir

    operator.notify(MessageLevel.INFO, f"Creating virtual environment with {python}...")
    runner.run([python, "-m", "venv", settings.venv_dir], cwd=workdir)
    if venv_activate_path(venv_path).is_file():
        return venv_path

    operator.notify(MessageLevel.WARNING, "Virtual environment activation script not found!")
    operator.notify(MessageLevel.WARNING, "Trying alternative approach with virtualenv...")

    if not runner.which("virtualenv"):
        operator.notify(MessageLevel.INFO, "Installing virtualenv...")
        runner.run(["pip3", "install", "virtualenv"], cwd=workdir)

    shutil.rmtree(venv_path, ignore_errors=True)

    virtualenv = runner.which("virtualenv")
    if virtualenv:
        args = [virtualenv, "-p", python, settings.venv_dir]
    else:
        args = [python, "-m", "virtualenv", settings.venv_dir]
    runner.run(args, cwd=workdir)

    if not venv_activate_path(venv_path).is_file():
        raise BootstrapError(
            "Failed to create virtual environment. Please create it manually. "
            f"You can try: {python} -m virtualenv {settings.venv_dir}"
        )
    return venv_path


def bootstrap_python(workdir: Path, *, runner: CommandRunner, operator: Operator, settings: AppSettings) -> bool:
    """Offer and build a virtualenv when the Python manifest is present.

    Returns True when an environment was set up.
    """

    manifest = workdir / settings.python_manifest
    if not manifest.is_file():
        return False
    if not operator.confirm("Python project detected. Would you like to set up a virtual environment?", default=False):
        return False

    operator.notify(MessageLevel.PLAIN, "Setting up Python virtual environment...")
    candidates = discover_interpreters(runner, settings)
    python = choose_interpreter(
        candidates,
        required=detect_required_python_version(manifest),
        runner=runner,
        operator=operator,
        manifest_name=settings.python_manifest,
    )

    venv_path = create_virtualenv(workdir, python, runner=runner, operator=operator, settings=settings)
    venv_python = str(venv_python_path(venv_path.resolve()))

    if not runner.run([venv_python, "-m", "pip", "install", "--upgrade", "pip"], cwd=workdir).ok:
        operator.notify(MessageLevel.WARNING, "Could not upgrade pip inside the virtual environment")

    install = runner.run([venv_python, "-m", "pip", "install", "-r", settings.python_manifest], cwd=workdir)
    if not install.ok:
        raise BootstrapError(f"Failed to install dependencies from {settings.python_manifest}")

    operator.notify(MessageLevel.SUCCESS, f"Virtual environment set up successfully using {python}")
    operator.notify(MessageLevel.INFO, f"Activate it with: source {venv_activate_path(Path(settings.venv_dir))}")
    return True


def detect_node_manager(workdir: Path) -> str:
    for lockfile, manager in NODE_LOCKFILES:
        if (workdir / lockfile).is_file():
            return manager
    return DEFAULT_NODE_MANAGER


def bootstrap_node(workdir: Path, *, runner: CommandRunner, operator: Operator, settings: AppSettings) -> bool:
    """Offer `<manager> install` when the Node manifest is present."""

    if not (workdir / settings.node_manifest).is_file():
        return False
    if not operator.confirm("React/Node.js project detected. Would you like to install dependencies?", default=False):
        return False

    manager = detect_node_manager(workdir)
    if not runner.which(manager):
        raise BootstrapError(f"{manager} is not installed; run `{manager} install` manually")

    operator.notify(MessageLevel.PLAIN, f"Installing dependencies with {manager}...")
    if not runner.run([manager, "install"], cwd=workdir).ok:
        raise BootstrapError(f"`{manager} install` failed")

    operator.notify(MessageLevel.SUCCESS, "Dependencies installed successfully.")
    return True


def run_bootstrap(workdir: Path, *, runner: CommandRunner, operator: Operator, settings: AppSettings) -> list[str]:
    """Run every bootstrap step; returns the names of the steps that failed."""

    failed: list[str] = []
    steps = (("python", bootstrap_python), ("node", bootstrap_node))
    for name, step in steps:
        try:
            step(workdir, runner=runner, operator=operator, settings=settings)
        except BootstrapError as exc:
            logger.debug("bootstrap step %s failed: %s", name, exc)
            operator.notify(MessageLevel.ERROR, str(exc))
            failed.append(name)
    return failed
