"""Operator (interactive user) contract."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import MessageLevel


@runtime_checkable
class Operator(Protocol):
    """Answers prompts and receives progress messages.

    Every question has a default that applies when the operator just presses
    return.
    """

    def confirm(self, question: str, *, default: bool) -> bool:
        ...

    def ask(self, question: str, *, default: str = "") -> str:
        ...

    def notify(self, level: MessageLevel, message: str) -> None:
        ...
