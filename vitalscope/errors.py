"""Exception types raised by the instrumentation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class VitalscopeError(Exception):
    pass


class ProviderContextError(VitalscopeError):
    """Session controls were used outside of a `provide(...)` block."""


class UnsupportedEntryTypeError(VitalscopeError):
    """The platform feed cannot observe the requested entry type."""

    def __init__(self, entry_type: str) -> None:
        super().__init__(f"Unsupported performance entry type: {entry_type}")
        self.entry_type = entry_type


class CdpError(VitalscopeError):
    pass


@dataclass
class CliError(VitalscopeError):
    """Structured CLI failure (printed to stderr, non-zero exit)."""

    command: str
    reason: str
    suggestion: str = ""
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        msg = f"[{self.command}] failed: {self.reason}"
        if self.suggestion:
            msg += f". Suggestion: {self.suggestion}"
        return msg

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": True,
            "command": self.command,
            "reason": self.reason,
            "suggestion": self.suggestion,
            "details": self.details,
        }
