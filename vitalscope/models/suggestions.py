from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

SuggestionPriority = Literal["high", "medium", "low"]
SuggestionSeverity = Literal["error", "warning", "info"]

PRIORITY_ORDER: tuple[SuggestionPriority, ...] = ("high", "medium", "low")
SEVERITY_ORDER: tuple[SuggestionSeverity, ...] = ("error", "warning", "info")


@dataclass(frozen=True, slots=True)
class Suggestion:
    id: str
    title: str
    description: str
    priority: SuggestionPriority
    severity: SuggestionSeverity
    metric: str  # vital name or "general"
    improvement_hint: str | None = None
    action: str | None = None
    doc_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
            "severity": self.severity,
            "metric": self.metric,
            **({"improvementHint": self.improvement_hint} if self.improvement_hint else {}),
            **({"action": self.action} if self.action else {}),
            **({"docUrl": self.doc_url} if self.doc_url else {}),
        }
