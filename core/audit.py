"""Change log of planner mutations."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


@dataclass
class ChangeEntry:
    action: str
    target: str
    changes: Dict[str, Any] = field(default_factory=dict)
    target_id: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ChangeLog:
    """In-memory record of what each store mutation touched."""

    def __init__(self, limit: int = 500) -> None:
        self.limit = limit
        self.entries: List[ChangeEntry] = []

    def record(
        self,
        action: str,
        target: str,
        changes: Optional[Dict[str, Any]] = None,
        target_id: Optional[str] = None,
    ) -> None:
        """Record a mutation; oldest entries drop off past ``limit``."""
        self.entries.append(
            ChangeEntry(action=action, target=target, changes=dict(changes or {}), target_id=target_id)
        )
        if len(self.entries) > self.limit:
            del self.entries[: len(self.entries) - self.limit]

    def as_dict(self) -> List[dict]:
        """Return log entries as dictionaries for display or inspection."""
        return [
            {
                "action": e.action,
                "target": e.target,
                "target_id": e.target_id,
                "changes": e.changes,
                "timestamp": e.timestamp.isoformat(),
            }
            for e in self.entries
        ]
