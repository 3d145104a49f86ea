"""Outcome objects returned by service functions.

Services report what happened; routes decide how to show it.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass
class OperationResult:
    ok: bool
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def success(cls, data=None):
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, error):
        return cls(ok=False, error=str(error))

    def to_dict(self):
        return {"ok": self.ok, "data": self.data, "error": self.error}


@dataclass
class ItemOutcome:
    item: str
    ok: bool
    error: Optional[str] = None
    data: Any = None


@dataclass
class BatchResult:
    """Per-item outcomes of a batch. One failure never aborts the rest."""

    outcomes: List[ItemOutcome] = field(default_factory=list)

    def add_success(self, item, data=None):
        self.outcomes.append(ItemOutcome(item=str(item), ok=True, data=data))

    def add_failure(self, item, error):
        self.outcomes.append(ItemOutcome(item=str(item), ok=False, error=str(error)))

    @property
    def succeeded(self):
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self):
        return [o for o in self.outcomes if not o.ok]

    @property
    def ok(self):
        return not self.failed

    def summary(self):
        return {
            "total": len(self.outcomes),
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "items": [
                {"item": o.item, "ok": o.ok, "error": o.error, "data": o.data}
                for o in self.outcomes
            ],
        }
