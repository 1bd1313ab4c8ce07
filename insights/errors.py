from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class CatalogUnavailable:
    """A reference list could not be loaded; selectors render it empty."""

    catalog: str
    reason: str


@dataclass(frozen=True)
class IncompletePayload:
    """Structured rejection returned instead of a payload when a precondition is missing."""

    kind: str
    missing: Tuple[str, ...]
    message: str

    def to_dict(self) -> dict:
        return {"error": "incomplete", "kind": self.kind, "missing": list(self.missing), "message": self.message}


class TransportFailure(Exception):
    def __init__(self, operation: str, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.status_code = status_code
