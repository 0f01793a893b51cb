"""Stage outcomes and the uniform status envelope."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Result:
    """Success/failure outcome of a pipeline stage.

    Attributes:
        success: Whether the stage completed
        message: Human-readable reason, only set on failure
    """

    success: bool = True
    message: str = ""

    @classmethod
    def ok(cls) -> Result:
        return cls(success=True)

    @classmethod
    def error(cls, message: str) -> Result:
        return cls(success=False, message=message)

    @property
    def is_error(self) -> bool:
        return not self.success

    def to_status(self) -> dict[str, Any]:
        """Return the status document for this outcome."""
        if self.is_error:
            return status_document(self.message or "unknown error")
        return status_document()

    def __bool__(self) -> bool:
        return self.success


def status_document(error_message: str = "") -> dict[str, Any]:
    """Build a ``status`` document.

    The ``error`` field is only present when an error message is given.
    """
    is_error = bool(error_message)
    document: dict[str, Any] = {
        "type": "status",
        "status": "error" if is_error else "ok",
    }
    if is_error:
        document["error"] = error_message
    return document
