"""Uniform result shape returned by admin procedures."""

from dataclasses import dataclass
from typing import Any, Optional

from utils import to_json_data


@dataclass
class ActionResult:
    """
    {success, error?, data?} returned instead of raising across the admin boundary.

    status carries the HTTP status an API handler should answer with; it is
    not part of the serialized body.
    """
    success: bool
    error: Optional[str] = None
    data: Any = None
    status: int = 200

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, status: int = 400) -> "ActionResult":
        return cls(success=False, error=error, status=status)

    def to_dict(self) -> dict:
        result = {"success": self.success}
        if self.error is not None:
            result["error"] = self.error
        if self.data is not None:
            result["data"] = to_json_data(self.data)
        return result
