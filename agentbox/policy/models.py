"""
Outcome models shared by the guard, the hydrator and the tools.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel


class Skipped(BaseModel):
    """An integration is not configured; the caller should proceed without it."""

    ok: bool = False
    skipped: bool = True
    reason: str

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump()


class Failure(BaseModel):
    """An integration is configured but the call did not succeed.

    ``status``/``reason`` carry a non-2xx store or upstream response,
    ``error`` carries the message of an unexpected exception.
    """

    ok: bool = False
    status: Optional[int] = None
    reason: Optional[str] = None
    error: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
