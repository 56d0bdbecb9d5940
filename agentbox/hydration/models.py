"""
Hydration data models.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class HydrationMode(str, Enum):
    """Which code path produced a composite document."""

    PREBUILT = "prebuilt"
    ASSEMBLED = "assembled"
    HYDRATED = "hydrated"


class ChildFailure(BaseModel):
    record_id: str
    error: str


class CategoryOutcome(BaseModel):
    """Per-category result of resolving linked child records.

    ``succeeded`` holds the knowledge text of every child that resolved, in
    relation order. Children that failed to fetch or had blank knowledge text
    land in ``failed`` and are left out of the document.
    """

    category: str
    succeeded: List[str] = Field(default_factory=list)
    failed: List[ChildFailure] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.succeeded)


class LinkedCounts(BaseModel):
    personas: int = 0
    domains: int = 0
    entities: int = 0
    references: int = 0


class HydrationResult(BaseModel):
    ok: bool = True
    mode: HydrationMode
    initiator_id: str
    xml: str
    linked_counts: Optional[LinkedCounts] = None
    outcomes: List[CategoryOutcome] = Field(default_factory=list)
    linked_resources: Optional[Dict[str, List[str]]] = None
    source: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        """Wire shape returned to the generation step."""
        payload: Dict[str, Any] = {
            "ok": True,
            "mode": self.mode.value,
            "initiatorId": self.initiator_id,
            "xml": self.xml,
        }
        if self.linked_counts is not None:
            payload["linkedCounts"] = self.linked_counts.model_dump()
        if self.linked_resources is not None:
            payload["linkedResources"] = self.linked_resources
        if self.source is not None:
            payload["source"] = self.source
        return payload
