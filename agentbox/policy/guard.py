"""
Optional-capability guard.

Every tool backed by an external integration declares the configuration it
needs. Before any network call the guard checks each requirement; the first
missing one short-circuits into a ``Skipped`` outcome naming the key. Values
are never logged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Optional, TypeVar, Union

from .models import Skipped

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Requirement:
    key: str
    value: Optional[str]
    reason: Optional[str] = None

    @property
    def satisfied(self) -> bool:
        return bool(self.value and str(self.value).strip())

    def skip_reason(self) -> str:
        return self.reason or f"{self.key} not set"


def check_requirements(requirements: Iterable[Requirement]) -> Optional[Skipped]:
    """Return ``Skipped`` for the first unsatisfied requirement, else None."""
    for req in requirements:
        if not req.satisfied:
            logger.info("capability_skipped missing_key=%s", req.key)
            return Skipped(reason=req.skip_reason())
    return None


async def guard(
    requirements: Iterable[Requirement],
    body: Callable[[], Awaitable[T]],
) -> Union[T, Skipped]:
    """Run ``body`` only when every requirement is present."""
    skipped = check_requirements(requirements)
    if skipped is not None:
        return skipped
    return await body()
