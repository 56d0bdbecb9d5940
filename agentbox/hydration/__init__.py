"""
Context hydration for Content Initiators.

This module provides:
- ``ContextHydrator.hydrate``: root record plus embedded linked knowledge
- ``ContextHydrator.bundle``: prebuilt or id-only legacy bundle
"""

from .models import (
    CategoryOutcome,
    ChildFailure,
    HydrationMode,
    HydrationResult,
    LinkedCounts,
)
from .service import ContextHydrator, store_requirements

__all__ = [
    "CategoryOutcome",
    "ChildFailure",
    "ContextHydrator",
    "HydrationMode",
    "HydrationResult",
    "LinkedCounts",
    "store_requirements",
]
