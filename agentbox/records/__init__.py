"""
Record store access.

This module provides:
- ``RecordClient`` for fetch-by-id, list-by-formula, create and update
- ``StoreError`` for non-2xx store responses
"""

from .client import RecordClient, escape_formula_string, slug_formula
from .models import RawRecord, StoreError, linked_ids, record_fields

__all__ = [
    "RawRecord",
    "RecordClient",
    "StoreError",
    "escape_formula_string",
    "linked_ids",
    "record_fields",
    "slug_formula",
]
