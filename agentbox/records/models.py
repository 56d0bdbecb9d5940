"""
Record store data types.
"""

from typing import Any, Dict, List

RawRecord = Dict[str, Any]


class StoreError(Exception):
    """Non-2xx response from the record store."""

    def __init__(self, status: int, body: str):
        super().__init__(f"Record store returned HTTP {status}")
        self.status = status
        self.body = body


def record_fields(record: RawRecord) -> Dict[str, Any]:
    fields = record.get("fields") if isinstance(record, dict) else None
    return fields if isinstance(fields, dict) else {}


def linked_ids(record: RawRecord, field_name: str) -> List[str]:
    """Ids in a link field, in store order. Absent or malformed -> []."""
    value = record_fields(record).get(field_name)
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str) and v]
