"""
Client for the Airtable-style record store REST API.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

import httpx

from ..config.service import StoreSettings
from .models import RawRecord, StoreError

logger = logging.getLogger(__name__)


def escape_formula_string(value: str) -> str:
    """Escape a value for use inside a double-quoted formula literal."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def slug_formula(slug: str, field_name: str = "Slug") -> str:
    """Case-insensitive slug match, e.g. ``LOWER({Slug})="jane-doe"``."""
    return f'LOWER({{{field_name}}})="{escape_formula_string(slug.lower())}"'


class RecordClient:
    """Authenticated fetch/list/create/update against one store account.

    Non-2xx responses raise ``StoreError``; transport problems surface as
    ``httpx.HTTPError`` for the caller to handle.
    """

    def __init__(
        self,
        settings: StoreSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self.settings = settings
        self._client = httpx.AsyncClient(
            base_url=settings.api_base_url,
            headers=self._headers(),
            transport=transport,
            timeout=httpx.Timeout(timeout),
        )

    def _headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {"Content-Type": "application/json"}
        if self.settings.token:
            headers["Authorization"] = f"Bearer {self.settings.token}"
        return headers

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RecordClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    @staticmethod
    def _path(base_id: str, table: str, record_id: Optional[str] = None) -> str:
        path = f"/{quote(base_id, safe='')}/{quote(table, safe='')}"
        if record_id:
            path = f"{path}/{quote(record_id, safe='')}"
        return path

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if not response.is_success:
            raise StoreError(response.status_code, response.text)

    async def get_by_id(self, base_id: str, table: str, record_id: str) -> RawRecord:
        r = await self._client.get(self._path(base_id, table, record_id))
        self._raise_for_status(r)
        return r.json()

    async def list_by_formula(
        self,
        base_id: str,
        table: str,
        formula: Optional[str] = None,
        *,
        view: Optional[str] = None,
        max_records: Optional[int] = None,
        page_size: Optional[int] = None,
        fields: Optional[Iterable[str]] = None,
    ) -> List[RawRecord]:
        """List records matching ``formula``, following ``offset`` pagination."""
        params: List[tuple] = []
        if formula:
            params.append(("filterByFormula", formula))
        if view:
            params.append(("view", view))
        if max_records is not None:
            params.append(("maxRecords", str(max_records)))
        if page_size is not None:
            params.append(("pageSize", str(page_size)))
        for name in fields or []:
            params.append(("fields[]", name))

        records: List[RawRecord] = []
        offset: Optional[str] = None
        while True:
            page_params = params + ([("offset", offset)] if offset else [])
            r = await self._client.get(self._path(base_id, table), params=page_params)
            self._raise_for_status(r)
            data = r.json() or {}
            records.extend(data.get("records") or [])
            offset = data.get("offset")
            if not offset:
                break
            if max_records is not None and len(records) >= max_records:
                break
        if max_records is not None:
            records = records[:max_records]
        return records

    async def create_records(
        self,
        base_id: str,
        table: str,
        fields_list: List[Dict[str, Any]],
        *,
        typecast: bool = True,
    ) -> List[RawRecord]:
        body = {"records": [{"fields": f} for f in fields_list], "typecast": typecast}
        r = await self._client.post(self._path(base_id, table), json=body)
        self._raise_for_status(r)
        created = (r.json() or {}).get("records") or []
        logger.info("records_created table=%s count=%d", table, len(created))
        return created

    async def update_records(
        self,
        base_id: str,
        table: str,
        updates: List[Dict[str, Any]],
        *,
        typecast: bool = True,
    ) -> List[RawRecord]:
        """PATCH ``[{id, fields}]``; only the given fields change."""
        body = {
            "records": [{"id": u["id"], "fields": u.get("fields") or {}} for u in updates],
            "typecast": typecast,
        }
        r = await self._client.patch(self._path(base_id, table), json=body)
        self._raise_for_status(r)
        updated = (r.json() or {}).get("records") or []
        logger.info("records_updated table=%s count=%d", table, len(updated))
        return updated
