"""
Context hydration for Content Initiators.

Turns one root record id into a single XML bundle: the initiator's own goal,
content type and output type, followed by the knowledge text of every linked
Persona, Domain, Entity and Reference record. One call from the generation
step gets everything it needs; the fan-out to linked records happens here.

Failure policy:
- missing store configuration -> ``Skipped`` (no network call)
- root fetch fails -> ``Failure`` with the store status and body
- a child fetch fails or yields blank text -> the child is left out and
  recorded in its ``CategoryOutcome``; the bundle is still returned
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Union
from xml.sax.saxutils import escape

import httpx

from ..config.service import CategorySpec, StoreSettings
from ..monitoring.metrics import hydration_children_total, hydrations_total
from ..policy.guard import Requirement, guard
from ..policy.models import Failure, Skipped
from ..records.client import RecordClient
from ..records.models import RawRecord, StoreError, linked_ids, record_fields
from .models import (
    CategoryOutcome,
    ChildFailure,
    HydrationMode,
    HydrationResult,
    LinkedCounts,
)

logger = logging.getLogger(__name__)

HydrationOutcome = Union[HydrationResult, Skipped, Failure]

# (field on the initiator, element name in the bundle)
INITIATOR_FIELDS = (
    ("Goal", "goal"),
    ("Content Type", "contentType"),
    ("Output Type", "outputType"),
)


def store_requirements(
    settings: StoreSettings, base_id: Optional[str]
) -> List[Requirement]:
    """Configuration every store-backed operation needs."""
    return [
        Requirement(
            "AIRTABLE_PAT",
            settings.token,
            "Airtable not configured (no AIRTABLE_PAT/API key)",
        ),
        Requirement(
            "AIRTABLE_BASE_ID",
            base_id,
            "No Airtable Base ID configured (pass baseId or set AIRTABLE_BASE_ID)",
        ),
    ]


def _scalar_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, list):
        value = ", ".join(str(v) for v in value if v is not None and v != "")
    text = str(value)
    return text if text.strip() else None


def _attr(value: str) -> str:
    return escape(value, {'"': "&quot;"})


def initiator_lines(initiator_id: str, fields: Dict[str, Any]) -> List[str]:
    lines = [f'  <initiator id="{_attr(initiator_id)}">']
    for field_name, tag in INITIATOR_FIELDS:
        text = _scalar_text(fields.get(field_name))
        if text is not None:
            lines.append(f"    <{tag}>{escape(text)}</{tag}>")
    lines.append("  </initiator>")
    return lines


def assemble_hydrated(
    initiator_id: str, fields: Dict[str, Any], outcomes: Sequence[CategoryOutcome]
) -> str:
    """Bundle with knowledge text embedded verbatim; empty categories omitted."""
    lines = ["<bundle>"] + initiator_lines(initiator_id, fields)
    for outcome in outcomes:
        if not outcome.succeeded:
            continue
        lines.append(f"  <{outcome.category}>")
        lines.extend(f"    {text}" for text in outcome.succeeded)
        lines.append(f"  </{outcome.category}>")
    lines.append("</bundle>")
    return "\n".join(lines)


def assemble_by_ids(
    initiator_id: str, fields: Dict[str, Any], linked: Dict[str, List[str]]
) -> str:
    """Legacy bundle that only references linked ids."""
    lines = ["<bundle>"] + initiator_lines(initiator_id, fields)
    for category, ids in linked.items():
        if ids:
            lines.append(f'  <{category} linkedIds="{_attr(",".join(ids))}" />')
    lines.append("</bundle>")
    return "\n".join(lines)


class ContextHydrator:
    """Builds composite XML documents from a root record and its links."""

    def __init__(
        self,
        settings: StoreSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self._transport = transport

    def _client(self) -> RecordClient:
        return RecordClient(self.settings, transport=self._transport)

    async def hydrate(
        self, initiator_id: str, base_id: Optional[str] = None
    ) -> HydrationOutcome:
        """Fully hydrated bundle for ``initiator_id``. Never raises."""
        base = self.settings.resolve_base_id(base_id)
        return await guard(
            store_requirements(self.settings, base),
            lambda: self._run(self._hydrate, initiator_id, base),
        )

    async def bundle(
        self, initiator_id: str, base_id: Optional[str] = None
    ) -> HydrationOutcome:
        """Prebuilt bundle if the store has one, else an id-only bundle."""
        base = self.settings.resolve_base_id(base_id)
        return await guard(
            store_requirements(self.settings, base),
            lambda: self._run(self._bundle, initiator_id, base),
        )

    async def _run(self, fn, initiator_id: str, base_id: str) -> HydrationOutcome:
        try:
            async with self._client() as client:
                return await fn(client, initiator_id, base_id)
        except StoreError as e:
            logger.warning(
                "initiator_fetch_failed initiator=%s status=%s", initiator_id, e.status
            )
            return Failure(status=e.status, reason=e.body)
        except Exception as e:  # noqa: BLE001
            logger.error(f"Hydration failed for {initiator_id}: {e}")
            return Failure(error=str(e))

    async def _fetch_root(
        self, client: RecordClient, initiator_id: str, base_id: str
    ) -> RawRecord:
        return await client.get_by_id(
            base_id, self.settings.initiator_table, initiator_id
        )

    async def _hydrate(
        self, client: RecordClient, initiator_id: str, base_id: str
    ) -> HydrationResult:
        root = await self._fetch_root(client, initiator_id, base_id)

        outcomes = await asyncio.gather(
            *(
                self._resolve_category(
                    client, base_id, spec, linked_ids(root, spec.relation_field)
                )
                for spec in self.settings.categories
            )
        )

        xml = assemble_hydrated(initiator_id, record_fields(root), outcomes)
        counts = LinkedCounts(**{o.category: o.count for o in outcomes})
        hydrations_total.labels(mode=HydrationMode.HYDRATED.value).inc()
        logger.info(
            "initiator_hydrated initiator=%s personas=%d domains=%d entities=%d references=%d",
            initiator_id,
            counts.personas,
            counts.domains,
            counts.entities,
            counts.references,
        )
        return HydrationResult(
            mode=HydrationMode.HYDRATED,
            initiator_id=initiator_id,
            xml=xml,
            linked_counts=counts,
            outcomes=list(outcomes),
        )

    async def _resolve_category(
        self,
        client: RecordClient,
        base_id: str,
        spec: CategorySpec,
        ids: List[str],
    ) -> CategoryOutcome:
        outcome = CategoryOutcome(category=spec.name)
        if not ids:
            return outcome

        results = await asyncio.gather(
            *(self._fetch_knowledge(client, base_id, spec, rid) for rid in ids),
            return_exceptions=True,
        )
        for rid, res in zip(ids, results):
            if isinstance(res, BaseException):
                if not isinstance(res, Exception):
                    raise res
                error = (
                    f"HTTP {res.status}" if isinstance(res, StoreError) else str(res)
                )
                outcome.failed.append(ChildFailure(record_id=rid, error=error))
            elif res:
                outcome.succeeded.append(res)
            else:
                outcome.failed.append(
                    ChildFailure(
                        record_id=rid, error=f"empty {spec.knowledge_field} field"
                    )
                )

        for failure in outcome.failed:
            logger.warning(
                "child_unresolved category=%s record=%s error=%s",
                spec.name,
                failure.record_id,
                failure.error,
            )
        hydration_children_total.labels(category=spec.name, result="resolved").inc(
            len(outcome.succeeded)
        )
        hydration_children_total.labels(category=spec.name, result="lost").inc(
            len(outcome.failed)
        )
        return outcome

    async def _fetch_knowledge(
        self, client: RecordClient, base_id: str, spec: CategorySpec, record_id: str
    ) -> str:
        record = await client.get_by_id(base_id, spec.table, record_id)
        text = record_fields(record).get(spec.knowledge_field)
        if isinstance(text, str) and text:
            return text
        return ""

    async def _bundle(
        self, client: RecordClient, initiator_id: str, base_id: str
    ) -> HydrationResult:
        root = await self._fetch_root(client, initiator_id, base_id)
        fields = record_fields(root)

        prebuilt = fields.get(self.settings.bundle_field)
        if isinstance(prebuilt, str) and prebuilt.strip():
            hydrations_total.labels(mode=HydrationMode.PREBUILT.value).inc()
            return HydrationResult(
                mode=HydrationMode.PREBUILT,
                initiator_id=initiator_id,
                xml=prebuilt,
                source="Content Initiator bundle field",
            )

        linked = {
            spec.name: linked_ids(root, spec.relation_field)
            for spec in self.settings.categories
        }
        hydrations_total.labels(mode=HydrationMode.ASSEMBLED.value).inc()
        return HydrationResult(
            mode=HydrationMode.ASSEMBLED,
            initiator_id=initiator_id,
            xml=assemble_by_ids(initiator_id, fields, linked),
            linked_resources=linked,
        )
