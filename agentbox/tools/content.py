"""
XML-aware content tools.

These tools understand the bundling architecture: a Content Initiator links
Personas, Domains, Entities and References, and the generation step receives
their knowledge text as one XML bundle.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import httpx
from pydantic import BaseModel, ConfigDict, Field

from ..hydration.service import store_requirements
from ..policy.guard import guard
from ..policy.models import Failure
from ..records.client import RecordClient, slug_formula
from ..records.models import StoreError, record_fields
from .models import Tool, ToolContext

logger = logging.getLogger(__name__)


class _Input(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class HydratedContextInput(_Input):
    initiator_id: str = Field(
        alias="initiatorId", description="Content Initiator record ID (rec...)"
    )
    base_id: Optional[str] = Field(
        default=None, alias="baseId", description="Airtable Base ID (defaults to env)"
    )


class CreateContentRequestInput(_Input):
    base_id: Optional[str] = Field(
        default=None, alias="baseId", description="Airtable Base ID (defaults to env)"
    )
    goal: str = Field(description="Content goal/objective")
    content_type: Optional[str] = Field(
        default=None,
        alias="contentType",
        description="Type of content (blog, social, video, etc.)",
    )
    output_type: Optional[str] = Field(
        default=None, alias="outputType", description="Output format"
    )
    persona_slugs: Optional[List[str]] = Field(
        default=None, alias="personaSlugs", description="Persona slugs to link"
    )
    domain_slugs: Optional[List[str]] = Field(
        default=None, alias="domainSlugs", description="Domain slugs to link"
    )


class SlugInput(_Input):
    base_id: Optional[str] = Field(
        default=None, alias="baseId", description="Airtable Base ID (defaults to env)"
    )
    slug: str = Field(description="Record slug")


class UpdateContentOutputInput(_Input):
    base_id: Optional[str] = Field(
        default=None, alias="baseId", description="Airtable Base ID (defaults to env)"
    )
    initiator_id: str = Field(
        alias="initiatorId", description="Content Initiator record ID"
    )
    output: str = Field(description="Generated content")
    status: Optional[str] = Field(
        default=None, description='Status (e.g., "Generated", "Ready for Review")'
    )
    metadata: Optional[Dict[str, Any]] = Field(
        default=None, description="Additional metadata to store"
    )


async def store_call(
    ctx: ToolContext,
    base_id: Optional[str],
    body: Callable[[RecordClient, str], Awaitable[Any]],
) -> Any:
    """Guard on store configuration, then run ``body`` with an open client.

    ``StoreError`` becomes a ``Failure`` carrying the status and raw body.
    """

    async def _call() -> Any:
        try:
            async with ctx.record_client() as client:
                return await body(client, base_id)  # type: ignore[arg-type]
        except StoreError as e:
            return Failure(status=e.status, reason=e.body)

    return await guard(store_requirements(ctx.config.store, base_id), _call)


async def get_hydrated_content_context(
    ctx: ToolContext, args: HydratedContextInput
) -> Any:
    return await ctx.hydrator().hydrate(args.initiator_id, args.base_id)


async def get_content_bundle(ctx: ToolContext, args: HydratedContextInput) -> Any:
    return await ctx.hydrator().bundle(args.initiator_id, args.base_id)


async def _resolve_slugs(
    client: RecordClient,
    base_id: str,
    table: str,
    slug_field: str,
    slugs: List[str],
) -> Tuple[List[str], List[str]]:
    """Map slugs to record ids. Returns (ids, unresolved slugs)."""
    ids: List[str] = []
    unresolved: List[str] = []
    for slug in slugs:
        try:
            records = await client.list_by_formula(
                base_id, table, slug_formula(slug, slug_field), max_records=1
            )
        except StoreError as e:
            logger.warning(
                "slug_lookup_failed table=%s slug=%s status=%s", table, slug, e.status
            )
            records = []
        except httpx.HTTPError as e:
            logger.warning("slug_lookup_failed table=%s slug=%s error=%s", table, slug, e)
            records = []
        if records and records[0].get("id"):
            ids.append(records[0]["id"])
        else:
            unresolved.append(slug)
    return ids, unresolved


async def create_content_request(
    ctx: ToolContext, args: CreateContentRequestInput
) -> Any:
    settings = ctx.config.store
    base_id = settings.resolve_base_id(args.base_id)

    async def body(client: RecordClient, base: str) -> Any:
        fields: Dict[str, Any] = {"Goal": args.goal}
        if args.content_type:
            fields["Content Type"] = args.content_type
        if args.output_type:
            fields["Output Type"] = args.output_type

        # Links need record ids; slugs that do not resolve are kept in a note field
        for category, slugs, note_field in (
            ("personas", args.persona_slugs, "Persona Slugs (Note)"),
            ("domains", args.domain_slugs, "Domain Slugs (Note)"),
        ):
            if not slugs:
                continue
            spec = settings.category(category)
            ids, unresolved = await _resolve_slugs(
                client, base, spec.table, settings.slug_field, slugs
            )
            if ids:
                fields[spec.relation_field] = ids
            if unresolved:
                fields[note_field] = ", ".join(unresolved)

        created = await client.create_records(base, settings.initiator_table, [fields])
        if not created:
            return Failure(error="Record store returned no created records")
        return {
            "ok": True,
            "recordId": created[0].get("id"),
            "fields": record_fields(created[0]),
        }

    return await store_call(ctx, base_id, body)


async def _context_by_slug(ctx: ToolContext, category: str, args: SlugInput) -> Any:
    settings = ctx.config.store
    spec = settings.category(category)
    base_id = settings.resolve_base_id(args.base_id)

    async def body(client: RecordClient, base: str) -> Any:
        records = await client.list_by_formula(
            base, spec.table, slug_formula(args.slug, settings.slug_field)
        )
        if not records:
            return Failure(reason=f"No {spec.label} found with slug: {args.slug}")
        record = records[0]
        fields = record_fields(record)
        return {
            "ok": True,
            "slug": args.slug,
            "xml": fields.get(spec.knowledge_field) or "",
            "name": fields.get(settings.name_field) or "",
            "recordId": record.get("id"),
        }

    return await store_call(ctx, base_id, body)


async def get_persona_context(ctx: ToolContext, args: SlugInput) -> Any:
    return await _context_by_slug(ctx, "personas", args)


async def get_domain_knowledge(ctx: ToolContext, args: SlugInput) -> Any:
    return await _context_by_slug(ctx, "domains", args)


async def update_content_output(
    ctx: ToolContext, args: UpdateContentOutputInput
) -> Any:
    settings = ctx.config.store
    base_id = settings.resolve_base_id(args.base_id)

    async def body(client: RecordClient, base: str) -> Any:
        fields: Dict[str, Any] = {"Output": args.output}
        if args.status:
            fields["Status"] = args.status
        if args.metadata is not None:
            fields["Metadata (JSON)"] = json.dumps(args.metadata)

        updated = await client.update_records(
            base,
            settings.initiator_table,
            [{"id": args.initiator_id, "fields": fields}],
        )
        return {
            "ok": True,
            "updated": True,
            "recordId": args.initiator_id,
            "fields": record_fields(updated[0]) if updated else fields,
        }

    return await store_call(ctx, base_id, body)


airtable_get_hydrated_content_context = Tool(
    name="airtableGetHydratedContentContext",
    id="airtable.getHydratedContentContext",
    description=(
        "Return fully hydrated XML bundle for Content Initiator: includes goal, "
        "content+output types, and embedded XML from linked Personas, Domains, "
        "Entities, References."
    ),
    input_model=HydratedContextInput,
    handler=get_hydrated_content_context,
    category="content",
)

airtable_get_content_bundle = Tool(
    name="airtableGetContentBundle",
    id="airtable.getContentBundle",
    description=(
        "Fetch master XML bundle for Content Initiator. Returns the prebuilt "
        "bundle when present, otherwise the linked Persona, Domain, Entity and "
        "Reference ids."
    ),
    input_model=HydratedContextInput,
    handler=get_content_bundle,
    category="content",
)

airtable_create_content_request = Tool(
    name="airtableCreateContentRequest",
    id="airtable.createContentRequest",
    description=(
        "Create a new Content Initiator with persona/domain links. "
        "Returns created record ID."
    ),
    input_model=CreateContentRequestInput,
    handler=create_content_request,
    category="content",
)

airtable_get_persona_context = Tool(
    name="airtableGetPersonaContext",
    id="airtable.getPersonaContext",
    description="Fetch persona XML by slug. Returns persona voice, style, and constraints.",
    input_model=SlugInput,
    handler=get_persona_context,
    category="content",
)

airtable_get_domain_knowledge = Tool(
    name="airtableGetDomainKnowledge",
    id="airtable.getDomainKnowledge",
    description=(
        "Fetch domain expertise XML by slug. Returns domain-specific knowledge "
        "and constraints."
    ),
    input_model=SlugInput,
    handler=get_domain_knowledge,
    category="content",
)

airtable_update_content_output = Tool(
    name="airtableUpdateContentOutput",
    id="airtable.updateContentOutput",
    description="Update Content Initiator with generated content and metadata.",
    input_model=UpdateContentOutputInput,
    handler=update_content_output,
    category="content",
)

CONTENT_TOOLS = (
    airtable_get_hydrated_content_context,
    airtable_get_content_bundle,
    airtable_create_content_request,
    airtable_get_persona_context,
    airtable_get_domain_knowledge,
    airtable_update_content_output,
)
