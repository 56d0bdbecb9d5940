from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..records.client import RecordClient, slug_formula
from .content import store_call
from .models import Tool, ToolContext


class FetchPersonaInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    base_id: Optional[str] = Field(default=None, alias="baseId")
    table: str
    view: Optional[str] = None
    slug: str


async def fetch_persona(ctx: ToolContext, args: FetchPersonaInput) -> Any:
    """Case-insensitive match on ``{slug}`` in an arbitrary table."""
    base_id = ctx.config.store.resolve_base_id(args.base_id, broad=True)

    async def body(client: RecordClient, base: str) -> Any:
        records = await client.list_by_formula(
            base, args.table, slug_formula(args.slug, "slug"), view=args.view
        )
        return {"ok": True, "records": records}

    return await store_call(ctx, base_id, body)


airtable_fetch_persona = Tool(
    name="airtableFetchPersona",
    id="airtable.fetchPersona",
    description="Fetch persona by slug from Airtable (skips if not configured)",
    input_model=FetchPersonaInput,
    handler=fetch_persona,
    category="content",
)
