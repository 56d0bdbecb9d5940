"""
Tools exposed to the generation step.

This module provides:
- ``Tool``/``ToolContext`` definitions and the ``ToolRegistry`` boundary
- Content tools (hydrated bundle, create request, write-back, slug lookups)
- Integration tools (n8n webhook, MindsDB SQL, web search, evidence packs)
"""

from typing import Iterable, Optional

from .airtable import airtable_fetch_persona
from .content import (
    CONTENT_TOOLS,
    airtable_create_content_request,
    airtable_get_content_bundle,
    airtable_get_domain_knowledge,
    airtable_get_hydrated_content_context,
    airtable_get_persona_context,
    airtable_update_content_output,
)
from .mindsdb import mindsdb_query
from .models import Tool, ToolContext
from .n8n import n8n_trigger
from .registry import ToolRegistry
from .research import create_evidence_pack_tool
from .web import extract_citation_tool, web_scrape, web_search

ALL_TOOLS = CONTENT_TOOLS + (
    airtable_fetch_persona,
    n8n_trigger,
    mindsdb_query,
    web_search,
    web_scrape,
    extract_citation_tool,
    create_evidence_pack_tool,
)


def build_registry(
    context: ToolContext, names: Optional[Iterable[str]] = None
) -> ToolRegistry:
    """Registry with every tool, or only those named (registry name or id)."""
    registry = ToolRegistry(context)
    if names is None:
        return registry.register_all(ALL_TOOLS)
    by_key = {t.name: t for t in ALL_TOOLS}
    by_key.update({t.id: t for t in ALL_TOOLS})
    for name in names:
        if name not in by_key:
            raise KeyError(f"Unknown tool: {name}")
        registry.register(by_key[name])
    return registry


__all__ = [
    "ALL_TOOLS",
    "Tool",
    "ToolContext",
    "ToolRegistry",
    "airtable_create_content_request",
    "airtable_fetch_persona",
    "airtable_get_content_bundle",
    "airtable_get_domain_knowledge",
    "airtable_get_hydrated_content_context",
    "airtable_get_persona_context",
    "airtable_update_content_output",
    "build_registry",
    "mindsdb_query",
    "n8n_trigger",
    "web_search",
]
