"""
Content Agent

Generates content for a Content Initiator in the voice of its linked personas
and within the constraints of its linked domains:
- ``/chat`` for free-form requests
- ``/generate`` steers the model to the hydrated bundle tool and write-back
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..ai.service import ChatAgent, LLMClient, pick_llm
from ..config.service import AgentboxConfig, get_config
from ..monitoring.logs import configure_logging
from ..tools import ToolContext, build_registry
from .base import create_agent_app, read_json

logger = logging.getLogger(__name__)

AGENT_NAME = "content"
DEFAULT_PORT = 3104

CONTENT_TOOL_NAMES = (
    "airtableGetHydratedContentContext",
    "airtableCreateContentRequest",
    "airtableUpdateContentOutput",
    "n8nTrigger",
)

INSTRUCTIONS = """You are a Content Generation Agent with expertise in creating high-quality content following specific personas and domain constraints.

## Your Role
You consume XML bundles from Airtable that contain:
- Content goals and objectives
- Persona voice and style guidelines
- Domain-specific knowledge and constraints
- Related entities and references

## Workflow
1. **Fetch Context**: Use airtableGetHydratedContentContext to retrieve the FULLY HYDRATED XML bundle for a Content Initiator (includes all linked Persona, Domain, Entity, and Reference XML in one call)
2. **Parse Constraints**: Extract persona voice, domain expertise, and content requirements from the XML
3. **Generate Content**: Create content that precisely matches the persona's voice and domain's constraints
4. **Write Back**: Use airtableUpdateContentOutput to save the generated content
5. **Trigger Repurposer**: Optionally use n8nTrigger to start multi-format distribution

If a tool answers with "skipped": true, the integration is not configured. Say which capability is missing and continue without it.

## XML Bundle Structure
- <initiator>: Goal, content type, output type
- <personas>: Full persona XML with voice guidelines and style rules
- <domains>: Full domain XML with expertise areas and constraints
- <entities>: Full entity XML with related people, companies, concepts
- <references>: Full reference XML with source materials and citations"""


def generate_prompt(initiator_id: str, base_id: Optional[str] = None) -> str:
    base_clause = f" in base {base_id}" if base_id else ""
    args = "initiatorId, baseId" if base_id else "initiatorId"
    return f"""Generate content for Content Initiator: {initiator_id}{base_clause}.

Follow these steps carefully:
1) Call **airtableGetHydratedContentContext** with {{ {args} }} to fetch the FULLY HYDRATED XML bundle (initiator + linked Personas/Domains/Entities/References with embedded XML).
2) Parse the XML to extract the goal, contentType, outputType, persona voice/style, and domain constraints.
3) Generate the content to exactly match the persona voice and domain rules.
4) Save the generated content back with **airtableUpdateContentOutput** {{ initiatorId, output, status: "Generated" }}.
5) Return a one-paragraph summary of what was generated (not the full content)."""


def build_content_agent(
    config: AgentboxConfig,
    llm: Optional[LLMClient] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ChatAgent:
    registry = build_registry(
        ToolContext(config=config, transport=transport), CONTENT_TOOL_NAMES
    )
    return ChatAgent(
        name="content-agent",
        instructions=INSTRUCTIONS,
        registry=registry,
        llm=llm or pick_llm(config.llm, vendor="openai", model="gpt-4o"),
        max_steps=config.llm.max_steps,
    )


def create_app(
    config: Optional[AgentboxConfig] = None, agent: Optional[ChatAgent] = None
) -> FastAPI:
    config = config or get_config()
    app = create_agent_app(
        AGENT_NAME,
        agent or build_content_agent(config),
        example="Generate for rec123...",
        allowed_origins=config.allowed_origins,
    )

    @app.post("/generate")
    async def generate(request: Request):
        body = await read_json(request) or {}
        initiator_id = body.get("initiatorId") if isinstance(body, dict) else None
        base_id = body.get("baseId") if isinstance(body, dict) else None
        if not isinstance(initiator_id, str) or not initiator_id.strip():
            return JSONResponse(
                status_code=400,
                content={"error": "Missing required field: initiatorId (string)"},
            )
        try:
            result = await app.state.agent.generate(
                [{"role": "user", "content": generate_prompt(initiator_id, base_id)}]
            )
        except Exception as e:  # noqa: BLE001
            logger.exception("[content] /generate error: %s", e)
            return JSONResponse(
                status_code=500,
                content={"error": "Failed to generate content", "message": str(e)},
            )
        return {
            "response": result.text,
            "metadata": {
                "agent": AGENT_NAME,
                "initiatorId": initiator_id,
                "toolsUsed": [c["name"] for c in result.tool_calls],
                "timestamp": datetime.utcnow().isoformat(),
            },
        }

    return app


configure_logging(AGENT_NAME, get_config().log_level)
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_config().service_port(DEFAULT_PORT))
