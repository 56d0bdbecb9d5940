"""
Research Agent

Source-grounded briefings, evidence packs and citation-heavy research.
Provider and model come from ``LLM_VENDOR``/``MODEL``, defaulting to Anthropic.
"""

from __future__ import annotations

from typing import Optional

import httpx
from fastapi import FastAPI

from ..ai.service import ChatAgent, LLMClient, pick_llm
from ..config.service import AgentboxConfig, get_config
from ..monitoring.logs import configure_logging
from ..tools import ToolContext, build_registry
from .base import create_agent_app

AGENT_NAME = "research"
DEFAULT_PORT = 3001

RESEARCH_TOOL_NAMES = ("webSearch", "mindsdbQuery", "createEvidencePack")

# Used when LLM_VENDOR is unset; gpt-5 only applies when the vendor is openai
DEFAULT_VENDOR = "anthropic"
DEFAULT_OPENAI_MODEL = "gpt-5"

INSTRUCTIONS = """You are a rigorous researcher and fact-checker.

PRINCIPLES
- Every claim has a source.
- Prefer primary sources and official statistics.
- Tag confidence: high / medium / low.

WORKFLOW
1) Search authoritative sources.
2) Extract key findings with quotes/data.
3) Cross-check and note disagreements.
4) Quant where useful (MindsDB SQL).
5) Return executive summary + evidence pack.

If a tool answers with "skipped": true, say which capability is not configured and continue with what you have.

OUTPUT
- Executive summary (2-3 sentences)
- Key findings (bulleted, each with citation)
- Actionable recommendations
- Evidence pack for RAG"""


def build_research_agent(
    config: AgentboxConfig,
    llm: Optional[LLMClient] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ChatAgent:
    registry = build_registry(
        ToolContext(config=config, transport=transport), RESEARCH_TOOL_NAMES
    )
    return ChatAgent(
        name="research-agent",
        instructions=INSTRUCTIONS,
        registry=registry,
        llm=llm
        or pick_llm(
            config.llm,
            default_vendor=DEFAULT_VENDOR,
            openai_model=DEFAULT_OPENAI_MODEL,
        ),
        max_steps=config.llm.max_steps,
    )


def create_app(
    config: Optional[AgentboxConfig] = None, agent: Optional[ChatAgent] = None
) -> FastAPI:
    config = config or get_config()
    return create_agent_app(
        AGENT_NAME,
        agent or build_research_agent(config),
        example="Which states have NP FPA?",
        allowed_origins=config.allowed_origins,
    )


configure_logging(AGENT_NAME, get_config().log_level)
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_config().service_port(DEFAULT_PORT))
