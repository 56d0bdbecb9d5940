"""
Shared FastAPI surface for agent services.

Every agent exposes:
- ``GET /health``
- ``POST /chat`` with ``{"messages": [{"role", "content"}]}``
- ``GET /metrics``
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..ai.service import ChatAgent
from ..monitoring.metrics import metrics_router

logger = logging.getLogger(__name__)


def valid_messages(body: Any) -> Optional[List[Dict[str, Any]]]:
    """Return the message list if ``body`` is ``{messages: [..non-empty..]}``."""
    if not isinstance(body, dict):
        return None
    messages = body.get("messages")
    if not isinstance(messages, list) or not messages:
        return None
    if not all(isinstance(m, dict) and "content" in m for m in messages):
        return None
    return messages


async def read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        return None


def create_agent_app(
    name: str,
    agent: ChatAgent,
    example: str,
    allowed_origins: Sequence[str] = ("*",),
) -> FastAPI:
    app = FastAPI(title=f"AgentBox {name.title()} Agent")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.agent = agent
    app.include_router(metrics_router)

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {
            "status": "healthy",
            "agent": name,
            "timestamp": datetime.utcnow().isoformat(),
        }

    @app.post("/chat")
    async def chat(request: Request):
        messages = valid_messages(await read_json(request))
        if messages is None:
            return JSONResponse(
                status_code=400,
                content={
                    "error": "Invalid request: expected { messages: [{ role, content }] }",
                    "example": {"messages": [{"role": "user", "content": example}]},
                },
            )
        try:
            result = await app.state.agent.generate(messages)
        except Exception as e:  # noqa: BLE001
            logger.exception("[%s] /chat error: %s", name, e)
            return JSONResponse(
                status_code=500,
                content={"error": "Failed to process chat request", "message": str(e)},
            )
        return {
            "response": result.text,
            "metadata": {
                "agent": name,
                "toolsUsed": [c["name"] for c in result.tool_calls],
                "timestamp": datetime.utcnow().isoformat(),
            },
        }

    return app
