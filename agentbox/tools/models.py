"""
Tool definitions consumed by the generation step.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Type

import httpx
from pydantic import BaseModel

from ..config.service import AgentboxConfig
from ..hydration.service import ContextHydrator
from ..records.client import RecordClient


@dataclass
class ToolContext:
    """What a tool handler may use: configuration and an HTTP transport.

    ``transport`` is None in production; tests pass an
    ``httpx.MockTransport`` so every outbound call can be observed.
    """

    config: AgentboxConfig
    transport: Optional[httpx.AsyncBaseTransport] = None

    def record_client(self) -> RecordClient:
        return RecordClient(self.config.store, transport=self.transport)

    def hydrator(self) -> ContextHydrator:
        return ContextHydrator(self.config.store, transport=self.transport)

    def http_client(self, **kwargs: Any) -> httpx.AsyncClient:
        kwargs.setdefault("timeout", httpx.Timeout(30.0))
        return httpx.AsyncClient(transport=self.transport, **kwargs)


Handler = Callable[[ToolContext, Any], Awaitable[Any]]


@dataclass(frozen=True)
class Tool:
    """A named operation with a typed input schema and an async handler."""

    name: str
    id: str
    description: str
    input_model: Type[BaseModel]
    handler: Handler
    category: str = "general"

    def input_schema(self) -> Dict[str, Any]:
        return self.input_model.model_json_schema(by_alias=True)

    def function_schema(self) -> Dict[str, Any]:
        """OpenAI function-tool entry."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema(),
            },
        }

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "id": self.id,
            "description": self.description,
            "category": self.category,
            "input_schema": self.input_schema(),
        }
