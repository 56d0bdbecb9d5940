from typing import Any, Dict, Iterable, List, Optional
import logging

from pydantic import BaseModel, ValidationError

from ..monitoring.metrics import tool_calls_total
from .models import Tool, ToolContext

logger = logging.getLogger(__name__)


def _to_payload(result: Any) -> Dict[str, Any]:
    to_payload = getattr(result, "to_payload", None)
    if callable(to_payload):
        return to_payload()
    if isinstance(result, BaseModel):
        return result.model_dump(by_alias=True, exclude_none=True)
    if isinstance(result, dict):
        return result
    return {"ok": True, "data": result}


def _outcome(payload: Dict[str, Any]) -> str:
    if payload.get("skipped"):
        return "skipped"
    if payload.get("ok") is False:
        return "failed"
    return "ok"


class ToolRegistry:
    """Registry of tools exposed to the generation step.

    ``execute`` is the boundary between the tools and the model loop: it
    always returns a JSON-ready dict, converting validation errors, unknown
    names and unexpected exceptions into ``{"ok": False, "error": ...}``.
    """

    def __init__(self, context: ToolContext):
        self.context = context
        self.tools: Dict[str, Tool] = {}
        self.tool_categories: Dict[str, List[str]] = {}

    def register(self, tool: Tool) -> None:
        if tool.name in self.tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        self.tools[tool.name] = tool
        self.tool_categories.setdefault(tool.category, []).append(tool.name)

    def register_all(self, tools: Iterable[Tool]) -> "ToolRegistry":
        for tool in tools:
            self.register(tool)
        return self

    def get(self, name: str) -> Optional[Tool]:
        """Look up by registry name or by dotted tool id."""
        tool = self.tools.get(name)
        if tool is not None:
            return tool
        for candidate in self.tools.values():
            if candidate.id == name:
                return candidate
        return None

    def list_tools(self) -> List[Tool]:
        return list(self.tools.values())

    def get_tools_by_category(self, category: str) -> List[Tool]:
        return [self.tools[n] for n in self.tool_categories.get(category, [])]

    def describe(self) -> List[Dict[str, Any]]:
        return [tool.describe() for tool in self.tools.values()]

    def schemas(self) -> List[Dict[str, Any]]:
        return [tool.function_schema() for tool in self.tools.values()]

    async def execute(self, name: str, raw_input: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        tool = self.get(name)
        if tool is None:
            tool_calls_total.labels(tool=name, outcome="error").inc()
            return {"ok": False, "error": f"Unknown tool: {name}"}

        try:
            args = tool.input_model.model_validate(raw_input or {})
        except ValidationError as e:
            tool_calls_total.labels(tool=tool.name, outcome="error").inc()
            return {"ok": False, "error": f"Invalid input for {tool.name}: {e}"}

        try:
            payload = _to_payload(await tool.handler(self.context, args))
        except Exception as e:  # noqa: BLE001
            logger.exception("tool_failed tool=%s", tool.name)
            tool_calls_total.labels(tool=tool.name, outcome="error").inc()
            return {"ok": False, "error": str(e) or e.__class__.__name__}

        tool_calls_total.labels(tool=tool.name, outcome=_outcome(payload)).inc()
        return payload
