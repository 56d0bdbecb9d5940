"""
Generation step: a chat model driving the tool registry.

``ChatAgent.generate`` sends the conversation plus the registry's tool
schemas to the model, executes every requested tool through
``ToolRegistry.execute`` (which never raises), feeds the results back and
repeats until the model answers with text or ``max_steps`` is reached.
Provider wire formats live in ``OpenAIChatClient`` and
``AnthropicChatClient``; both talk plain HTTP through httpx.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

import httpx

from ..config.service import LLMSettings
from ..tools.models import Tool
from ..tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

DEFAULT_OPENAI_MODEL = "gpt-4o"
DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-5-20250929"


class GenerationUnavailable(RuntimeError):
    """The model provider is not configured or did not answer."""


@dataclass
class ToolCall:
    id: str
    name: str
    arguments: Dict[str, Any]


@dataclass
class LLMReply:
    text: str
    tool_calls: List[ToolCall] = field(default_factory=list)
    raw: Any = None


@dataclass
class GenerationResult:
    text: str
    tool_calls: List[Dict[str, Any]] = field(default_factory=list)
    steps: int = 0
    truncated: bool = False


class LLMClient(Protocol):
    model: str

    def start(self, messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]: ...

    async def complete(
        self, system: str, transcript: List[Dict[str, Any]], tools: List[Tool]
    ) -> LLMReply: ...

    def assistant_message(self, reply: LLMReply) -> Dict[str, Any]: ...

    def tool_result_messages(
        self, reply: LLMReply, results: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]: ...


def _parse_arguments(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    try:
        parsed = json.loads(raw or "{}")
    except (TypeError, ValueError):
        return {}
    return parsed if isinstance(parsed, dict) else {}


class OpenAIChatClient:
    """Chat completions with function tools."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_OPENAI_MODEL,
        base_url: str = "https://api.openai.com",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def start(self, messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [
            {"role": m.get("role", "user"), "content": m.get("content", "")}
            for m in messages
        ]

    async def complete(
        self, system: str, transcript: List[Dict[str, Any]], tools: List[Tool]
    ) -> LLMReply:
        if not self.api_key:
            raise GenerationUnavailable("No API key found for provider 'openai'")
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "system", "content": system}] + transcript,
        }
        if tools:
            payload["tools"] = [t.function_schema() for t in tools]
            payload["tool_choice"] = "auto"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            resp = await client.post(
                f"{self.base_url}/v1/chat/completions", json=payload, headers=headers
            )
        if not resp.is_success:
            raise GenerationUnavailable(
                f"OpenAI API error: HTTP {resp.status_code}: {resp.text[:500]}"
            )
        choice = ((resp.json() or {}).get("choices") or [{}])[0]
        message: Dict[str, Any] = choice.get("message") or {}
        calls = [
            ToolCall(
                id=tc.get("id") or f"call_{i}",
                name=(tc.get("function") or {}).get("name", ""),
                arguments=_parse_arguments((tc.get("function") or {}).get("arguments")),
            )
            for i, tc in enumerate(message.get("tool_calls") or [])
        ]
        return LLMReply(text=message.get("content") or "", tool_calls=calls, raw=message)

    def assistant_message(self, reply: LLMReply) -> Dict[str, Any]:
        message = dict(reply.raw or {})
        message["role"] = "assistant"
        message.setdefault("content", reply.text or None)
        return message

    def tool_result_messages(
        self, reply: LLMReply, results: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        return [
            {"role": "tool", "tool_call_id": call.id, "content": json.dumps(result)}
            for call, result in zip(reply.tool_calls, results)
        ]


class AnthropicChatClient:
    """Messages API with ``tool_use``/``tool_result`` blocks."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_ANTHROPIC_MODEL,
        base_url: str = "https://api.anthropic.com",
        version: str = "2023-06-01",
        max_tokens: int = 4096,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.version = version
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._transport = transport

    def start(self, messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [
            {"role": m.get("role", "user"), "content": m.get("content", "")}
            for m in messages
        ]

    async def complete(
        self, system: str, transcript: List[Dict[str, Any]], tools: List[Tool]
    ) -> LLMReply:
        if not self.api_key:
            raise GenerationUnavailable("No API key found for provider 'anthropic'")
        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": system,
            "messages": transcript,
        }
        if tools:
            payload["tools"] = [
                {
                    "name": t.name,
                    "description": t.description,
                    "input_schema": t.input_schema(),
                }
                for t in tools
            ]
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": self.version,
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            resp = await client.post(
                f"{self.base_url}/v1/messages", json=payload, headers=headers
            )
        if not resp.is_success:
            raise GenerationUnavailable(
                f"Anthropic API error: HTTP {resp.status_code}: {resp.text[:500]}"
            )
        blocks = (resp.json() or {}).get("content") or []
        text = "\n".join(
            b.get("text", "") for b in blocks if isinstance(b, dict) and b.get("type") == "text"
        ).strip()
        calls = [
            ToolCall(id=b.get("id", ""), name=b.get("name", ""), arguments=b.get("input") or {})
            for b in blocks
            if isinstance(b, dict) and b.get("type") == "tool_use"
        ]
        return LLMReply(text=text, tool_calls=calls, raw=blocks)

    def assistant_message(self, reply: LLMReply) -> Dict[str, Any]:
        return {"role": "assistant", "content": reply.raw or []}

    def tool_result_messages(
        self, reply: LLMReply, results: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        return [
            {
                "role": "user",
                "content": [
                    {
                        "type": "tool_result",
                        "tool_use_id": call.id,
                        "content": json.dumps(result),
                    }
                    for call, result in zip(reply.tool_calls, results)
                ],
            }
        ]


def pick_llm(
    settings: LLMSettings,
    vendor: Optional[str] = None,
    model: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    default_vendor: str = "openai",
    openai_model: str = DEFAULT_OPENAI_MODEL,
) -> LLMClient:
    """Provider and model from arguments, else settings, else defaults.

    ``default_vendor`` and ``openai_model`` let each agent keep its own
    fallbacks when ``LLM_VENDOR``/``MODEL`` are unset.
    """
    chosen = (vendor or settings.vendor or default_vendor).lower()
    if chosen in {"anthropic", "claude"}:
        return AnthropicChatClient(
            api_key=settings.anthropic_api_key,
            model=model or settings.model or DEFAULT_ANTHROPIC_MODEL,
            base_url=settings.anthropic_base_url,
            version=settings.anthropic_version,
            timeout=settings.timeout_seconds,
            transport=transport,
        )
    return OpenAIChatClient(
        api_key=settings.openai_api_key,
        model=model or settings.model or openai_model,
        base_url=settings.openai_base_url,
        timeout=settings.timeout_seconds,
        transport=transport,
    )


class ChatAgent:
    def __init__(
        self,
        name: str,
        instructions: str,
        registry: ToolRegistry,
        llm: LLMClient,
        max_steps: int = 6,
    ) -> None:
        self.name = name
        self.instructions = instructions
        self.registry = registry
        self.llm = llm
        self.max_steps = max(1, max_steps)

    async def generate(self, messages: List[Dict[str, Any]]) -> GenerationResult:
        # Caller-supplied system turns are appended to the agent instructions
        system = "\n\n".join(
            [self.instructions]
            + [str(m.get("content", "")) for m in messages if m.get("role") == "system"]
        )
        transcript = self.llm.start([m for m in messages if m.get("role") != "system"])
        tools = self.registry.list_tools()
        tools_log: List[Dict[str, Any]] = []
        reply = LLMReply(text="")

        for step in range(1, self.max_steps + 1):
            reply = await self.llm.complete(system, transcript, tools)
            if not reply.tool_calls:
                return GenerationResult(text=reply.text, tool_calls=tools_log, steps=step)

            transcript.append(self.llm.assistant_message(reply))
            results: List[Dict[str, Any]] = []
            for call in reply.tool_calls:
                result = await self.registry.execute(call.name, call.arguments)
                logger.info(
                    "tool_called agent=%s tool=%s ok=%s",
                    self.name,
                    call.name,
                    result.get("ok"),
                )
                tools_log.append({"name": call.name, "args": call.arguments, "result": result})
                results.append(result)
            transcript.extend(self.llm.tool_result_messages(reply, results))

        logger.warning("agent_step_limit agent=%s steps=%d", self.name, self.max_steps)
        return GenerationResult(
            text=reply.text, tool_calls=tools_log, steps=self.max_steps, truncated=True
        )
