from __future__ import annotations

from typing import Any, Dict, List, Optional
import os
import httpx


class AgentboxClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 120.0,
    ):
        self.base_url = base_url or os.getenv("AGENTBOX_URL", "http://localhost:8000")
        self.api_key = api_key or os.getenv("AGENTBOX_KEY")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=timeout,
            transport=transport,
        )

    def _headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {"Content-Type": "application/json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "AgentboxClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def health(self) -> Dict[str, Any]:
        r = await self._client.get("/health")
        r.raise_for_status()
        return r.json()

    async def list_agents(self) -> List[Dict[str, Any]]:
        r = await self._client.get("/agents")
        r.raise_for_status()
        return r.json().get("agents", [])

    # chat (any agent)
    async def chat(self, agent: str, messages: List[Dict[str, Any]]) -> Dict[str, Any]:
        r = await self._client.post(f"/agents/{agent}/chat", json={"messages": messages})
        r.raise_for_status()
        return r.json()

    # generate (content agent)
    async def generate(self, initiator_id: str, base_id: Optional[str] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {"initiatorId": initiator_id}
        if base_id:
            body["baseId"] = base_id
        r = await self._client.post("/agents/content/generate", json=body)
        r.raise_for_status()
        return r.json()
