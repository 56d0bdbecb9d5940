"""
Proxy handler for agent requests.
"""

import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from ..config.service import GatewaySettings
from ..monitoring.metrics import gateway_request_duration, gateway_requests_total
from .models import AgentEndpoint, AgentResponse, AgentUnavailable

logger = logging.getLogger(__name__)


class AgentProxy:
    """Forwards JSON requests to agent services and relays their answers."""

    def __init__(
        self,
        settings: GatewaySettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self._transport = transport

    def endpoints(self) -> List[AgentEndpoint]:
        return [AgentEndpoint(name=n, endpoint=u) for n, u in self.settings.agents]

    def knows(self, agent: str) -> bool:
        return self.settings.agent_url(agent) is not None

    async def forward(
        self,
        agent: str,
        path: str,
        payload: Dict[str, Any],
        trace_id: str = "system",
    ) -> AgentResponse:
        """POST ``payload`` to ``{agent_url}{path}``.

        Raises ``KeyError`` for an unknown agent and ``AgentUnavailable`` when
        the service cannot be reached. Any HTTP status is relayed as-is.
        """
        base = self.settings.agent_url(agent)
        if base is None:
            raise KeyError(agent)
        url = f"{base.rstrip('/')}{path}"
        start_time = time.time()
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.timeout_seconds),
                transport=self._transport,
            ) as client:
                response = await client.post(
                    url, json=payload, headers={"x-request-id": trace_id}
                )
        except httpx.HTTPError as e:
            gateway_requests_total.labels(agent=agent, status="unavailable").inc()
            logger.error(
                "agent_unavailable agent=%s url=%s error=%s",
                agent,
                url,
                e,
                extra={"trace_id": trace_id},
            )
            raise AgentUnavailable(agent, str(e) or e.__class__.__name__) from e
        finally:
            gateway_request_duration.labels(agent=agent).observe(time.time() - start_time)

        try:
            body = response.json()
        except ValueError:
            body = {}
        gateway_requests_total.labels(agent=agent, status=str(response.status_code)).inc()
        logger.info(
            "agent_forwarded agent=%s path=%s status=%s",
            agent,
            path,
            response.status_code,
            extra={"trace_id": trace_id},
        )
        return AgentResponse(
            agent=agent,
            status_code=response.status_code,
            body=body,
            response_time_ms=int((time.time() - start_time) * 1000),
        )
