"""
Gateway data models for agent proxying.
"""

from typing import Any, Dict

from pydantic import BaseModel, Field


class AgentEndpoint(BaseModel):
    """A routable agent service."""

    name: str
    endpoint: str
    status: str = "configured"


class AgentResponse(BaseModel):
    """Relayed upstream answer."""

    agent: str
    status_code: int
    body: Any = Field(default_factory=dict)
    response_time_ms: int = 0


class AgentUnavailable(Exception):
    """The agent service could not be reached."""

    def __init__(self, agent: str, details: str):
        super().__init__(f"{agent}: {details}")
        self.agent = agent
        self.details = details

    def to_payload(self) -> Dict[str, Any]:
        return {"error": "Agent unavailable", "agent": self.agent, "details": self.details}
