"""
Gateway for agent services.

This module provides:
- Routing of chat and generate requests to named agents
- Status and JSON relaying from the upstream service
- Request metrics
"""

from .models import AgentEndpoint, AgentResponse, AgentUnavailable
from .proxy import AgentProxy

__all__ = [
    "AgentEndpoint",
    "AgentResponse",
    "AgentUnavailable",
    "AgentProxy",
]
