"""
Configuration for AgentBox services.

This module provides:
- Frozen settings dataclasses resolved once from the environment
- Per-category store layout (table, knowledge field, relation field)
"""

from .service import (
    AgentboxConfig,
    CategorySpec,
    GatewaySettings,
    LLMSettings,
    SearchSettings,
    SqlBridgeSettings,
    StoreSettings,
    WebhookSettings,
    get_config,
)

__all__ = [
    "AgentboxConfig",
    "CategorySpec",
    "GatewaySettings",
    "LLMSettings",
    "SearchSettings",
    "SqlBridgeSettings",
    "StoreSettings",
    "WebhookSettings",
    "get_config",
]
