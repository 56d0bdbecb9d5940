"""
Explicit configuration for the AgentBox services.

Everything an integration needs (tokens, base ids, table and field names,
service URLs) is resolved once from an environment mapping into frozen
dataclasses. The resulting ``AgentboxConfig`` is passed by reference into the
record client, the hydrator, the capability guard and the tools, so none of
them read ``os.environ`` on their own.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple


DEFAULT_AIRTABLE_API = "https://api.airtable.com/v0"


def _first(env: Mapping[str, str], *keys: str) -> Optional[str]:
    """Return the first non-blank value among ``keys``."""
    for key in keys:
        value = env.get(key)
        if value is not None and value.strip():
            return value.strip()
    return None


def _get(env: Mapping[str, str], key: str, default: str) -> str:
    return _first(env, key) or default


def _get_int(env: Mapping[str, str], key: str, default: int) -> int:
    try:
        return int(env.get(key, ""))
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class CategorySpec:
    """Where one knowledge category lives in the store.

    ``relation_field`` is the link field on the root record that lists child
    ids, ``table`` is the child table and ``knowledge_field`` the text field
    embedded in the composite document.
    """

    name: str
    label: str
    table: str
    knowledge_field: str
    relation_field: str


@dataclass(frozen=True)
class StoreSettings:
    token: Optional[str] = None
    base_id: Optional[str] = None
    extra_base_ids: Tuple[str, ...] = ()
    api_base_url: str = DEFAULT_AIRTABLE_API
    initiator_table: str = "Content Initiators"
    bundle_field: str = "BUNDLE of the XML BUNDLES"
    slug_field: str = "Slug"
    name_field: str = "Name"
    categories: Tuple[CategorySpec, ...] = ()

    def resolve_base_id(
        self, explicit: Optional[str] = None, *, broad: bool = False
    ) -> Optional[str]:
        """Explicit argument first, then the configured chain.

        ``broad`` also accepts the per-workspace base ids used by the
        generic fetch tool.
        """
        if explicit and explicit.strip():
            return explicit.strip()
        if self.base_id:
            return self.base_id
        if broad and self.extra_base_ids:
            return self.extra_base_ids[0]
        return None

    def category(self, name: str) -> CategorySpec:
        for spec in self.categories:
            if spec.name == name:
                return spec
        raise KeyError(f"Unknown category: {name}")


@dataclass(frozen=True)
class WebhookSettings:
    base_url: Optional[str] = None


@dataclass(frozen=True)
class SqlBridgeSettings:
    url: Optional[str] = None
    key: Optional[str] = None


@dataclass(frozen=True)
class SearchSettings:
    tavily_api_key: Optional[str] = None
    tavily_url: str = "https://api.tavily.com/search"


@dataclass(frozen=True)
class LLMSettings:
    vendor: Optional[str] = None
    model: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com"
    anthropic_api_key: Optional[str] = None
    anthropic_base_url: str = "https://api.anthropic.com"
    anthropic_version: str = "2023-06-01"
    max_steps: int = 6
    timeout_seconds: float = 60.0


@dataclass(frozen=True)
class GatewaySettings:
    port: int = 8000
    secret: Optional[str] = None
    agents: Tuple[Tuple[str, str], ...] = (
        ("research", "http://agentbox-research:3001"),
        ("content", "http://agentbox-content:3104"),
    )
    timeout_seconds: float = 60.0

    def agent_url(self, name: str) -> Optional[str]:
        return dict(self.agents).get(name)


@dataclass(frozen=True)
class AgentboxConfig:
    store: StoreSettings = field(default_factory=StoreSettings)
    webhook: WebhookSettings = field(default_factory=WebhookSettings)
    sql: SqlBridgeSettings = field(default_factory=SqlBridgeSettings)
    search: SearchSettings = field(default_factory=SearchSettings)
    llm: LLMSettings = field(default_factory=LLMSettings)
    gateway: GatewaySettings = field(default_factory=GatewaySettings)
    log_level: str = "INFO"
    port: Optional[int] = None
    allowed_origins: Tuple[str, ...] = ("*",)

    def service_port(self, default: int) -> int:
        """Listening port for an agent service: ``PORT`` if set, else ``default``."""
        return self.port if self.port is not None else default

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "AgentboxConfig":
        env = os.environ if env is None else env

        categories = (
            CategorySpec(
                name="personas",
                label="persona",
                table=_get(env, "AIRTABLE_TABLE_PERSONAS", "Personas"),
                knowledge_field=_get(env, "AIRTABLE_FIELD_PERSONA_XML", "XML Bundle"),
                relation_field=_get(env, "AIRTABLE_LINK_PERSONAS", "Personas"),
            ),
            CategorySpec(
                name="domains",
                label="domain",
                table=_get(env, "AIRTABLE_TABLE_DOMAINS", "Content Domains"),
                knowledge_field=_get(env, "AIRTABLE_FIELD_DOMAIN_XML", "XML Bundle"),
                relation_field=_get(env, "AIRTABLE_LINK_DOMAINS", "Content Domains"),
            ),
            CategorySpec(
                name="entities",
                label="entity",
                table=_get(env, "AIRTABLE_TABLE_ENTITIES", "Entity"),
                knowledge_field=_get(env, "AIRTABLE_FIELD_ENTITY_XML", "XML"),
                relation_field=_get(env, "AIRTABLE_LINK_ENTITIES", "Entity"),
            ),
            CategorySpec(
                name="references",
                label="reference",
                table=_get(env, "AIRTABLE_TABLE_REFERENCES", "References"),
                knowledge_field=_get(env, "AIRTABLE_FIELD_REFERENCE_XML", "XML"),
                relation_field=_get(env, "AIRTABLE_LINK_REFERENCES", "References"),
            ),
        )
        extra_bases = tuple(
            v
            for v in (
                _first(env, "AIRTABLE_CRM_BASE_ID"),
                _first(env, "AIRTABLE_CONTENT_HUB_BASE_ID"),
                _first(env, "AIRTABLE_AUTOMATION_BASE_ID"),
                _first(env, "AIRTABLE_SOCIAL_MEDIA_BASE_ID"),
                _first(env, "AIRTABLE_NEWSLETTER_BASE_ID"),
            )
            if v
        )
        store = StoreSettings(
            token=_first(env, "AIRTABLE_PAT", "AIRTABLE_API_KEY", "AIRTABLE_TOKEN"),
            base_id=_first(env, "AIRTABLE_BASE_ID", "AIRTABLE_CONTENT_BASE_ID"),
            extra_base_ids=extra_bases,
            api_base_url=_get(env, "AIRTABLE_API_BASE_URL", DEFAULT_AIRTABLE_API).rstrip("/"),
            initiator_table=_get(
                env, "AIRTABLE_TABLE_CONTENT_INITIATORS", "Content Initiators"
            ),
            bundle_field=_get(
                env, "AIRTABLE_FIELD_XML_BUNDLE", "BUNDLE of the XML BUNDLES"
            ),
            categories=categories,
        )

        llm = LLMSettings(
            vendor=(_first(env, "LLM_VENDOR") or "").lower() or None,
            model=_first(env, "MODEL"),
            openai_api_key=_first(env, "OPENAI_API_KEY"),
            openai_base_url=_get(env, "OPENAI_BASE_URL", "https://api.openai.com"),
            anthropic_api_key=_first(env, "ANTHROPIC_API_KEY"),
            anthropic_base_url=_get(
                env, "ANTHROPIC_BASE_URL", "https://api.anthropic.com"
            ),
            anthropic_version=_get(env, "ANTHROPIC_VERSION", "2023-06-01"),
            max_steps=_get_int(env, "AGENT_MAX_STEPS", 6),
        )

        gateway = GatewaySettings(
            port=_get_int(env, "GATEWAY_PORT", 8000),
            secret=_first(env, "GATEWAY_SECRET"),
            agents=(
                (
                    "research",
                    _get(env, "AGENT_RESEARCH_URL", "http://agentbox-research:3001"),
                ),
                (
                    "content",
                    _get(env, "AGENT_CONTENT_URL", "http://agentbox-content:3104"),
                ),
            ),
            timeout_seconds=float(_get_int(env, "GATEWAY_TIMEOUT_SECONDS", 60)),
        )

        return cls(
            store=store,
            webhook=WebhookSettings(base_url=_first(env, "N8N_WEBHOOK_BASE")),
            sql=SqlBridgeSettings(
                url=_first(env, "MINDSDB_URL"), key=_first(env, "MINDSDB_KEY")
            ),
            search=SearchSettings(tavily_api_key=_first(env, "TAVILY_API_KEY")),
            llm=llm,
            gateway=gateway,
            log_level=_get(env, "LOG_LEVEL", "INFO").upper(),
            port=_get_int(env, "PORT", 0) or None,
            allowed_origins=tuple(
                o.strip() for o in _get(env, "ALLOWED_ORIGINS", "*").split(",") if o.strip()
            ),
        )


_config: Optional[AgentboxConfig] = None


def get_config() -> AgentboxConfig:
    """Process-wide configuration, built from ``os.environ`` on first use."""
    global _config
    if _config is None:
        _config = AgentboxConfig.from_env()
    return _config
