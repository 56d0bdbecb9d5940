from typing import Any
import logging
import re

from pydantic import BaseModel, Field

from ..policy.guard import Requirement, guard
from ..policy.models import Failure
from .models import Tool, ToolContext

logger = logging.getLogger(__name__)


def join_webhook_url(base: str, scenario: str) -> str:
    """Join a webhook base and scenario path with exactly one ``/webhook``."""
    b = re.sub(r"/+$", "", base)
    root = b if b.endswith("/webhook") else f"{b}/webhook"
    path = re.sub(r"^/+", "", scenario)
    return f"{root}/{path}"


class TriggerInput(BaseModel):
    scenario: str = Field(description='Webhook path segment (e.g., "repurposer" or UUID)')
    payload: Any = Field(default=None, description="JSON payload to send to workflow")


async def trigger(ctx: ToolContext, args: TriggerInput) -> Any:
    base = ctx.config.webhook.base_url

    async def _call() -> Any:
        url = join_webhook_url(base or "", args.scenario)
        async with ctx.http_client() as client:
            r = await client.post(url, json=args.payload)
        if not r.is_success:
            logger.warning("webhook_failed scenario=%s status=%s", args.scenario, r.status_code)
            return Failure(status=r.status_code, reason=r.text)
        try:
            data = r.json()
        except ValueError:
            data = None
        return {"ok": True, "data": data}

    return await guard([Requirement("N8N_WEBHOOK_BASE", base)], _call)


n8n_trigger = Tool(
    name="n8nTrigger",
    id="n8n.trigger",
    description=(
        "Trigger an n8n workflow via webhook. Provide scenario as the path segment "
        'after /webhook, e.g., "<uuid>" or "<uuid>/test" or a named path.'
    ),
    input_model=TriggerInput,
    handler=trigger,
    category="automation",
)
