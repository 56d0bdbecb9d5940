from prometheus_client import CollectorRegistry, Histogram, Counter
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter
from fastapi.responses import Response

registry = CollectorRegistry()

tool_calls_total = Counter(
    "agentbox_tool_calls_total",
    "Tool invocations by outcome",
    ["tool", "outcome"],
    registry=registry,
)

hydrations_total = Counter(
    "agentbox_hydrations_total",
    "Successful context hydrations by mode",
    ["mode"],
    registry=registry,
)

hydration_children_total = Counter(
    "agentbox_hydration_children_total",
    "Linked child records resolved or lost during hydration",
    ["category", "result"],
    registry=registry,
)

gateway_requests_total = Counter(
    "agentbox_gateway_requests_total",
    "Requests proxied by the gateway",
    ["agent", "status"],
    registry=registry,
)

gateway_request_duration = Histogram(
    "agentbox_gateway_request_duration_seconds",
    "Gateway proxy latency in seconds",
    ["agent"],
    registry=registry,
)

metrics_router = APIRouter()


@metrics_router.get("/metrics")
async def get_metrics():
    return Response(generate_latest(registry), media_type=CONTENT_TYPE_LATEST)
