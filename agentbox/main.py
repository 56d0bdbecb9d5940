import logging
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config.service import AgentboxConfig, get_config
from .gateway.models import AgentUnavailable
from .gateway.proxy import AgentProxy
from .monitoring.logs import configure_logging
from .monitoring.metrics import metrics_router

logger = logging.getLogger(__name__)


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        return None


def create_app(
    config: Optional[AgentboxConfig] = None, proxy: Optional[AgentProxy] = None
) -> FastAPI:
    config = config or get_config()
    proxy = proxy or AgentProxy(config.gateway)

    app = FastAPI(title="AgentBox Gateway", version="1.0.0")
    app.state.proxy = proxy
    app.include_router(metrics_router)

    @app.middleware("http")
    async def trace_and_authorize(request: Request, call_next):
        trace_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.trace_id = trace_id
        secret = config.gateway.secret
        if secret and request.url.path.startswith("/agents"):
            if request.headers.get("x-api-key") != secret:
                logger.warning(
                    "gateway_unauthorized path=%s",
                    request.url.path,
                    extra={"trace_id": trace_id},
                )
                return JSONResponse(status_code=401, content={"error": "Unauthorized"})
        response = await call_next(request)
        response.headers["x-request-id"] = trace_id
        return response

    # Outermost: preflights are answered before the API key check
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    async def relay(
        request: Request, agent: str, path: str, payload: Dict[str, Any]
    ) -> JSONResponse:
        try:
            result = await proxy.forward(
                agent, path, payload, trace_id=request.state.trace_id
            )
        except KeyError:
            return JSONResponse(
                status_code=404, content={"error": f"Unknown agent: {agent}"}
            )
        except AgentUnavailable as e:
            return JSONResponse(status_code=502, content=e.to_payload())
        return JSONResponse(status_code=result.status_code, content=result.body)

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "service": "agentbox-gateway",
            "timestamp": datetime.utcnow().isoformat(),
        }

    @app.get("/agents")
    async def list_agents():
        return {"agents": [e.model_dump() for e in proxy.endpoints()]}

    @app.post("/agents/content/generate")
    async def content_generate(request: Request):
        body = await _read_json(request)
        return await relay(request, "content", "/generate", body if isinstance(body, dict) else {})

    @app.post("/agents/{agent}/chat")
    async def agent_chat(agent: str, request: Request):
        body = await _read_json(request)
        messages = body.get("messages") if isinstance(body, dict) else None
        if not isinstance(messages, list):
            return JSONResponse(
                status_code=400,
                content={"error": "Invalid request: expected { messages: [...] }"},
            )
        return await relay(request, agent, "/chat", {"messages": messages})

    @app.on_event("startup")
    async def startup_event():
        logger.info(
            "AgentBox gateway starting agents=%s",
            ",".join(e.name for e in proxy.endpoints()),
        )

    return app


configure_logging("gateway", get_config().log_level)
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_config().gateway.port)
