#!/usr/bin/env python3
"""
AgentBox CLI

Commands:
  tools     - List the tool registry (name, id, category)
  hydrate   - Hydrate a Content Initiator locally and print the XML
  agents    - List agents known to the gateway
  chat      - Send one message to an agent through the gateway
  generate  - Ask the content agent to generate for an initiator
  serve     - Run the gateway or an agent service

Env:
  AGENTBOX_URL  - Gateway URL (default http://localhost:8000)
  AGENTBOX_KEY  - Gateway API key, sent as x-api-key
"""
from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys

import requests

from .config.service import get_config
from .hydration.service import ContextHydrator
from .tools import ToolContext, build_registry


def _base() -> str:
    return os.getenv("AGENTBOX_URL", "http://localhost:8000").rstrip("/")


def _headers() -> dict:
    headers = {"Content-Type": "application/json"}
    key = os.getenv("AGENTBOX_KEY")
    if key:
        headers["x-api-key"] = key
    return headers


def cmd_tools(args):
    registry = build_registry(ToolContext(config=get_config()))
    tools = registry.list_tools()
    if args.category:
        tools = registry.get_tools_by_category(args.category)
    for t in tools:
        print(f"{t.name:<36} {t.id:<36} {t.category}")
    return 0


def cmd_hydrate(args):
    result = asyncio.run(ContextHydrator(get_config().store).hydrate(args.id, args.base_id))
    if getattr(result, "ok", False):
        print(result.xml)
        return 0
    print(json.dumps(result.to_payload(), indent=2), file=sys.stderr)
    return 1


def cmd_agents(args):
    r = requests.get(f"{_base()}/agents", headers=_headers())
    r.raise_for_status()
    print(json.dumps(r.json(), indent=2))
    return 0


def cmd_chat(args):
    payload = {"messages": [{"role": "user", "content": args.message}]}
    r = requests.post(
        f"{_base()}/agents/{args.agent}/chat", headers=_headers(), data=json.dumps(payload)
    )
    r.raise_for_status()
    print(r.json().get("response", ""))
    return 0


def cmd_generate(args):
    payload = {"initiatorId": args.id}
    if args.base_id:
        payload["baseId"] = args.base_id
    r = requests.post(
        f"{_base()}/agents/content/generate", headers=_headers(), data=json.dumps(payload)
    )
    r.raise_for_status()
    print(json.dumps(r.json(), indent=2))
    return 0


SERVICES = {
    "gateway": ("agentbox.main:app", lambda c: c.gateway.port),
    "content": ("agentbox.agents.content:app", lambda c: c.service_port(3104)),
    "research": ("agentbox.agents.research:app", lambda c: c.service_port(3001)),
}


def cmd_serve(args):
    import uvicorn

    target, port = SERVICES[args.service]
    uvicorn.run(target, host=args.host, port=args.port or port(get_config()))
    return 0


def main(argv=None):
    p = argparse.ArgumentParser(prog="agentbox")
    sub = p.add_subparsers(dest="cmd", required=True)

    t = sub.add_parser("tools")
    t.add_argument("--category")
    t.set_defaults(func=cmd_tools)

    h = sub.add_parser("hydrate")
    h.add_argument("id")
    h.add_argument("--base-id")
    h.set_defaults(func=cmd_hydrate)

    a = sub.add_parser("agents")
    a.set_defaults(func=cmd_agents)

    c = sub.add_parser("chat")
    c.add_argument("agent")
    c.add_argument("message")
    c.set_defaults(func=cmd_chat)

    g = sub.add_parser("generate")
    g.add_argument("id")
    g.add_argument("--base-id")
    g.set_defaults(func=cmd_generate)

    s = sub.add_parser("serve")
    s.add_argument("service", choices=sorted(SERVICES))
    s.add_argument("--host", default="0.0.0.0")
    s.add_argument("--port", type=int)
    s.set_defaults(func=cmd_serve)

    args = p.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
