import json
import re
from typing import Any, Dict, List, Optional

import httpx
import pytest

from agentbox.ai.service import LLMReply
from agentbox.config.service import AgentboxConfig

BASE_ID = "appTEST"

_SLUG_FORMULA = re.compile(r'^LOWER\(\{(?P<field>[^}]+)\}\)="(?P<value>.*)"$')


class FakeAirtable:
    """In-memory record store speaking the Airtable REST shapes.

    Every request is appended to ``calls`` so tests can assert how many
    outbound requests an operation made.
    """

    def __init__(self):
        self.tables: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.calls: List[httpx.Request] = []
        self.failing: Dict[str, int] = {}
        self._seq = 0

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def add(self, table: str, record_id: str, fields: Dict[str, Any]) -> None:
        self.tables.setdefault(table, {})[record_id] = dict(fields)

    def fail(self, record_id: str, status: int) -> None:
        self.failing[record_id] = status

    def fields(self, table: str, record_id: str) -> Dict[str, Any]:
        return self.tables[table][record_id]

    def _record(self, record_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return {"id": record_id, "createdTime": "2024-01-01T00:00:00.000Z", "fields": fields}

    def _matches(self, fields: Dict[str, Any], formula: Optional[str]) -> bool:
        if not formula:
            return True
        m = _SLUG_FORMULA.match(formula)
        if m is None:
            return True
        expected = m.group("value").replace('\\"', '"').replace("\\\\", "\\")
        return str(fields.get(m.group("field"), "")).lower() == expected

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        parts = request.url.path.split("/")[2:]
        base, table = parts[0], parts[1]
        if base != BASE_ID:
            return httpx.Response(404, json={"error": "NOT_FOUND"})
        rows = self.tables.get(table)

        if request.method == "GET" and len(parts) == 3:
            record_id = parts[2]
            if record_id in self.failing:
                return httpx.Response(
                    self.failing[record_id], json={"error": {"type": "FAILED"}}
                )
            if rows is None or record_id not in rows:
                return httpx.Response(404, json={"error": "NOT_FOUND"})
            return httpx.Response(200, json=self._record(record_id, rows[record_id]))

        if rows is None:
            return httpx.Response(404, json={"error": {"type": "TABLE_NOT_FOUND"}})

        if request.method == "GET":
            params = request.url.params
            matched = [
                self._record(rid, f)
                for rid, f in rows.items()
                if self._matches(f, params.get("filterByFormula"))
            ]
            start = int(params.get("offset", "0"))
            size = int(params.get("pageSize", "100"))
            page = matched[start : start + size]
            body: Dict[str, Any] = {"records": page}
            if start + size < len(matched):
                body["offset"] = str(start + size)
            return httpx.Response(200, json=body)

        payload = json.loads(request.content or b"{}")
        if request.method == "POST":
            created = []
            for item in payload.get("records", []):
                self._seq += 1
                record_id = f"recNEW{self._seq}"
                rows[record_id] = dict(item["fields"])
                created.append(self._record(record_id, rows[record_id]))
            return httpx.Response(200, json={"records": created})

        if request.method == "PATCH":
            updated = []
            for item in payload.get("records", []):
                if item["id"] not in rows:
                    return httpx.Response(404, json={"error": "NOT_FOUND"})
                rows[item["id"]].update(item["fields"])
                updated.append(self._record(item["id"], rows[item["id"]]))
            return httpx.Response(200, json={"records": updated})

        return httpx.Response(405)


class ScriptedLLM:
    """LLM double returning canned replies in order."""

    model = "scripted"

    def __init__(self, replies: List[LLMReply]):
        self.replies = list(replies)
        self.calls: List[Dict[str, Any]] = []

    def start(self, messages):
        return [dict(m) for m in messages]

    async def complete(self, system, transcript, tools):
        self.calls.append(
            {"system": system, "transcript": list(transcript), "tools": [t.name for t in tools]}
        )
        return self.replies.pop(0)

    def assistant_message(self, reply):
        return {"role": "assistant", "content": reply.text}

    def tool_result_messages(self, reply, results):
        return [{"role": "tool", "content": json.dumps(r)} for r in results]


def config_from(**env: str) -> AgentboxConfig:
    base = {"AIRTABLE_PAT": "pat-test", "AIRTABLE_BASE_ID": BASE_ID}
    base.update(env)
    return AgentboxConfig.from_env({k: v for k, v in base.items() if v is not None})


@pytest.fixture
def airtable() -> FakeAirtable:
    return FakeAirtable()


@pytest.fixture
def config() -> AgentboxConfig:
    return config_from()


@pytest.fixture
def make_config():
    return config_from


@pytest.fixture
def scripted_llm():
    return ScriptedLLM
