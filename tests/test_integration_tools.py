import asyncio
import json

import httpx
import pytest

from agentbox.tools import ToolContext, build_registry
from agentbox.tools.n8n import join_webhook_url

run = asyncio.run


class Recorder:
    def __init__(self, status=200, body=None, text=None):
        self.status = status
        self.body = body
        self.text = text
        self.calls = []

    def __call__(self, request):
        self.calls.append(request)
        if self.text is not None:
            return httpx.Response(self.status, text=self.text)
        return httpx.Response(self.status, json=self.body)

    @property
    def transport(self):
        return httpx.MockTransport(self)


def _registry(config, recorder):
    return build_registry(ToolContext(config=config, transport=recorder.transport))


@pytest.mark.parametrize(
    "base,scenario,expected",
    [
        ("https://n8n.example.com", "repurposer", "https://n8n.example.com/webhook/repurposer"),
        ("https://n8n.example.com/", "/repurposer", "https://n8n.example.com/webhook/repurposer"),
        ("https://n8n.example.com/webhook", "abc/test", "https://n8n.example.com/webhook/abc/test"),
        ("https://n8n.example.com/webhook//", "abc", "https://n8n.example.com/webhook/abc"),
    ],
)
def test_join_webhook_url(base, scenario, expected):
    assert join_webhook_url(base, scenario) == expected


@pytest.mark.parametrize(
    "name,args",
    [
        ("n8nTrigger", {"scenario": "repurposer", "payload": {}}),
        ("mindsdbQuery", {"sql": "SELECT 1"}),
        ("webSearch", {"query": "fpa states"}),
    ],
)
def test_integration_tools_skip_without_config(name, args, make_config):
    recorder = Recorder()
    registry = _registry(make_config(), recorder)

    res = run(registry.execute(name, args))

    assert res["skipped"] is True
    assert res["reason"]
    assert recorder.calls == []


def test_n8n_trigger_posts_payload(make_config):
    recorder = Recorder(body={"accepted": True})
    registry = _registry(make_config(N8N_WEBHOOK_BASE="https://n8n.example.com"), recorder)

    res = run(registry.execute("n8nTrigger", {"scenario": "repurposer", "payload": {"id": "rec1"}}))

    assert res == {"ok": True, "data": {"accepted": True}}
    request = recorder.calls[0]
    assert str(request.url) == "https://n8n.example.com/webhook/repurposer"
    assert json.loads(request.content) == {"id": "rec1"}


def test_n8n_trigger_tolerates_non_json_and_reports_errors(make_config):
    config = make_config(N8N_WEBHOOK_BASE="https://n8n.example.com")

    ok = run(_registry(config, Recorder(text="queued")).execute("n8nTrigger", {"scenario": "x"}))
    assert ok == {"ok": True, "data": None}

    failed = run(
        _registry(config, Recorder(status=500, text="down")).execute("n8nTrigger", {"scenario": "x"})
    )
    assert failed == {"ok": False, "status": 500, "reason": "down"}


def test_mindsdb_query_returns_rows(make_config):
    recorder = Recorder(body={"data": [[1, "a"], [2, "b"]], "column_names": ["id", "name"]})
    config = make_config(MINDSDB_URL="http://mindsdb:47334/", MINDSDB_KEY="mk")

    res = run(_registry(config, recorder).execute("mindsdbQuery", {"sql": "SELECT * FROM t"}))

    assert res == {
        "ok": True,
        "rows": [[1, "a"], [2, "b"]],
        "columnNames": ["id", "name"],
        "rowCount": 2,
    }
    request = recorder.calls[0]
    assert str(request.url) == "http://mindsdb:47334/api/sql/query"
    assert request.headers["Authorization"] == "Bearer mk"
    assert json.loads(request.content) == {"query": "SELECT * FROM t"}


def test_web_search_limits_results(make_config):
    results = [{"title": f"t{i}", "url": f"https://e.com/{i}", "content": "c", "score": 0.5} for i in range(4)]
    recorder = Recorder(body={"results": results})
    config = make_config(TAVILY_API_KEY="tv")

    res = run(_registry(config, recorder).execute("webSearch", {"query": "q", "maxResults": 2}))

    assert res["ok"] is True
    assert [r["title"] for r in res["results"]] == ["t0", "t1"]
    sent = json.loads(recorder.calls[0].content)
    assert sent["api_key"] == "tv"
    assert sent["max_results"] == 2


def test_web_search_rejects_out_of_range_limit(make_config):
    recorder = Recorder()
    res = run(_registry(make_config(TAVILY_API_KEY="tv"), recorder).execute(
        "webSearch", {"query": "q", "maxResults": 50}
    ))
    assert res["ok"] is False
    assert "Invalid input" in res["error"]
    assert recorder.calls == []


def test_web_scrape_truncates(make_config):
    recorder = Recorder(text="x" * 50)
    res = run(_registry(make_config(), recorder).execute(
        "webScrape", {"url": "https://example.com/page", "maxChars": 10}
    ))
    assert res["ok"] is True
    assert res["content"] == "x" * 10
    assert res["truncated"] is True


def test_extract_citation_is_offline(make_config):
    recorder = Recorder()
    res = run(_registry(make_config(), recorder).execute(
        "extractCitation", {"url": "https://www.nih.gov/report", "title": "Report"}
    ))
    assert res["source"] == "nih.gov"
    assert res["citationMLA"].startswith('"Report." nih.gov. Accessed ')
    assert recorder.calls == []


def test_evidence_pack_collects_claims(make_config):
    registry = _registry(make_config(), Recorder())
    res = run(registry.execute(
        "createEvidencePack",
        {
            "topic": "FPA",
            "findings": [
                {"claim": "C1", "evidence": "E1", "source": "S1", "confidence": "high"},
                {"claim": "C2", "evidence": "E2", "source": "S2", "confidence": "low"},
            ],
        },
    ))
    assert res["summary"] == "C1\nC2"
    assert res["citations"] == ["S1", "S2"]

    bad = run(registry.execute(
        "createEvidencePack",
        {"topic": "FPA", "findings": [{"claim": "C", "evidence": "E", "source": "S", "confidence": "certain"}]},
    ))
    assert bad["ok"] is False
