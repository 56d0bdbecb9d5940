import asyncio

import httpx

from agentbox.hydration.models import HydrationMode, HydrationResult
from agentbox.hydration.service import ContextHydrator
from agentbox.policy.models import Failure, Skipped

run = asyncio.run

INITIATORS = "Content Initiators"


def _seed_scenario(airtable):
    airtable.add(
        INITIATORS,
        "rec1",
        {
            "Goal": "Launch post",
            "Content Type": "blog",
            "Personas": ["p1", "p2"],
            "Content Domains": [],
            "Entity": ["e1"],
        },
    )
    airtable.add("Personas", "p1", {"XML Bundle": "<persona>A</persona>"})
    airtable.add("Personas", "p2", {"XML Bundle": ""})
    airtable.add("Entity", "e1", {"XML": "<entity>B</entity>"})


def test_scenario_embeds_only_non_empty_children(airtable, config):
    _seed_scenario(airtable)
    hydrator = ContextHydrator(config.store, transport=airtable.transport)

    result = run(hydrator.hydrate("rec1"))

    assert isinstance(result, HydrationResult)
    assert result.mode == HydrationMode.HYDRATED
    assert result.xml == "\n".join(
        [
            "<bundle>",
            '  <initiator id="rec1">',
            "    <goal>Launch post</goal>",
            "    <contentType>blog</contentType>",
            "  </initiator>",
            "  <personas>",
            "    <persona>A</persona>",
            "  </personas>",
            "  <entities>",
            "    <entity>B</entity>",
            "  </entities>",
            "</bundle>",
        ]
    )
    payload = result.to_payload()
    assert payload["ok"] is True
    assert payload["mode"] == "hydrated"
    assert payload["linkedCounts"] == {
        "personas": 1,
        "domains": 0,
        "entities": 1,
        "references": 0,
    }


def test_empty_child_is_recorded_as_lost(airtable, config):
    _seed_scenario(airtable)
    hydrator = ContextHydrator(config.store, transport=airtable.transport)

    result = run(hydrator.hydrate("rec1"))

    personas = next(o for o in result.outcomes if o.category == "personas")
    assert personas.succeeded == ["<persona>A</persona>"]
    assert [f.record_id for f in personas.failed] == ["p2"]
    assert "XML Bundle" in personas.failed[0].error


def test_no_relations_yields_initiator_only(airtable, config):
    airtable.add(INITIATORS, "rec2", {"Goal": "Solo"})
    hydrator = ContextHydrator(config.store, transport=airtable.transport)

    result = run(hydrator.hydrate("rec2"))

    assert result.xml == "\n".join(
        [
            "<bundle>",
            '  <initiator id="rec2">',
            "    <goal>Solo</goal>",
            "  </initiator>",
            "</bundle>",
        ]
    )
    assert result.linked_counts.model_dump() == {
        "personas": 0,
        "domains": 0,
        "entities": 0,
        "references": 0,
    }
    assert len(airtable.calls) == 1


def test_root_failure_carries_status_and_skips_children(airtable, config):
    _seed_scenario(airtable)
    airtable.fail("rec1", 403)
    hydrator = ContextHydrator(config.store, transport=airtable.transport)

    result = run(hydrator.hydrate("rec1"))

    assert isinstance(result, Failure)
    assert result.status == 403
    assert "FAILED" in result.reason
    assert len(airtable.calls) == 1


def test_failing_child_does_not_block_bundle(airtable, config):
    _seed_scenario(airtable)
    airtable.fail("e1", 500)
    hydrator = ContextHydrator(config.store, transport=airtable.transport)

    result = run(hydrator.hydrate("rec1"))

    assert result.ok is True
    assert "<entities>" not in result.xml
    assert result.linked_counts.entities == 0
    entities = next(o for o in result.outcomes if o.category == "entities")
    assert entities.failed[0].error == "HTTP 500"


def test_transport_error_on_child_is_partial_loss(airtable, config):
    _seed_scenario(airtable)

    def handler(request):
        if request.url.path.endswith("/e1"):
            raise httpx.ConnectError("connection refused", request=request)
        return airtable.handle(request)

    hydrator = ContextHydrator(config.store, transport=httpx.MockTransport(handler))
    result = run(hydrator.hydrate("rec1"))

    assert result.ok is True
    assert result.linked_counts.personas == 1
    assert result.linked_counts.entities == 0


def test_hydrate_is_idempotent(airtable, config):
    _seed_scenario(airtable)
    hydrator = ContextHydrator(config.store, transport=airtable.transport)

    first = run(hydrator.hydrate("rec1"))
    second = run(hydrator.hydrate("rec1"))

    assert first.xml == second.xml


def test_children_keep_relation_order(airtable, config):
    airtable.add(INITIATORS, "rec3", {"Goal": "Order", "Personas": ["p9", "p8", "p7"]})
    for rid in ("p7", "p8", "p9"):
        airtable.add("Personas", rid, {"XML Bundle": f"<persona>{rid}</persona>"})
    hydrator = ContextHydrator(config.store, transport=airtable.transport)

    result = run(hydrator.hydrate("rec3"))

    lines = [line.strip() for line in result.xml.splitlines()]
    start = lines.index("<personas>")
    assert lines[start + 1 : start + 4] == [
        "<persona>p9</persona>",
        "<persona>p8</persona>",
        "<persona>p7</persona>",
    ]


def test_scalar_attributes_are_escaped(airtable, config):
    airtable.add(INITIATORS, "rec4", {"Goal": "Tips & <tricks>", "Output Type": ["A", "B"]})
    hydrator = ContextHydrator(config.store, transport=airtable.transport)

    result = run(hydrator.hydrate("rec4"))

    assert "<goal>Tips &amp; &lt;tricks&gt;</goal>" in result.xml
    assert "<outputType>A, B</outputType>" in result.xml


def test_missing_token_is_skipped_without_calls(airtable, make_config):
    config = make_config(AIRTABLE_PAT=None)
    hydrator = ContextHydrator(config.store, transport=airtable.transport)

    result = run(hydrator.hydrate("rec1"))

    assert isinstance(result, Skipped)
    assert result.to_payload()["skipped"] is True
    assert "AIRTABLE_PAT" in result.reason
    assert airtable.calls == []


def test_missing_base_id_is_skipped_naming_store_id(airtable, make_config):
    config = make_config(AIRTABLE_BASE_ID=None)
    hydrator = ContextHydrator(config.store, transport=airtable.transport)

    result = run(hydrator.hydrate("rec1"))

    assert isinstance(result, Skipped)
    assert "Base ID" in result.reason
    assert airtable.calls == []


def test_explicit_base_id_wins(airtable, make_config):
    _seed_scenario(airtable)
    config = make_config(AIRTABLE_BASE_ID=None)
    hydrator = ContextHydrator(config.store, transport=airtable.transport)

    result = run(hydrator.hydrate("rec1", "appTEST"))

    assert result.ok is True


def test_configured_field_names_are_used(airtable, make_config):
    config = make_config(
        AIRTABLE_TABLE_PERSONAS="Voices",
        AIRTABLE_FIELD_PERSONA_XML="Voice XML",
        AIRTABLE_LINK_PERSONAS="Voices",
    )
    airtable.add(INITIATORS, "rec5", {"Goal": "Custom", "Voices": ["v1"]})
    airtable.add("Voices", "v1", {"Voice XML": "<persona>V</persona>"})
    hydrator = ContextHydrator(config.store, transport=airtable.transport)

    result = run(hydrator.hydrate("rec5"))

    assert "<persona>V</persona>" in result.xml
    assert result.linked_counts.personas == 1


def test_bundle_prefers_prebuilt_field(airtable, config):
    airtable.add(
        INITIATORS,
        "rec6",
        {"Goal": "Pre", "BUNDLE of the XML BUNDLES": "<bundle>curated</bundle>", "Personas": ["p1"]},
    )
    hydrator = ContextHydrator(config.store, transport=airtable.transport)

    result = run(hydrator.bundle("rec6"))

    assert result.mode == HydrationMode.PREBUILT
    assert result.xml == "<bundle>curated</bundle>"
    assert result.to_payload()["source"] == "Content Initiator bundle field"
    assert len(airtable.calls) == 1


def test_bundle_without_prebuilt_lists_ids(airtable, config):
    _seed_scenario(airtable)
    hydrator = ContextHydrator(config.store, transport=airtable.transport)

    result = run(hydrator.bundle("rec1"))

    assert result.mode == HydrationMode.ASSEMBLED
    assert '  <personas linkedIds="p1,p2" />' in result.xml
    assert "<domains" not in result.xml
    assert result.linked_resources["entities"] == ["e1"]
    assert len(airtable.calls) == 1


def test_whitespace_only_knowledge_is_kept(airtable, config):
    airtable.add(INITIATORS, "rec7", {"Goal": "Blank", "Personas": ["p1"]})
    airtable.add("Personas", "p1", {"XML Bundle": "   "})
    hydrator = ContextHydrator(config.store, transport=airtable.transport)

    result = run(hydrator.hydrate("rec7"))

    assert result.linked_counts.personas == 1
    personas = next(o for o in result.outcomes if o.category == "personas")
    assert personas.succeeded == ["   "]
    assert personas.failed == []
