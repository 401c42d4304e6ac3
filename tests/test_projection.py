"""
Tests for the status projection engine.

Covers the reset and apply passes, closed-incident exclusion, idempotence,
unknown components, malformed input and the order-dependent tie-break.
"""

import copy

from stagingpage.projection import collect_claims, project_component_statuses

STAMP = "2026-10-17T12:00:00+00:00"


def _component(cid, status="operational"):
    return {"id": cid, "name": cid.upper(), "status": status, "updated_at": "old"}


def _incident(status, *claims):
    return {
        "id": f"inc-{status}-{len(claims)}",
        "status": status,
        "components": [{"id": cid, "name": cid, "status": st} for cid, st in claims],
    }


class TestCollectClaims:
    def test_ignores_operational_snapshots(self):
        claims = collect_claims([_incident("investigating", ("a", "operational"), ("b", "major_outage"))])
        assert claims == {"b": "major_outage"}

    def test_ignores_closed_incidents(self):
        incidents = [
            _incident("resolved", ("a", "major_outage")),
            _incident("postmortem", ("b", "partial_outage")),
        ]
        assert collect_claims(incidents) == {}

    def test_skips_malformed_entries(self):
        incidents = [
            "not an incident",
            {"status": "investigating", "components": {"a": "major_outage"}},
            {"status": "identified", "components": ["junk", {"status": "major_outage"}]},
        ]
        assert collect_claims(incidents) == {}


class TestResetPass:
    def test_unclaimed_component_returns_to_operational(self):
        result = project_component_statuses([_component("a", "major_outage")], [], now=STAMP)
        assert result.changed
        assert result.components[0]["status"] == "operational"
        assert result.components[0]["updated_at"] == STAMP

    def test_resolved_incident_does_not_hold_component(self):
        components = [_component("a", "partial_outage")]
        incidents = [_incident("resolved", ("a", "partial_outage"))]
        result = project_component_statuses(components, incidents, now=STAMP)
        assert result.components[0]["status"] == "operational"


class TestApplyPass:
    def test_claimed_status_is_applied(self):
        components = [_component("a"), _component("b")]
        incidents = [_incident("investigating", ("a", "degraded_performance"))]
        result = project_component_statuses(components, incidents, now=STAMP)
        assert [c["status"] for c in result.components] == ["degraded_performance", "operational"]
        assert result.components[0]["updated_at"] == STAMP
        assert result.components[1]["updated_at"] == "old"

    def test_matching_status_is_left_alone(self):
        components = [_component("a", "major_outage")]
        incidents = [_incident("monitoring", ("a", "major_outage"))]
        result = project_component_statuses(components, incidents, now=STAMP)
        assert not result.changed
        assert result.components[0]["updated_at"] == "old"

    def test_unknown_component_is_not_materialized(self):
        components = [_component("a")]
        incidents = [_incident("investigating", ("ghost", "major_outage"))]
        result = project_component_statuses(components, incidents, now=STAMP)
        assert not result.changed
        assert [c["id"] for c in result.components] == ["a"]


    def test_integer_ids_match_string_claims(self):
        components = [{"id": 5, "name": "Five", "status": "operational"}]
        incidents = [{"id": "i", "status": "investigating", "components": [{"id": 5, "status": "major_outage"}]}]
        result = project_component_statuses(components, incidents, now=STAMP)
        assert result.changed
        assert result.components[0]["status"] == "major_outage"

    def test_claimed_integer_id_is_not_reset(self):
        components = [{"id": 7, "name": "Seven", "status": "partial_outage"}]
        incidents = [{"id": "i", "status": "identified", "components": [{"id": "7", "status": "partial_outage"}]}]
        result = project_component_statuses(components, incidents, now=STAMP)
        assert not result.changed
        assert result.components[0]["status"] == "partial_outage"


class TestTieBreak:
    def test_last_iterated_open_incident_wins(self):
        components = [_component("a")]
        incidents = [
            _incident("investigating", ("a", "major_outage")),
            _incident("identified", ("a", "degraded_performance")),
        ]
        result = project_component_statuses(components, incidents, now=STAMP)
        assert result.components[0]["status"] == "degraded_performance"

    def test_order_not_severity_decides(self):
        components = [_component("a")]
        incidents = [
            _incident("identified", ("a", "degraded_performance")),
            _incident("investigating", ("a", "major_outage")),
        ]
        result = project_component_statuses(components, incidents, now=STAMP)
        assert result.components[0]["status"] == "major_outage"


class TestPurityAndIdempotence:
    def test_inputs_are_not_mutated(self):
        components = [_component("a", "major_outage"), _component("b")]
        incidents = [_incident("investigating", ("b", "partial_outage"))]
        before = copy.deepcopy(components)
        project_component_statuses(components, incidents, now=STAMP)
        assert components == before

    def test_second_run_changes_nothing(self):
        components = [_component("a", "major_outage"), _component("b")]
        incidents = [_incident("investigating", ("b", "partial_outage"))]
        first = project_component_statuses(components, incidents, now=STAMP)
        second = project_component_statuses(first.components, incidents, now="later")
        assert first.changed
        assert not second.changed
        assert second.components == first.components

    def test_never_raises_on_junk(self):
        result = project_component_statuses(["junk", _component("a")], [None, 42], now=STAMP)
        assert not result.changed
