"""Tests for NotificationRequest parsing and serialization."""
import json

import pytest

from wakeful.config import MAX_REPEAT_INTERVAL_MS
from wakeful.errors import MalformedRequest
from wakeful.models.entities import NotificationRequest, ReconcilePlan, RestoreReport, WakeRequest


class TestFromOptions:
    def test_extra_keys_become_payload(self):
        request = NotificationRequest.from_options({
            "id": 7,
            "title": "Stand up",
            "body": "Daily sync",
            "atTime": 1000,
            "repeatInterval": 60_000,
            "alertWhileIdle": 1,
        })
        assert request == NotificationRequest(
            id=7,
            at_time=1000,
            repeat_interval=60_000,
            alert_while_idle=True,
            payload={"title": "Stand up", "body": "Daily sync"},
        )

    def test_defaults_to_immediate_one_shot(self):
        request = NotificationRequest.from_options({"id": 1})
        assert request.is_immediate
        assert not request.is_repeating
        assert not request.alert_while_idle

    def test_merges_explicit_payload(self):
        request = NotificationRequest.from_options({"id": 1, "payload": {"a": 1}, "title": "x"})
        assert request.payload == {"a": 1, "title": "x"}

    def test_rejects_non_dict(self):
        with pytest.raises(MalformedRequest):
            NotificationRequest.from_options(["id", 1])


class TestFromJson:
    def test_roundtrip(self):
        request = NotificationRequest(id=3, at_time=5, repeat_interval=10, alert_while_idle=True,
                                      payload={"title": "t"})
        assert NotificationRequest.from_json(request.to_json()) == request

    def test_persisted_form_uses_flag_integers(self):
        data = json.loads(NotificationRequest(id=1, alert_while_idle=True).to_json())
        assert data["alertWhileIdle"] == 1
        assert data["atTime"] == 0

    def test_accepts_boolean_flag(self):
        request = NotificationRequest.from_json('{"id": 1, "alertWhileIdle": true}')
        assert request.alert_while_idle

    def test_accepts_integral_float(self):
        assert NotificationRequest.from_json('{"id": 1, "atTime": 1000.0}').at_time == 1000

    @pytest.mark.parametrize("data", [
        "",
        "not json",
        "[1, 2]",
        "{}",
        '{"id": "1"}',
        '{"id": true}',
        '{"id": 1, "atTime": "soon"}',
        '{"id": 1, "atTime": -5}',
        '{"id": 1, "repeatInterval": 1.5}',
        '{"id": 1, "alertWhileIdle": 2}',
        '{"id": 1, "payload": "text"}',
        '{"id": 1, "repeatInterval": 10000000000000000}',
        '{"id": 1, "alertWhileIdle": "1"}',
    ])
    def test_malformed_data_raises(self, data):
        with pytest.raises(MalformedRequest):
            NotificationRequest.from_json(data)

    def test_yearly_interval_is_the_maximum(self):
        request = NotificationRequest.from_dict({"id": 1, "repeatInterval": MAX_REPEAT_INTERVAL_MS})
        assert request.repeat_interval == MAX_REPEAT_INTERVAL_MS
        with pytest.raises(MalformedRequest):
            NotificationRequest.from_dict({"id": 1, "repeatInterval": MAX_REPEAT_INTERVAL_MS + 1})

    def test_malformed_request_is_a_value_error(self):
        with pytest.raises(ValueError):
            NotificationRequest.from_json("{")


class TestPlanTypes:
    def test_empty_plan_is_noop(self):
        assert ReconcilePlan().is_noop
        assert not ReconcilePlan(wake=WakeRequest(1, exact=False, idle_capable=False)).is_noop

    def test_restore_report_total(self):
        report = RestoreReport(restored=[1, 2], malformed=[3], failed=[4])
        assert report.total == 4
