"""Tests for trench_map.gps: push fan-out, HTTP polling and payload parsing."""

import pytest
import requests

from trench_map.core.models import GpsFix
from trench_map.gps.http import HTTPGpsSource, parse_fix
from trench_map.gps.push import PushGpsSource


class FakeClient:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.urls = []

    def get_json(self, url, timeout_s=None):
        self.urls.append(url)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class Recorder:
    def __init__(self):
        self.fixes = []
        self.errors = []

    def subscribe_to(self, source):
        return source.subscribe(self.fixes.append, self.errors.append)


class TestPushSource:

    @pytest.mark.unit
    def test_fan_out_to_every_subscriber(self):
        source = PushGpsSource()
        a, b = Recorder(), Recorder()
        a.subscribe_to(source)
        b.subscribe_to(source)
        fix = GpsFix(lat=24.0, lng=39.0)
        source.push(fix)
        assert a.fixes == [fix]
        assert b.fixes == [fix]

    @pytest.mark.unit
    def test_unsubscribe(self):
        source = PushGpsSource()
        rec = Recorder()
        token = rec.subscribe_to(source)
        source.unsubscribe(token)
        source.unsubscribe(token)
        source.push(GpsFix(lat=1.0, lng=2.0))
        assert rec.fixes == []
        assert source.subscriber_count == 0

    @pytest.mark.unit
    def test_errors_and_out_of_order_fixes_pass_through(self):
        source = PushGpsSource()
        rec = Recorder()
        rec.subscribe_to(source)
        late, early = GpsFix(lat=1.0, lng=1.0), GpsFix(lat=2.0, lng=2.0)
        source.push(late)
        source.fail("denied")
        source.push(early)
        assert rec.fixes == [late, early]
        assert rec.errors == ["denied"]


class TestParseFix:

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "payload",
        [
            {"lat": 24.5, "lng": 39.6, "accuracy": 5},
            {"latitude": 24.5, "longitude": 39.6, "accuracy": 5},
            {"lat": 24.5, "lon": 39.6, "accuracyMeters": 5},
            {"coords": {"latitude": 24.5, "longitude": 39.6, "accuracy": 5}},
        ],
    )
    def test_spellings(self, payload):
        fix = parse_fix(payload)
        assert fix.lat == 24.5
        assert fix.lng == 39.6
        assert fix.accuracy_m == 5.0

    @pytest.mark.unit
    def test_accuracy_optional(self):
        assert parse_fix({"lat": 1, "lng": 2}).accuracy_m is None

    @pytest.mark.unit
    def test_rejects_missing_or_out_of_range(self):
        with pytest.raises(ValueError):
            parse_fix({"lat": 1})
        with pytest.raises(ValueError):
            parse_fix({"lat": 91, "lng": 2})


class TestHTTPSource:

    @pytest.mark.unit
    def test_poll_emits_fix(self):
        client = FakeClient({"lat": 24.0, "lng": 39.0, "accuracy": 3})
        source = HTTPGpsSource("http://gps.local/fix", client=client)
        rec = Recorder()
        rec.subscribe_to(source)
        fix = source.poll()
        assert fix == GpsFix(lat=24.0, lng=39.0, accuracy_m=3.0)
        assert rec.fixes == [fix]
        assert client.urls == ["http://gps.local/fix"]

    @pytest.mark.unit
    def test_network_error_becomes_gps_error(self):
        client = FakeClient(requests.ConnectionError("refused"))
        source = HTTPGpsSource("http://gps.local/fix", client=client)
        rec = Recorder()
        rec.subscribe_to(source)
        assert source.poll() is None
        assert rec.fixes == []
        assert len(rec.errors) == 1
        assert rec.errors[0].startswith("ConnectionError")

    @pytest.mark.unit
    def test_bad_payload_becomes_gps_error(self):
        client = FakeClient({"status": "no fix"}, ["not", "an", "object"])
        source = HTTPGpsSource("http://gps.local/fix", client=client)
        rec = Recorder()
        rec.subscribe_to(source)
        assert source.poll() is None
        assert source.poll() is None
        assert len(rec.errors) == 2
