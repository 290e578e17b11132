"""Tests for the FastAPI service: one operator session driven over HTTP."""

from contextlib import contextmanager

import pytest
from fastapi.testclient import TestClient

from trench_map import api, session
from trench_map.api import app
from trench_map.core.models import GeoPoint
from trench_map.session import get_gps_source, get_session, reset_session

A = GeoPoint(lat=24.45, lng=39.57)
B = GeoPoint(lat=24.46, lng=39.58)


@pytest.fixture(autouse=True)
def fresh_session():
    reset_session()
    yield
    reset_session()


@pytest.fixture
def client():
    return TestClient(app)


def _px(point):
    s = get_session().backend.project(point)
    return {"x": s.x, "y": s.y}


def _draw(client, a=A, b=B):
    client.post("/pointer/click", json=_px(a))
    return client.post("/pointer/click", json=_px(b)).json()["line"]


class TestHealth:

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json() == {"status": "ok", "lines": 0, "gps": "activating"}

    def test_health_goes_through_the_session_lock(self, client, monkeypatch):
        entered = []

        @contextmanager
        def spy():
            with session.locked_session() as s:
                entered.append(s)
                yield s

        monkeypatch.setattr(api, "locked_session", spy)
        assert client.get("/health").status_code == 200
        assert entered == [get_session()]

    def test_gps_source_missing_is_an_error(self, monkeypatch):
        monkeypatch.setattr(session, "_router", object())
        monkeypatch.setattr(session, "_gps_source", None)
        with pytest.raises(RuntimeError):
            get_gps_source()

    def test_config(self, client):
        body = client.get("/config").json()
        assert body["hit_tolerance_px"] == 10.0
        assert set(body["tile_urls"]) == {"street", "satellite"}


class TestView:

    def test_state(self, client):
        state = client.get("/state").json()
        assert state["mode"] == "draw"
        assert state["rotation_degrees"] == 0.0
        assert state["next_id"] == "A1"

    def test_mode(self, client):
        assert client.post("/mode", json={"mode": "select"}).json()["mode"] == "select"
        assert client.post("/mode", json={"mode": "erase"}).status_code == 422

    def test_rotation_is_normalized(self, client):
        assert client.post("/rotation", json={"degrees": -90}).json()["rotation_degrees"] == pytest.approx(270.0)

    def test_layer(self, client):
        assert client.post("/layer", json={"layer": "satellite"}).json()["base_layer"] == "satellite"
        assert client.get("/scene").json()["base_layer"] == "satellite"

    def test_unknown_pointer_action(self, client):
        assert client.post("/pointer/wiggle", json={"x": 1, "y": 1}).status_code == 422

    def test_rotate_gesture(self, client):
        client.post("/mode", json={"mode": "rotate"})
        c = get_session().backend.view_center()
        r = client.post("/pointer/down", json={"x": c.x + 100, "y": c.y, "modifier": True})
        assert r.json()["gesture"] is True
        r = client.post("/pointer/move", json={"x": c.x, "y": c.y + 100})
        assert r.json()["state"]["rotation_degrees"] == pytest.approx(90.0)
        r = client.post("/pointer/up", json={})
        assert r.json()["state"]["is_rotating"] is False


class TestDrawAndEdit:

    def test_two_clicks_make_a_line(self, client):
        first = client.post("/pointer/click", json=_px(A)).json()
        assert first["line"] is None
        assert first["state"]["pending"]["origin"] == "draw"

        line = client.post("/pointer/click", json=_px(B)).json()["line"]
        assert line["id"] == "A1"
        assert line["start"]["lat"] == pytest.approx(A.lat, abs=1e-9)
        assert line["distance"] > 1000

        listed = client.get("/lines").json()
        assert [item["id"] for item in listed] == ["A1"]
        assert client.get("/lines/A1").json()["roadType"] == "Soil"

    def test_scene_after_drawing(self, client):
        _draw(client)
        scene = client.get("/scene").json()
        assert len(scene["vector"]) == 1
        assert sorted(item["kind"] for item in scene["overlay"]) == ["label", "marker", "marker"]

    def test_patch(self, client):
        _draw(client)
        r = client.patch("/lines/A1", json={"depth": "1.2", "roadType": "Asphalt"})
        assert r.status_code == 200
        assert r.json()["depth"] == "1.2"
        assert r.json()["roadType"] == "Asphalt"
        assert r.json()["excavationType"] == "العادي"

    def test_patch_errors(self, client):
        _draw(client)
        assert client.patch("/lines/A1", json={}).status_code == 400
        assert client.patch("/lines/A1", json={"depth": "deep"}).status_code == 422
        assert client.patch("/lines/A1", json={"roadType": "Gravel"}).status_code == 422
        assert client.patch("/lines/A9", json={"depth": "1"}).status_code == 404

    def test_delete(self, client):
        _draw(client)
        assert client.delete("/lines/A1").status_code == 204
        assert client.delete("/lines/A1").status_code == 404
        assert client.get("/lines").json() == []
        assert client.get("/scene").json()["vector"] == []

    def test_select_by_click(self, client):
        _draw(client)
        client.post("/mode", json={"mode": "select"})
        r = client.post("/pointer/click", json=_px(A)).json()
        assert r["line"]["id"] == "A1"
        assert r["state"]["selection"] == {"state": "selected", "line_id": "A1", "endpoint": None}


class TestGps:

    FIX = {"lat": 24.45, "lng": 39.57, "accuracyMeters": 4}

    def test_capture_needs_a_fix(self, client):
        assert client.post("/capture/start").status_code == 409

    def test_capture_line(self, client):
        gps = client.post("/gps/fix", json=self.FIX).json()
        assert gps["status"] == "active"
        assert gps["fix"]["accuracyMeters"] == 4.0

        start = client.post("/capture/start")
        assert start.status_code == 200
        assert start.json()["pending"] == {"lat": 24.45, "lng": 39.57}

        client.post("/gps/fix", json={"lat": 24.46, "lng": 39.58})
        line = client.post("/capture/end").json()["line"]
        assert line["id"] == "A1"
        assert line["end"] == {"lat": 24.46, "lng": 39.58}

    def test_capture_end_without_start(self, client):
        client.post("/gps/fix", json=self.FIX)
        assert client.post("/capture/end").status_code == 409

    def test_error_makes_source_unavailable(self, client):
        client.post("/gps/fix", json=self.FIX)
        assert client.post("/gps/error", json={"message": "timeout"}).json()["status"] == "error"
        assert client.post("/capture/start").status_code == 503

    def test_bad_fix_rejected(self, client):
        assert client.post("/gps/fix", json={"lat": 120, "lng": 0}).status_code == 422

    def test_poll_without_url(self, client):
        assert client.post("/gps/poll").status_code == 409


class TestDrawing:

    def test_save(self, client):
        _draw(client)
        client.put("/work-order", json={"workOrderNo": "WO-3", "workType": "Sewer"})
        r = client.get("/drawing")
        assert r.status_code == 200
        assert "map-drawing-" in r.headers["content-disposition"]
        body = r.json()
        assert body["workOrderNo"] == "WO-3"
        assert [line["id"] for line in body["lines"]] == ["A1"]

    def test_load_then_counter_continues(self, client):
        doc = {
            "workOrderNo": "WO-8",
            "workType": "Gas",
            "lines": [{"id": "A5", "start": {"lat": 24.45, "lng": 39.57}, "end": {"lat": 24.46, "lng": 39.58}}],
        }
        r = client.post("/drawing", json=doc)
        assert r.json() == {"loaded": 1, "next_id": "A6"}
        assert client.get("/state").json()["workOrderNo"] == "WO-8"
        assert _draw(client)["id"] == "A6"

    def test_bad_load_keeps_drawing(self, client):
        _draw(client)
        r = client.post("/drawing", json={"lines": [{"id": "A1"}]})
        assert r.status_code == 422
        assert [line["id"] for line in client.get("/lines").json()] == ["A1"]

    def test_csv(self, client):
        _draw(client)
        r = client.get("/drawing.csv")
        assert r.headers["content-type"].startswith("text/csv")
        assert r.content.startswith(b"\xef\xbb\xbf")
        lines = r.content.decode("utf-8-sig").splitlines()
        assert lines[0].startswith("Work Order No,Work Type,Line")
        assert lines[1].split(",")[2] == "A1"

    def test_xls(self, client):
        _draw(client)
        r = client.get("/drawing.xls")
        assert r.headers["content-type"].startswith("application/vnd.ms-excel")
        assert "map-data-" in r.headers["content-disposition"]
        assert "<td>A1</td>" in r.text
