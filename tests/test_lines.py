"""Tests for trench_map.core.lines: ids, derived distance, handles, picking, import."""

import pytest

from conftest import geo_at
from trench_map.core.errors import InvalidInput, NotFound
from trench_map.core.geomath import distance
from trench_map.core.models import (
    Endpoint,
    ExcavationType,
    GeoPoint,
    LineRecord,
    RoadType,
)

P1 = GeoPoint(lat=24.0, lng=39.0)
P2 = GeoPoint(lat=24.001, lng=39.001)
P3 = GeoPoint(lat=24.0005, lng=39.0)


class TestCreate:

    def test_sequential_ids(self, store):
        ids = [store.create(P1, P2).id for _ in range(3)]
        assert ids == ["A1", "A2", "A3"]

    def test_ids_never_reused(self, store):
        for _ in range(3):
            store.create(P1, P2)
        store.delete("A2")
        assert store.create(P1, P2).id == "A4"
        assert "A2" not in store

    def test_defaults(self, store):
        line = store.create(P1, P2)
        assert line.depth == ""
        assert line.width == ""
        assert line.excavation_type == ExcavationType.NORMAL
        assert line.road_type == RoadType.SOIL

    def test_distance_is_derived(self, store):
        line = store.create(P1, P2)
        assert line.distance == pytest.approx(150.61, abs=0.05)
        assert line.distance == distance(P1, P2)

    def test_distance_not_settable(self, store):
        line = store.create(P1, P2)
        with pytest.raises((AttributeError, TypeError, ValueError)):
            line.distance = 1.0

    def test_draws_four_handles(self, store, backend):
        line = store.create(P1, P2)
        kinds = sorted(backend.primitives[h].kind for h in line.handles.all())
        assert kinds == ["label", "line", "marker", "marker"]
        assert backend.primitives[line.handles.label].text == f"{line.distance:.2f} m"

    def test_iteration_in_creation_order(self, store):
        for _ in range(3):
            store.create(P1, P2)
        assert [line.id for line in store] == ["A1", "A2", "A3"]
        assert len(store) == 3


class TestUpdateEndpoint:

    def test_recomputes_distance(self, store):
        line = store.create(P1, P2)
        store.update_endpoint(line.id, Endpoint.END, P3)
        assert line.end == P3
        assert line.distance == pytest.approx(distance(P1, P3))

    def test_moves_handles(self, store, backend):
        line = store.create(P1, P2)
        store.update_endpoint(line.id, "start", P3)
        h = line.handles
        assert backend.primitives[h.polyline].points == [P3, P2]
        assert backend.primitives[h.start_marker].points == [P3]
        label = backend.primitives[h.label]
        assert label.text == f"{distance(P3, P2):.2f} m"
        assert label.points[0].lat == pytest.approx((P3.lat + P2.lat) / 2)

    def test_unknown_id(self, store):
        with pytest.raises(NotFound):
            store.update_endpoint("A99", Endpoint.START, P1)


class TestAttributes:

    def test_update(self, store):
        line = store.create(P1, P2)
        store.update_attributes(line.id, depth="1.5", width=0.6, road_type="Asphalt")
        assert line.depth == "1.5"
        assert line.width == "0.6"
        assert line.road_type == RoadType.ASPHALT
        assert line.excavation_type == ExcavationType.NORMAL

    def test_alias_names(self, store):
        line = store.create(P1, P2)
        store.update_attributes(line.id, excavationType="الطارئ")
        assert line.excavation_type == ExcavationType.EMERGENCY

    @pytest.mark.parametrize("changes", [{"depth": "deep"}, {"road_type": "Gravel"}, {"colour": "red"}])
    def test_invalid_leaves_line_alone(self, store, changes):
        line = store.create(P1, P2)
        with pytest.raises(InvalidInput):
            store.update_attributes(line.id, **changes)
        assert line.depth == ""
        assert line.road_type == RoadType.SOIL

    def test_unknown_id(self, store):
        with pytest.raises(NotFound):
            store.update_attributes("A5", depth="1")


class TestDelete:

    def test_removes_handles(self, store, backend):
        line = store.create(P1, P2)
        handles = line.handles.all()
        store.delete(line.id)
        assert len(store) == 0
        assert not any(h in backend.primitives for h in handles)

    def test_second_delete_is_not_found(self, store, backend):
        keep = store.create(P1, P2)
        gone = store.create(P1, P3)
        store.delete(gone.id)
        before = dict(backend.primitives)
        with pytest.raises(NotFound):
            store.delete(gone.id)
        assert backend.primitives == before
        assert keep.id in store

    def test_listener_runs_before_removal(self, store):
        seen = []
        store.on_delete(lambda line_id: seen.append((line_id, line_id in store)))
        line = store.create(P1, P2)
        store.delete(line.id)
        assert seen == [("A1", True)]


class TestFindNearest:

    def test_hit_and_miss(self, store, backend):
        store.create(geo_at(backend, 100, 100), geo_at(backend, 500, 100))
        assert store.find_nearest(geo_at(backend, 300, 105), 10.0).id == "A1"
        assert store.find_nearest(geo_at(backend, 300, 130), 10.0) is None

    def test_first_created_wins_over_closer(self, store, backend):
        store.create(geo_at(backend, 100, 100), geo_at(backend, 500, 100))
        store.create(geo_at(backend, 100, 104), geo_at(backend, 500, 104))
        # 3 px from A1, 1 px from A2
        assert store.find_nearest(geo_at(backend, 300, 103), 10.0).id == "A1"

    def test_beyond_segment_end_is_clamped(self, store, backend):
        store.create(geo_at(backend, 100, 100), geo_at(backend, 500, 100))
        # On the infinite line but 20 px past the end
        assert store.find_nearest(geo_at(backend, 520, 100), 10.0) is None

    def test_empty_store(self, store):
        assert store.find_nearest(P1, 10.0) is None


class TestReplaceAll:

    def _records(self):
        return [
            LineRecord(id="A3", start=P1, end=P2, distance=999.0, depth="1.2", road_type="Asphalt"),
            LineRecord(id="A7", start=P2, end=P3, excavation_type="المتعدد"),
        ]

    def test_keeps_ids_and_recomputes_distance(self, store):
        lines = store.replace_all(self._records())
        assert [line.id for line in lines] == ["A3", "A7"]
        assert lines[0].distance == pytest.approx(distance(P1, P2))
        assert lines[0].depth == "1.2"
        assert lines[0].road_type == RoadType.ASPHALT
        assert lines[1].excavation_type == ExcavationType.MULTIPLE

    def test_counter_moves_past_imported_ids(self, store):
        store.replace_all(self._records())
        assert store.create(P1, P2).id == "A8"

    def test_counter_never_goes_back(self, store):
        for _ in range(9):
            store.create(P1, P2)
        store.replace_all([LineRecord(id="A2", start=P1, end=P2)])
        assert store.create(P1, P2).id == "A10"

    def test_clears_old_handles(self, store, backend):
        old = store.create(P1, P2)
        old_handles = old.handles.all()
        store.replace_all(self._records())
        assert not any(h in backend.primitives for h in old_handles)
        assert len(backend.primitives) == 8

    def test_missing_id_gets_fresh_one(self, store):
        lines = store.replace_all([LineRecord(start=P1, end=P2), LineRecord(id="A4", start=P2, end=P3)])
        assert [line.id for line in lines] == ["A5", "A4"]

    @pytest.mark.parametrize("bad_id", ["B1", "A", "a2"])
    def test_bad_id_rejected_before_clearing(self, store, bad_id):
        store.create(P1, P2)
        with pytest.raises(InvalidInput):
            store.replace_all([LineRecord(id=bad_id, start=P1, end=P2)])
        assert [line.id for line in store] == ["A1"]

    def test_duplicate_ids_rejected(self, store):
        store.create(P1, P2)
        with pytest.raises(InvalidInput):
            store.replace_all([LineRecord(id="A2", start=P1, end=P2), LineRecord(id="A2", start=P2, end=P3)])
        assert len(store) == 1
