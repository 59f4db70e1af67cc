"""Tests for the Entity Trajectory."""

import pytest

from routemap.errors import InvalidPoint, OutOfOrderPoint
from routemap.surface.memory import InMemorySurface
from routemap.trajectory.entity import (
    HIGHLIGHTED,
    ROUTE_VISIBLE_CHANGED,
    VISIBLE_CHANGED,
    EntityTrajectory,
)
from routemap.trajectory.identity import compute_identity


def _make_entity(surface=None, **kwargs) -> EntityTrajectory:
    fields = kwargs.pop("fields", {"vessel": "Aurora"})
    return EntityTrajectory(
        identity=compute_identity(fields),
        fields=fields,
        surface=surface or InMemorySurface(),
        color="#236326",
        **kwargs,
    )


def _pt(ts, lat=0.0, lon=0.0) -> dict:
    return {"ts": ts, "lat": lat, "lon": lon}


class TestAddPoints:
    def test_points_kept_in_order(self):
        entity = _make_entity()
        for ts in (1, 2, 2, 5):
            entity.add(_pt(ts))
        assert [p.ts for p in entity.points] == [1, 2, 2, 5]
        assert not entity.is_empty()

    def test_out_of_order_rejected(self):
        entity = _make_entity()
        entity.add(_pt(10))
        entity.add(_pt(20))

        with pytest.raises(OutOfOrderPoint) as exc_info:
            entity.add(_pt(15))

        assert exc_info.value.ts == 15
        assert exc_info.value.last_ts == 20
        assert [p.ts for p in entity.points] == [10, 20]

    def test_invalid_point_rejected(self):
        entity = _make_entity()
        entity.add(_pt(1))
        with pytest.raises(InvalidPoint):
            entity.add({"ts": 2, "lat": "north", "lon": 0})
        assert len(entity.points) == 1

    def test_route_drawn_lazily_then_extended(self):
        surface = InMemorySurface()
        entity = _make_entity(surface, route_visible=True)
        assert surface.paths == {}

        entity.add(_pt(1, 1, 1))
        assert len(surface.paths) == 1
        entity.add(_pt(2, 2, 2))

        (handle,) = surface.paths
        assert surface.path_points(handle) == [(1, 1), (2, 2)]

    def test_no_route_when_hidden(self):
        surface = InMemorySurface()
        entity = _make_entity(surface, route_visible=False)
        entity.add(_pt(1))
        assert surface.paths == {}


class TestHistoricalPosition:
    def test_linear_interpolation(self):
        surface = InMemorySurface()
        entity = _make_entity(surface)
        entity.add(_pt(0, 0, 0))
        entity.add(_pt(10, 10, 20))

        position = entity.calculate_position(5, realtime=False, time_window=None)

        assert position == pytest.approx((5.0, 10.0))
        (marker,) = surface.markers.values()
        assert (marker["lat"], marker["lon"]) == pytest.approx((5.0, 10.0))
        assert marker["style"].title == "vessel: Aurora"

    def test_marker_moves_instead_of_being_recreated(self):
        surface = InMemorySurface()
        entity = _make_entity(surface)
        entity.add(_pt(0, 0, 0))
        entity.add(_pt(10, 10, 20))

        entity.calculate_position(2, realtime=False)
        entity.calculate_position(8, realtime=False)

        assert len(surface.markers) == 1
        (marker,) = surface.markers.values()
        assert marker["lat"] == pytest.approx(8.0)

    def test_exactly_on_first_point(self):
        entity = _make_entity()
        entity.add(_pt(0, 0, 0))
        entity.add(_pt(10, 10, 20))
        assert entity.calculate_position(0, realtime=False) == (0.0, 0.0)

    def test_before_first_point_has_no_position(self):
        surface = InMemorySurface()
        entity = _make_entity(surface)
        entity.add(_pt(10, 1, 1))
        entity.add(_pt(20, 2, 2))

        assert entity.calculate_position(5, realtime=False) is None
        assert surface.markers == {}

    def test_at_or_after_last_point_has_no_position(self):
        surface = InMemorySurface()
        entity = _make_entity(surface)
        entity.add(_pt(10, 1, 1))
        entity.add(_pt(20, 2, 2))
        entity.calculate_position(15, realtime=False)
        assert len(surface.markers) == 1

        assert entity.calculate_position(20, realtime=False) is None
        assert entity.calculate_position(100, realtime=False) is None
        assert surface.markers == {}
        assert entity.position is None

    def test_empty_entity_has_no_position(self):
        entity = _make_entity()
        assert entity.calculate_position(5, realtime=False) is None
        assert entity.calculate_position(5, realtime=True) is None


class TestRealtimePosition:
    def test_latest_point_regardless_of_clock(self):
        entity = _make_entity()
        entity.add(_pt(1, 1, 1))
        entity.add(_pt(5, 5, 5))

        assert entity.calculate_position(100, realtime=True, time_window=None) == (5, 5)
        assert entity.calculate_position(10_000, realtime=True, time_window=None) == (5, 5)


class TestWindowEviction:
    def test_lone_recent_point_is_kept(self):
        entity = _make_entity()
        entity.add(_pt(1000, 3, 4))

        assert entity.calculate_position(1005, realtime=True, time_window=10) == (3, 4)
        assert len(entity.points) == 1

    def test_lone_point_kept_within_staleness_tolerance(self):
        entity = _make_entity()
        entity.add(_pt(1000, 3, 4))

        # Outside the window but only 200 units old
        assert entity.calculate_position(1200, realtime=True, time_window=10) == (3, 4)
        assert len(entity.points) == 1

    def test_lone_stale_point_is_evicted(self):
        surface = InMemorySurface()
        entity = _make_entity(surface)
        entity.add(_pt(1000, 3, 4))
        entity.calculate_position(1000, realtime=True, time_window=10)

        assert entity.calculate_position(1400, realtime=True, time_window=10) is None
        assert entity.is_empty()
        assert surface.markers == {}

    def test_custom_object_timeout(self):
        entity = _make_entity(object_timeout=50)
        entity.add(_pt(1000))
        entity.calculate_position(1100, realtime=True, time_window=10)
        assert entity.is_empty()

    def test_old_points_evicted_from_front_and_route(self):
        surface = InMemorySurface()
        entity = _make_entity(surface, route_visible=True)
        for ts in (0, 10, 20, 30):
            entity.add(_pt(ts, ts, ts))

        position = entity.calculate_position(30, realtime=True, time_window=15)

        assert position == (30, 30)
        assert [p.ts for p in entity.points] == [20, 30]
        (handle,) = surface.paths
        assert surface.path_points(handle) == [(20, 20), (30, 30)]

    def test_no_eviction_without_window(self):
        entity = _make_entity()
        entity.add(_pt(0))
        entity.calculate_position(1_000_000, realtime=True, time_window=None)
        assert len(entity.points) == 1


class TestVisibility:
    def test_hidden_entity_has_no_position(self):
        surface = InMemorySurface()
        entity = _make_entity(surface, visible=False)
        entity.add(_pt(0))
        entity.add(_pt(10))

        assert entity.calculate_position(5, realtime=False) is None
        assert surface.markers == {}

    def test_hidden_entity_is_not_evicted(self):
        entity = _make_entity(visible=False)
        entity.add(_pt(0))
        entity.add(_pt(10))
        entity.calculate_position(5000, realtime=True, time_window=10)
        assert len(entity.points) == 2

    def test_hide_twice_is_idempotent(self):
        surface = InMemorySurface()
        entity = _make_entity(surface)
        entity.add(_pt(0, 1, 1))
        entity.calculate_position(0, realtime=True)
        changes = []
        entity.events.on(VISIBLE_CHANGED, lambda e, v: changes.append(v))

        entity.set_visible(False)
        state_after_once = (entity.visible, entity.position, dict(surface.markers))
        entity.set_visible(False)

        assert (entity.visible, entity.position, dict(surface.markers)) == state_after_once
        assert surface.markers == {}
        assert changes == [False]

    def test_route_toggle_draws_and_removes_path(self):
        surface = InMemorySurface()
        entity = _make_entity(surface)
        entity.add(_pt(1, 1, 1))
        entity.add(_pt(2, 2, 2))
        changes = []
        entity.events.on(ROUTE_VISIBLE_CHANGED, lambda e, v: changes.append(v))

        entity.toggle_route()
        assert entity.route_visible
        (handle,) = surface.paths
        assert surface.path_points(handle) == [(1, 1), (2, 2)]

        entity.toggle_route()
        assert not entity.route_visible
        assert surface.paths == {}
        assert changes == [True, False]

    def test_route_shown_twice_draws_once(self):
        surface = InMemorySurface()
        entity = _make_entity(surface)
        entity.add(_pt(1))
        entity.set_route_visible(True)
        entity.set_route_visible(True)
        assert len(surface.paths) == 1

    def test_toggle_visible(self):
        entity = _make_entity()
        entity.toggle_visible()
        assert not entity.visible
        entity.toggle_visible()
        assert entity.visible


class TestHighlight:
    def test_highlight_shows_everything_and_zooms(self):
        surface = InMemorySurface()
        entity = _make_entity(surface, visible=False, route_visible=False)
        entity.add(_pt(1, 10, 20))
        entity.add(_pt(2, 30, 40))
        highlighted = []
        entity.events.on(HIGHLIGHTED, highlighted.append)

        entity.highlight()

        assert entity.visible
        assert entity.route_visible
        assert len(surface.paths) == 1
        assert surface.viewport == {
            "min_lat": 10, "min_lon": 20, "max_lat": 30, "max_lon": 40,
        }
        assert highlighted == [entity]


class TestTeardown:
    def test_teardown_detaches_and_clears(self):
        surface = InMemorySurface()
        entity = _make_entity(surface, route_visible=True)
        entity.add(_pt(0))
        entity.calculate_position(0, realtime=True)
        calls = []
        entity.events.on(ROUTE_VISIBLE_CHANGED, lambda e, v: calls.append(v))

        entity.teardown()

        assert calls == []
        assert entity.events.listener_count() == 0
        assert surface.markers == {}
        assert surface.paths == {}

    def test_summary(self):
        entity = _make_entity()
        entity.add(_pt(3, 1, 2))
        entity.add(_pt(7, 3, 4))
        entity.calculate_position(7, realtime=True)

        summary = entity.summary()

        assert summary["title"] == "vessel: Aurora"
        assert summary["point_count"] == 2
        assert summary["first_ts"] == 3
        assert summary["last_ts"] == 7
        assert summary["position"] == [3, 4]
        assert summary["key"] == entity.key
