"""Tests for the track registry column bookkeeping."""

import pytest

from metro import (
    DuplicateTrackError,
    MissingOrClosedTrackError,
    SelfJoinError,
    TrackRegistry,
    TrackStatus,
)


class TestRegister:

    def test_register_appends_rightmost(self):
        registry = TrackRegistry()
        assert registry.register("a") == 0
        assert registry.register("b") == 1
        assert registry.active_columns() == ("a", "b")
        assert len(registry) == 2

    def test_initial_tracks(self):
        registry = TrackRegistry([0, 7])
        assert registry.active_columns() == (0, 7)
        assert registry.column(7) == 1

    def test_duplicate_register(self):
        registry = TrackRegistry([0])
        with pytest.raises(DuplicateTrackError) as exc_info:
            registry.register(0)
        assert exc_info.value.track_id == 0
        assert registry.active_columns() == (0,)

    def test_closed_id_is_not_reused(self):
        registry = TrackRegistry([0, 1])
        registry.stop(1)
        with pytest.raises(DuplicateTrackError):
            registry.register(1)
        with pytest.raises(DuplicateTrackError):
            registry.split(0, 1)


class TestSplit:

    def test_split_inserts_next_to_parent(self):
        registry = TrackRegistry([0, 1, 2])
        assert registry.split(1, 9) == 2
        assert registry.active_columns() == (0, 1, 9, 2)
        assert registry.column(2) == 3

    def test_split_rightmost(self):
        registry = TrackRegistry([0])
        assert registry.split(0, 1) == 1
        assert registry.active_columns() == (0, 1)

    def test_split_missing_parent(self):
        registry = TrackRegistry([0])
        with pytest.raises(MissingOrClosedTrackError):
            registry.split(3, 4)
        assert registry.status(4) is None

    def test_split_into_active(self):
        registry = TrackRegistry([0, 1])
        with pytest.raises(DuplicateTrackError):
            registry.split(0, 1)
        assert registry.active_columns() == (0, 1)


class TestJoin:

    def test_join_returns_columns_and_distance(self):
        registry = TrackRegistry([0, 1, 2, 3, 4, 5])
        assert registry.join(4, 0) == (4, 0, 4)
        assert registry.active_columns() == (0, 1, 2, 3, 5)
        assert registry.column(5) == 4
        assert registry.status(4) is TrackStatus.JOINED

    def test_join_towards_right(self):
        registry = TrackRegistry([0, 1, 2])
        assert registry.join(0, 2) == (0, 2, 2)
        assert registry.active_columns() == (1, 2)
        assert registry.column(2) == 1

    def test_self_join(self):
        registry = TrackRegistry([0])
        with pytest.raises(SelfJoinError):
            registry.join(0, 0)
        assert registry.is_active(0)

    def test_join_missing_target_leaves_source(self):
        registry = TrackRegistry([0, 1])
        with pytest.raises(MissingOrClosedTrackError) as exc_info:
            registry.join(1, 8)
        assert exc_info.value.track_id == 8
        assert registry.active_columns() == (0, 1)


class TestStop:

    def test_stop_reports_shift(self):
        registry = TrackRegistry([0, 1, 2, 3])
        assert registry.stop(1) == (1, 2)
        assert registry.active_columns() == (0, 2, 3)
        assert registry.column(3) == 2
        assert registry.status(1) is TrackStatus.STOPPED

    def test_stop_last(self):
        registry = TrackRegistry([0, 1])
        assert registry.stop(1) == (1, 0)

    def test_station_column_after_stop(self):
        registry = TrackRegistry([0])
        registry.stop(0)
        assert len(registry) == 0
        with pytest.raises(MissingOrClosedTrackError):
            registry.station_column(0)


def test_column_accounting():
    registry = TrackRegistry([0])
    registry.split(0, 1)
    registry.split(1, 2)
    registry.register(3)
    registry.join(2, 0)
    registry.stop(3)
    registry.split(1, 4)
    # 5 ids created, 1 joined, 1 stopped
    assert len(registry.active_columns()) == 3
    assert registry.active_columns() == (0, 1, 4)
    for column, track_id in enumerate(registry.active_columns()):
        assert registry.column(track_id) == column
