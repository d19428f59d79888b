import math

from spatial_awareness.models import AlertLevel, ObjectCategory, ThreatLevel
from spatial_awareness.threat_assessor import assess_threat
from spatial_awareness.tracker import ObjectTracker, angle_difference

from helpers import make_object


def test_angle_difference_wraps():
    assert abs(angle_difference(0.1, -0.1) - 0.2) < 1e-9
    assert abs(angle_difference(math.pi - 0.05, -math.pi + 0.05) - 0.1) < 1e-9


class TestIngest:
    def test_same_update_twice_yields_one_track(self):
        tracker = ObjectTracker()
        first = tracker.ingest(make_object(position=(0.0, 0.0, 5.0)), now=0.0)
        second = tracker.ingest(make_object(position=(0.0, 0.0, 5.0)), now=0.1)
        assert len(tracker) == 1
        assert first.id == second.id
        assert tracker.tracks[0].last_seen == 0.1

    def test_merge_overwrites_fields_and_keeps_id(self):
        tracker = ObjectTracker()
        track = tracker.ingest(make_object(ObjectCategory.OBSTACLE, (0.0, 0.0, 6.0), ThreatLevel.NONE), now=0.0)
        tracker.ingest(make_object(ObjectCategory.VEHICLE, (0.5, 0.0, 5.0), ThreatLevel.MEDIUM, source_id="b"), now=0.5)
        merged = tracker.tracks[0]
        assert merged.id == track.id
        assert merged.category is ObjectCategory.VEHICLE
        assert merged.threat is ThreatLevel.MEDIUM
        assert merged.position == (0.5, 0.0, 5.0)
        assert merged.source_id == "b"
        assert merged.distance == math.sqrt(0.25 + 25.0)

    def test_distinct_bearing_creates_new_track(self):
        tracker = ObjectTracker()
        tracker.ingest(make_object(position=(0.0, 0.0, 5.0)), now=0.0)
        tracker.ingest(make_object(position=(5.0, 0.0, 0.0)), now=0.0)
        assert len(tracker) == 2
        assert [t.id for t in tracker.tracks] == [1, 2]

    def test_distinct_distance_creates_new_track(self):
        tracker = ObjectTracker()
        tracker.ingest(make_object(position=(0.0, 0.0, 5.0)), now=0.0)
        tracker.ingest(make_object(position=(0.0, 0.0, 7.0)), now=0.0)
        assert len(tracker) == 2

    def test_merge_across_the_back_seam(self):
        tracker = ObjectTracker()
        tracker.ingest(make_object(position=(0.05, 0.0, -5.0)), now=0.0)
        tracker.ingest(make_object(position=(-0.05, 0.0, -5.0)), now=0.1)
        assert len(tracker) == 1

    def test_closest_match_wins(self):
        tracker = ObjectTracker()
        tracker.ingest(make_object(position=(0.0, 0.0, 5.0)), now=0.0)
        tracker.ingest(make_object(position=(0.0, 0.0, 7.5)), now=0.0)
        merged = tracker.ingest(make_object(position=(0.0, 0.0, 7.0)), now=0.2)
        assert merged.id == 2
        assert len(tracker) == 2

    def test_replay_is_deterministic(self):
        positions = [(0.0, 0.0, 5.0), (0.1, 0.0, 5.5), (4.0, 0.0, 4.0), (0.0, 0.0, 6.2), (3.8, 0.0, 4.1)]

        def replay():
            tracker = ObjectTracker()
            for i, position in enumerate(positions):
                tracker.ingest(make_object(position=position), now=i * 0.1)
            return [(t.id, t.position) for t in tracker.tracks]

        assert replay() == replay()


class TestExpire:
    def test_stale_tracks_removed(self):
        tracker = ObjectTracker(stale_timeout=2.0)
        tracker.ingest(make_object(position=(0.0, 0.0, 5.0)), now=0.0)
        tracker.ingest(make_object(position=(5.0, 0.0, 0.0)), now=1.0)
        expired = tracker.expire(now=2.5)
        assert [t.id for t in expired] == [1]
        assert [t.id for t in tracker.tracks] == [2]

    def test_track_exactly_at_window_survives(self):
        tracker = ObjectTracker(stale_timeout=2.0)
        tracker.ingest(make_object(), now=0.0)
        assert tracker.expire(now=2.0) == []
        assert len(tracker) == 1

    def test_expire_is_idempotent(self):
        tracker = ObjectTracker()
        tracker.ingest(make_object(), now=0.0)
        assert len(tracker.expire(now=3.0)) == 1
        assert tracker.expire(now=3.0) == []
        assert len(tracker) == 0

    def test_refreshed_track_is_kept(self):
        tracker = ObjectTracker()
        tracker.ingest(make_object(), now=0.0)
        tracker.ingest(make_object(), now=1.5)
        assert tracker.expire(now=3.0) == []


def test_remove_source_drops_track():
    tracker = ObjectTracker()
    tracker.ingest(make_object(position=(0.0, 0.0, 5.0), source_id="a"), now=0.0)
    tracker.ingest(make_object(position=(5.0, 0.0, 0.0), source_id="b"), now=0.0)
    removed = tracker.remove_source("a")
    assert [t.source_id for t in removed] == ["a"]
    assert [t.source_id for t in tracker.tracks] == ["b"]
    assert tracker.remove_source("missing") == []


class TestAggregateLevel:
    def test_empty_scene(self):
        assert ObjectTracker().aggregate_level() is AlertLevel.NONE

    def test_threat_mapping(self):
        for threat, level in (
            (ThreatLevel.NONE, AlertLevel.NONE),
            (ThreatLevel.LOW, AlertLevel.INFO),
            (ThreatLevel.MEDIUM, AlertLevel.CAUTION),
        ):
            tracker = ObjectTracker()
            tracker.ingest(make_object(threat=threat), now=0.0)
            assert tracker.aggregate_level() is level

    def test_high_threat_far_is_warning(self):
        tracker = ObjectTracker()
        threat = assess_threat(ObjectCategory.VEHICLE, 8.0, 4.0)
        assert threat is ThreatLevel.HIGH
        tracker.ingest(make_object(position=(0.0, 0.0, 8.0), threat=threat, closing_speed=4.0), now=0.0)
        assert tracker.aggregate_level() is AlertLevel.WARNING

    def test_high_threat_within_critical_distance(self):
        tracker = ObjectTracker(critical_distance=3.0)
        tracker.ingest(make_object(position=(0.0, 0.0, 2.5), threat=ThreatLevel.HIGH), now=0.0)
        assert tracker.aggregate_level() is AlertLevel.CRITICAL

    def test_close_low_threat_does_not_escalate_far_high_threat(self):
        tracker = ObjectTracker()
        tracker.ingest(make_object(position=(0.0, 0.0, 8.0), threat=ThreatLevel.HIGH), now=0.0)
        tracker.ingest(
            make_object(ObjectCategory.PEDESTRIAN, (-1.0, 0.0, -1.0), ThreatLevel.LOW),
            now=0.0,
        )
        assert tracker.aggregate_level() is AlertLevel.WARNING

    def test_pedestrian_close_is_info(self):
        tracker = ObjectTracker()
        threat = assess_threat(ObjectCategory.PEDESTRIAN, 1.5, 0.0)
        track = tracker.ingest(make_object(ObjectCategory.PEDESTRIAN, (0.0, 0.0, 1.5), threat), now=0.0)
        assert threat is ThreatLevel.LOW
        assert tracker.aggregate_level() is AlertLevel.INFO
        assert track.bearing == 0.0


class TestNearestQualifying:
    def test_closest_at_or_above_threshold(self):
        tracker = ObjectTracker()
        tracker.ingest(make_object(position=(0.0, 0.0, 6.0), threat=ThreatLevel.MEDIUM), now=0.0)
        tracker.ingest(make_object(position=(4.0, 0.0, 0.0), threat=ThreatLevel.HIGH), now=0.0)
        tracker.ingest(make_object(position=(0.0, 0.0, -1.0), threat=ThreatLevel.LOW), now=0.0)
        nearest = tracker.nearest_qualifying(ThreatLevel.MEDIUM)
        assert nearest is not None
        assert nearest.distance == 4.0

    def test_none_when_nothing_qualifies(self):
        tracker = ObjectTracker()
        tracker.ingest(make_object(threat=ThreatLevel.LOW), now=0.0)
        assert tracker.nearest_qualifying(ThreatLevel.MEDIUM) is None

    def test_ties_resolve_to_first_inserted(self):
        tracker = ObjectTracker()
        tracker.ingest(make_object(position=(0.0, 0.0, 5.0)), now=0.0)
        tracker.ingest(make_object(position=(0.0, 0.0, -5.0)), now=0.0)
        assert tracker.nearest_qualifying(ThreatLevel.MEDIUM).id == 1


def test_clear():
    tracker = ObjectTracker()
    tracker.ingest(make_object(), now=0.0)
    tracker.clear()
    assert len(tracker) == 0
    assert tracker.aggregate_level() is AlertLevel.NONE
