from __future__ import annotations

import itertools
import logging
import math
from typing import Optional

from .models import AlertLevel, ThreatLevel, TrackedObject


logger = logging.getLogger(__name__)

_LEVEL_FOR_THREAT = {
    ThreatLevel.NONE: AlertLevel.NONE,
    ThreatLevel.LOW: AlertLevel.INFO,
    ThreatLevel.MEDIUM: AlertLevel.CAUTION,
}


def angle_difference(a: float, b: float) -> float:
    """Smallest absolute difference between two angles in radians."""
    diff = (a - b) % (2 * math.pi)
    return min(diff, 2 * math.pi - diff)


class ObjectTracker:
    """Live set of tracked objects, merged by spatial proximity.

    Not thread-safe: the pipeline tick is the only caller.
    """

    def __init__(
        self,
        stale_timeout: float = 2.0,
        bearing_tolerance: float = 0.2,
        distance_tolerance: float = 2.0,
        critical_distance: float = 3.0,
    ) -> None:
        self.stale_timeout = stale_timeout
        self.bearing_tolerance = bearing_tolerance
        self.distance_tolerance = distance_tolerance
        self.critical_distance = critical_distance
        self._tracks: list[TrackedObject] = []
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._tracks)

    @property
    def tracks(self) -> tuple[TrackedObject, ...]:
        return tuple(self._tracks)

    def match(self, candidate: TrackedObject) -> Optional[TrackedObject]:
        """Existing track inside the merge window of ``candidate``, if any.

        Closest in range wins; equal ranges fall back to insertion order.
        """
        distance = candidate.distance
        bearing = candidate.bearing
        best: Optional[TrackedObject] = None
        best_delta = math.inf
        for track in self._tracks:
            if angle_difference(track.bearing, bearing) >= self.bearing_tolerance:
                continue
            delta = abs(track.distance - distance)
            if delta >= self.distance_tolerance:
                continue
            if delta < best_delta:
                best, best_delta = track, delta
        return best

    def ingest(self, candidate: TrackedObject, now: float) -> TrackedObject:
        existing = self.match(candidate)
        if existing is not None:
            existing.category = candidate.category
            existing.position = candidate.position
            existing.closing_speed = candidate.closing_speed
            existing.threat = candidate.threat
            existing.source_id = candidate.source_id
            existing.last_seen = now
            logger.debug(
                "Merged update into track %s (%s, %.1fm, threat=%s)",
                existing.id,
                existing.category.value,
                existing.distance,
                existing.threat.name,
            )
            return existing

        candidate.id = next(self._ids)
        candidate.last_seen = now
        self._tracks.append(candidate)
        logger.debug(
            "New track %s (%s, %.1fm, threat=%s)",
            candidate.id,
            candidate.category.value,
            candidate.distance,
            candidate.threat.name,
        )
        return candidate

    def expire(self, now: float) -> list[TrackedObject]:
        expired = [t for t in self._tracks if now - t.last_seen > self.stale_timeout]
        if expired:
            self._tracks = [t for t in self._tracks if now - t.last_seen <= self.stale_timeout]
            for track in expired:
                logger.debug("Expiring track %s after %.2fs", track.id, now - track.last_seen)
        return expired

    def remove_source(self, source_id: str) -> list[TrackedObject]:
        removed = [t for t in self._tracks if t.source_id == source_id]
        if removed:
            self._tracks = [t for t in self._tracks if t.source_id != source_id]
            logger.debug("Anchor %s removed; dropped tracks %s", source_id, [t.id for t in removed])
        return removed

    def clear(self) -> None:
        self._tracks.clear()

    def aggregate_level(self) -> AlertLevel:
        if not self._tracks:
            return AlertLevel.NONE
        worst = max(t.threat for t in self._tracks)
        if worst is ThreatLevel.HIGH:
            if any(
                t.threat is ThreatLevel.HIGH and t.distance < self.critical_distance
                for t in self._tracks
            ):
                return AlertLevel.CRITICAL
            return AlertLevel.WARNING
        return _LEVEL_FOR_THREAT[worst]

    def nearest_qualifying(self, min_threat: ThreatLevel = ThreatLevel.MEDIUM) -> Optional[TrackedObject]:
        qualifying = [t for t in self._tracks if t.threat >= min_threat]
        if not qualifying:
            return None
        return min(qualifying, key=lambda t: t.distance)
