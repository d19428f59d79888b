from __future__ import annotations

from spatial_awareness.models import (
    AnchorEvent,
    AnchorUpdate,
    ObjectCategory,
    ThreatLevel,
    TrackedObject,
)


def make_object(
    category: ObjectCategory = ObjectCategory.VEHICLE,
    position: tuple[float, float, float] = (0.0, 0.0, 5.0),
    threat: ThreatLevel = ThreatLevel.MEDIUM,
    closing_speed: float = 0.0,
    last_seen: float = 0.0,
    source_id: str | None = None,
) -> TrackedObject:
    return TrackedObject(
        id=0,
        category=category,
        position=position,
        closing_speed=closing_speed,
        threat=threat,
        last_seen=last_seen,
        source_id=source_id,
    )


def make_update(
    update_id: str = "anchor-1",
    position: tuple[float, float, float] = (0.0, 0.0, 5.0),
    complexity: float = 6000,
    event: AnchorEvent = AnchorEvent.ADDED,
    timestamp: float = 0.0,
) -> AnchorUpdate:
    return AnchorUpdate(
        update_id=update_id,
        event=event,
        position=position,
        complexity=complexity,
        timestamp=timestamp,
    )
