from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

Vector3 = Tuple[float, float, float]


class _OrderedEnum(Enum):
    """Enum whose members are totally ordered by value, within one enum only."""

    def __lt__(self, other):
        if self.__class__ is other.__class__:
            return self.value < other.value
        return NotImplemented

    def __le__(self, other):
        if self.__class__ is other.__class__:
            return self.value <= other.value
        return NotImplemented

    def __gt__(self, other):
        if self.__class__ is other.__class__:
            return self.value > other.value
        return NotImplemented

    def __ge__(self, other):
        if self.__class__ is other.__class__:
            return self.value >= other.value
        return NotImplemented


class ObjectCategory(str, Enum):
    PEDESTRIAN = "pedestrian"
    BICYCLE = "bicycle"
    VEHICLE = "vehicle"
    OBSTACLE = "obstacle"
    UNKNOWN = "unknown"


class ThreatLevel(_OrderedEnum):
    NONE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3


class AlertLevel(_OrderedEnum):
    NONE = 0
    INFO = 1
    CAUTION = 2
    WARNING = 3
    CRITICAL = 4

    @property
    def intensity(self) -> float:
        """Audio/haptic strength in [0, 1] for a trigger at this level."""
        return _ALERT_INTENSITY[self]

    @property
    def sound_name(self) -> Optional[str]:
        if self is AlertLevel.NONE:
            return None
        return f"alert_{self.name.lower()}"


_ALERT_INTENSITY = {
    AlertLevel.NONE: 0.0,
    AlertLevel.INFO: 0.2,
    AlertLevel.CAUTION: 0.5,
    AlertLevel.WARNING: 0.8,
    AlertLevel.CRITICAL: 1.0,
}


class AnchorEvent(str, Enum):
    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"


@dataclass(frozen=True)
class AnchorUpdate:
    """A decoded scene-reconstruction anchor update from the sensor provider.

    ``position`` is user-relative in metres: x to the right, y up, z forward.
    ``complexity`` is the geometry size proxy (mesh vertex count).
    """

    update_id: str
    event: AnchorEvent
    position: Vector3
    complexity: float
    timestamp: float


def distance_of(position: Vector3) -> float:
    x, y, z = position
    return math.sqrt(x * x + y * y + z * z)


def bearing_of(position: Vector3) -> float:
    """Bearing in radians, 0 straight ahead, positive clockwise (to the right)."""
    x, _, z = position
    return math.atan2(x, z)


@dataclass
class TrackedObject:
    id: int
    category: ObjectCategory
    position: Vector3
    closing_speed: float
    threat: ThreatLevel
    last_seen: float
    source_id: Optional[str] = None

    @property
    def distance(self) -> float:
        return distance_of(self.position)

    @property
    def bearing(self) -> float:
        return bearing_of(self.position)

    @property
    def bearing_deg(self) -> float:
        return math.degrees(self.bearing)

    def radar_coordinates(self, scan_radius: float) -> tuple[float, float]:
        """Position on a unit radar disc (x right, y forward), clamped to the rim."""
        scale = min(self.distance / scan_radius, 1.0) if scan_radius > 0 else 1.0
        return (math.sin(self.bearing) * scale, math.cos(self.bearing) * scale)


@dataclass
class ActiveAlert:
    level: AlertLevel
    direction: float
    message: str
    triggered_at: float
    dismiss_at: float
    category: ObjectCategory
    distance: float
    visible: bool = True


@dataclass(frozen=True)
class AlertCue:
    """What the audio/haptic layer receives on each alert trigger."""

    level: AlertLevel
    intensity: float
    sound_name: Optional[str]


@dataclass(frozen=True)
class HudState:
    timestamp: float
    objects: tuple[TrackedObject, ...]
    level: AlertLevel
    alert: Optional[ActiveAlert] = None

    @property
    def alert_visible(self) -> bool:
        return self.alert is not None and self.alert.visible
