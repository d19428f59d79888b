"""
Alert debouncing: turns the scene alert level into at most one visible,
rate-limited user alert.

All timing runs off the ``now`` passed to :meth:`AlertDebouncer.update`, so
the auto-dismiss is a deadline checked on every tick rather than a sleeping
task. :meth:`AlertDebouncer.reset` cancels it.
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Callable, Mapping, Optional

from .models import ActiveAlert, AlertCue, AlertLevel, ObjectCategory, TrackedObject


logger = logging.getLogger(__name__)

DIRECTIONS = (
    "front",
    "front_right",
    "right",
    "back_right",
    "back",
    "back_left",
    "left",
    "front_left",
)

PHRASES: dict[str, dict[str, str]] = {
    "en": {
        "front": "Front",
        "front_right": "Front right",
        "right": "Right",
        "back_right": "Back right",
        "back": "Behind",
        "back_left": "Back left",
        "left": "Left",
        "front_left": "Front left",
        ObjectCategory.VEHICLE.value: "Vehicle approaching",
        ObjectCategory.BICYCLE.value: "Bicycle approaching",
        ObjectCategory.PEDESTRIAN.value: "Pedestrian nearby",
        ObjectCategory.OBSTACLE.value: "Obstacle ahead",
        ObjectCategory.UNKNOWN.value: "Object nearby",
    },
}

CueSink = Callable[[AlertCue], None]


class DebounceState(str, Enum):
    IDLE = "idle"
    ALERTING = "alerting"


def direction_key(angle_deg: float) -> str:
    """Octant for a bearing in degrees (0 ahead, clockwise), 45° per octant."""
    normalized = angle_deg % 360.0
    index = int(((normalized + 22.5) % 360.0) // 45.0)
    return DIRECTIONS[index]


def resolve_phrases(locale: str, phrases: Mapping[str, Mapping[str, str]] | None = None) -> Mapping[str, str]:
    table = phrases or PHRASES
    if locale in table:
        return table[locale]
    logger.warning("No alert phrases for locale '%s'; falling back to 'en'", locale)
    return table.get("en", PHRASES["en"])


def build_message(
    category: ObjectCategory,
    distance: float,
    direction_deg: float,
    phrases: Mapping[str, str],
) -> str:
    direction_text = phrases[direction_key(direction_deg)]
    object_text = phrases.get(category.value, phrases[ObjectCategory.UNKNOWN.value])
    return f"{direction_text} {distance:.0f}m - {object_text}"


class AlertDebouncer:
    def __init__(
        self,
        cooldowns: Mapping[AlertLevel, float],
        dismiss_durations: Mapping[AlertLevel, float],
        locale: str = "en",
        phrases: Mapping[str, Mapping[str, str]] | None = None,
        cue_sink: Optional[CueSink] = None,
    ) -> None:
        self.cooldowns = dict(cooldowns)
        self.dismiss_durations = dict(dismiss_durations)
        self.phrases = resolve_phrases(locale, phrases)
        self.cue_sink = cue_sink
        self.last_triggered: dict[AlertLevel, float] = {}
        self._alert: Optional[ActiveAlert] = None

    @property
    def state(self) -> DebounceState:
        return DebounceState.ALERTING if self._alert is not None else DebounceState.IDLE

    @property
    def alert(self) -> Optional[ActiveAlert]:
        return self._alert

    @property
    def visible(self) -> bool:
        return self._alert is not None and self._alert.visible

    def cooldown_active(self, level: AlertLevel, now: float) -> bool:
        last = self.last_triggered.get(level)
        if last is None:
            return False
        return now - last < self.cooldowns.get(level, 1.0)

    def update(
        self,
        level: AlertLevel,
        candidate: Optional[TrackedObject],
        now: float,
    ) -> Optional[ActiveAlert]:
        """Advance the state machine; returns the alert if one was triggered."""
        if self._alert is not None and now >= self._alert.dismiss_at:
            logger.debug("Auto-dismissing %s alert", self._alert.level.name)
            self.dismiss()

        if level is AlertLevel.NONE:
            if self._alert is not None:
                logger.debug("Scene clear; dismissing %s alert", self._alert.level.name)
                self.dismiss()
            return None

        if candidate is None:
            logger.debug("Scene level %s but no qualifying object; no alert", level.name)
            return None

        if self.cooldown_active(level, now):
            return None

        return self._trigger(level, candidate, now)

    def _trigger(self, level: AlertLevel, candidate: TrackedObject, now: float) -> ActiveAlert:
        direction = math.degrees(candidate.bearing)
        distance = candidate.distance
        alert = ActiveAlert(
            level=level,
            direction=direction,
            message=build_message(candidate.category, distance, direction, self.phrases),
            triggered_at=now,
            dismiss_at=now + self.dismiss_durations.get(level, 0.0),
            category=candidate.category,
            distance=distance,
        )
        if self._alert is not None:
            logger.debug("Replacing %s alert with %s", self._alert.level.name, level.name)
        self._alert = alert
        self.last_triggered[level] = now
        logger.info("Alert %s: %s", level.name, alert.message)

        if self.cue_sink is not None:
            cue = AlertCue(level=level, intensity=level.intensity, sound_name=level.sound_name)
            try:
                self.cue_sink(cue)
            except Exception:
                logger.exception("Alert cue sink failed for %s", level.name)
        return alert

    def dismiss(self) -> None:
        self._alert = None

    def reset(self) -> None:
        """Drop any active alert and its pending auto-dismiss."""
        if self._alert is not None:
            logger.debug("Resetting debouncer; dropping %s alert", self._alert.level.name)
        self._alert = None
