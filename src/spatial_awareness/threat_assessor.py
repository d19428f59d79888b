from __future__ import annotations

import math

from .models import ObjectCategory, ThreatLevel

# Closing speeds at or below this (m/s) are treated as "not approaching".
CLOSING_SPEED_EPSILON = 0.1


def time_to_contact(distance: float, closing_speed: float, epsilon: float = CLOSING_SPEED_EPSILON) -> float:
    if not closing_speed > epsilon:
        return math.inf
    return distance / closing_speed


def assess_threat(
    category: ObjectCategory,
    distance: float,
    closing_speed: float = 0.0,
    epsilon: float = CLOSING_SPEED_EPSILON,
) -> ThreatLevel:
    """Rate how dangerous an object is from its category, range and approach speed.

    Total: NaN or negative closing speeds count as stationary and a
    non-finite distance rates ``NONE``.
    """
    if not math.isfinite(distance):
        return ThreatLevel.NONE
    distance = max(distance, 0.0)
    ttc = time_to_contact(distance, closing_speed, epsilon)

    if category is ObjectCategory.VEHICLE:
        if ttc < 3:
            return ThreatLevel.HIGH
        if distance < 10:
            return ThreatLevel.MEDIUM
        return ThreatLevel.LOW
    if category is ObjectCategory.BICYCLE:
        if ttc < 2:
            return ThreatLevel.HIGH
        if distance < 5:
            return ThreatLevel.MEDIUM
        return ThreatLevel.LOW
    if category is ObjectCategory.PEDESTRIAN:
        if distance < 2:
            return ThreatLevel.LOW
        return ThreatLevel.NONE
    if category is ObjectCategory.OBSTACLE:
        if distance < 3:
            return ThreatLevel.MEDIUM
        if distance < 5:
            return ThreatLevel.LOW
        return ThreatLevel.NONE
    return ThreatLevel.NONE
