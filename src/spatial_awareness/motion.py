from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .models import TrackedObject


logger = logging.getLogger(__name__)


@dataclass
class ClosingSpeedEstimator:
    """Estimate how fast a track approaches the user from successive sightings.

    Disabled by default: closing speed stays 0, which keeps vehicle and
    bicycle ratings on the distance rules only. When enabled the rate of
    range decrease between two matched sightings is blended into the
    previous estimate with ``smoothing_alpha``. Receding objects count as 0.
    """

    enabled: bool = False
    smoothing_alpha: float = 0.5
    min_interval: float = 1e-3
    max_speed: float = 60.0

    def estimate(self, previous: TrackedObject | None, distance: float, now: float) -> float:
        if not self.enabled or previous is None:
            return 0.0
        dt = now - previous.last_seen
        if dt < self.min_interval:
            return previous.closing_speed
        raw = (previous.distance - distance) / dt
        raw = float(np.clip(raw, 0.0, self.max_speed))
        alpha = float(np.clip(self.smoothing_alpha, 0.0, 1.0))
        speed = alpha * raw + (1 - alpha) * previous.closing_speed
        logger.debug(
            "Closing speed for track %s: raw=%.2f smoothed=%.2f dt=%.3f",
            previous.id,
            raw,
            speed,
            dt,
        )
        return speed
