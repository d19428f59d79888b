from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Protocol

from .models import AnchorUpdate, ObjectCategory


logger = logging.getLogger(__name__)


class Classifier(Protocol):
    """Anything that maps an anchor update to an object category.

    The geometry heuristic below is the default; a trained perception model
    can be dropped in as long as it honours this signature.
    """

    def classify(self, update: AnchorUpdate) -> ObjectCategory:
        ...


@dataclass
class ClassifierConfig:
    # Complexity is compared with strict ">" against each threshold,
    # largest first.
    vehicle_min_complexity: float = 5000.0
    obstacle_min_complexity: float = 1000.0
    pedestrian_min_complexity: float = 200.0


class GeometryClassifier:
    """Classify anchors by mesh complexity alone.

    Crude by construction: big meshes are vehicles, mid-sized ones are
    obstacles, small ones pedestrians. It never emits ``bicycle``.
    """

    def __init__(self, config: ClassifierConfig | None = None) -> None:
        self.config = config or ClassifierConfig()

    def classify(self, update: AnchorUpdate) -> ObjectCategory:
        cfg = self.config
        complexity = update.complexity
        if not isinstance(complexity, (int, float)) or not math.isfinite(complexity) or complexity < 0:
            logger.debug("Unusable complexity %r for anchor %s; treating as unknown", complexity, update.update_id)
            return ObjectCategory.UNKNOWN

        if complexity > cfg.vehicle_min_complexity:
            category = ObjectCategory.VEHICLE
        elif complexity > cfg.obstacle_min_complexity:
            category = ObjectCategory.OBSTACLE
        elif complexity > cfg.pedestrian_min_complexity:
            category = ObjectCategory.PEDESTRIAN
        else:
            category = ObjectCategory.UNKNOWN

        logger.debug(
            "Classified anchor %s: complexity=%.0f category=%s",
            update.update_id,
            complexity,
            category.value,
        )
        return category
