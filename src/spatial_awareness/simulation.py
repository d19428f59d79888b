from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Iterator, Optional

import numpy as np

from .models import AnchorEvent, AnchorUpdate
from .sensor import UpdateSink


logger = logging.getLogger(__name__)

# Mesh vertex counts typical of each simulated kind
_COMPLEXITY_RANGES = {
    "vehicle": (6000, 12000),
    "obstacle": (1200, 4000),
    "pedestrian": (300, 900),
    "clutter": (20, 180),
}


@dataclass
class _SimulatedEntity:
    anchor_id: str
    kind: str
    position: np.ndarray
    velocity: np.ndarray
    complexity: float


def _spawn(rng: np.random.Generator, anchor_id: str) -> _SimulatedEntity:
    kind = str(rng.choice(["vehicle", "obstacle", "pedestrian", "pedestrian", "clutter"]))
    bearing = rng.uniform(-math.pi, math.pi)
    distance = rng.uniform(4.0, 25.0)
    position = np.array([math.sin(bearing) * distance, 0.0, math.cos(bearing) * distance])
    speed = {"vehicle": 4.0, "pedestrian": 1.2}.get(kind, 0.0) * rng.uniform(0.5, 1.5)
    # Movers head roughly towards the user
    velocity = -position / (np.linalg.norm(position) + 1e-9) * speed
    low, high = _COMPLEXITY_RANGES[kind]
    return _SimulatedEntity(
        anchor_id=anchor_id,
        kind=kind,
        position=position,
        velocity=velocity,
        complexity=float(rng.integers(low, high)),
    )


def synthetic_updates(
    steps: int,
    dt: float = 0.1,
    seed: int | None = None,
    max_entities: int = 6,
    start_time: float = 0.0,
) -> Iterator[AnchorUpdate]:
    """Yield anchor updates for a small moving scene around the user."""
    rng = np.random.default_rng(seed)
    entities: list[_SimulatedEntity] = []
    counter = 0
    now = start_time
    for _ in range(steps):
        now += dt
        if len(entities) < max_entities and rng.random() < 0.3:
            counter += 1
            spawned = _spawn(rng, f"anchor-{counter}")
            entities.append(spawned)
            logger.debug("Spawned simulated %s as %s", spawned.kind, spawned.anchor_id)
        else:
            spawned = None

        for entity in list(entities):
            entity.position = entity.position + entity.velocity * dt
            distance = float(np.linalg.norm(entity.position))
            if distance < 0.5 or distance > 35.0:
                entities.remove(entity)
                yield AnchorUpdate(
                    update_id=entity.anchor_id,
                    event=AnchorEvent.REMOVED,
                    position=tuple(float(v) for v in entity.position),
                    complexity=entity.complexity,
                    timestamp=now,
                )
                continue
            yield AnchorUpdate(
                update_id=entity.anchor_id,
                event=AnchorEvent.ADDED if entity is spawned else AnchorEvent.UPDATED,
                position=tuple(float(v) for v in entity.position),
                complexity=entity.complexity,
                timestamp=now,
            )


class SimulatedSensorProvider:
    """Feed synthetic anchor updates from a background thread."""

    def __init__(self, interval: float = 0.1, seed: int | None = None) -> None:
        self.interval = interval
        self.seed = seed
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    def is_supported(self) -> bool:
        return True

    def start(self, sink: UpdateSink) -> None:
        if self._thread is not None:
            logger.debug("SimulatedSensorProvider.start called but thread already running")
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._worker, args=(sink, self._stop_event), daemon=True)
        self._thread.start()
        logger.info("Simulated sensor started (interval=%s, seed=%s)", self.interval, self.seed)

    def stop(self) -> None:
        if self._thread is None:
            logger.debug("SimulatedSensorProvider.stop called but no thread running")
            return
        assert self._stop_event is not None
        self._stop_event.set()
        self._thread.join(timeout=1.5)
        self._thread = None
        self._stop_event = None
        logger.info("Simulated sensor stopped")

    def _worker(self, sink: UpdateSink, stop_event: threading.Event) -> None:
        start = time.monotonic()
        step = 0
        updates = synthetic_updates(steps=10**9, dt=self.interval, seed=self.seed, start_time=start)
        batch_time = start
        for update in updates:
            if stop_event.is_set():
                break
            if update.timestamp > batch_time:
                # New simulated frame; pace to wall-clock
                batch_time = update.timestamp
                step += 1
                if stop_event.wait(max(0.0, start + step * self.interval - time.monotonic())):
                    break
            sink(update)
        logger.debug("Simulated sensor thread exiting")
