from __future__ import annotations

import argparse
import dataclasses
import logging
import math
import queue
import threading
import time
from pathlib import Path
from typing import Callable, Optional

from .alerts import AlertDebouncer, CueSink
from .config import AwarenessConfig, ConfigManager
from .geometry_classifier import Classifier, GeometryClassifier
from .models import (
    AlertLevel,
    AnchorEvent,
    AnchorUpdate,
    HudState,
    ThreatLevel,
    TrackedObject,
    distance_of,
)
from .motion import ClosingSpeedEstimator
from .sensor import AwarenessUnavailableError, SensorProvider, UpdateFeed, UnavailableSensorProvider
from .simulation import SimulatedSensorProvider
from .threat_assessor import assess_threat
from .tracker import ObjectTracker


logger = logging.getLogger(__name__)

StateListener = Callable[[HudState], None]


class Pipeline:
    """Sensor updates in, tracked objects and a debounced alert out.

    Every tracker and debouncer mutation happens inside :meth:`tick` under
    ``self._lock``; sensor threads only touch the :class:`UpdateFeed`.
    """

    def __init__(
        self,
        config: AwarenessConfig | None = None,
        provider: SensorProvider | None = None,
        classifier: Classifier | None = None,
        cue_sink: CueSink | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or AwarenessConfig()
        self.provider: SensorProvider = provider or UnavailableSensorProvider()
        self.classifier: Classifier = classifier or GeometryClassifier()
        self.clock = clock
        self.feed = UpdateFeed(maxsize=self.config.queue_size)
        self.tracker = ObjectTracker(
            stale_timeout=self.config.stale_timeout,
            bearing_tolerance=self.config.merge_bearing_tolerance,
            distance_tolerance=self.config.merge_distance_tolerance,
            critical_distance=self.config.critical_distance,
        )
        self.velocity = ClosingSpeedEstimator(
            enabled=self.config.estimate_velocity,
            smoothing_alpha=self.config.velocity_smoothing,
        )
        self.debouncer = AlertDebouncer(
            cooldowns=self.config.cooldowns,
            dismiss_durations=self.config.dismiss_durations,
            locale=self.config.locale,
            cue_sink=cue_sink,
        )
        self.state_queue: "queue.Queue[HudState]" = queue.Queue(maxsize=8)
        self.level = AlertLevel.NONE
        self._listeners: list[StateListener] = []
        self._lock = threading.RLock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    @property
    def running(self) -> bool:
        return self._thread is not None

    def subscribe(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def start(self) -> None:
        with self._lock:
            if self._thread is not None:
                logger.debug("Pipeline.start called but already running")
                return
            if not self.provider.is_supported():
                raise AwarenessUnavailableError(
                    "Scene reconstruction and world tracking are required for spatial awareness"
                )
            self.provider.start(self.feed.put)
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._tick_loop,
                args=(self._stop_event,),
                name="awareness-tick",
                daemon=True,
            )
            self._thread.start()
        logger.info("Pipeline started (update_interval=%s)", self.config.update_interval)

    def stop(self) -> None:
        with self._lock:
            thread = self._thread
            if thread is None:
                logger.debug("Pipeline.stop called but not running; clearing state only")
            else:
                assert self._stop_event is not None
                self._stop_event.set()
                self._thread = None
                self._stop_event = None
                self.provider.stop()
            self.feed.clear()
            self.tracker.clear()
            self.debouncer.reset()
            self.level = AlertLevel.NONE
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)
        self._drain_state_queue()
        if thread is not None:
            logger.info("Pipeline stopped")

    def tick(self, now: float | None = None) -> HudState:
        with self._lock:
            now = self.clock() if now is None else now
            for update in self.feed.drain():
                try:
                    self._process_update(update, now)
                except Exception:
                    logger.exception("Dropping malformed anchor update %r", update)

            self.tracker.expire(now)
            level = self.tracker.aggregate_level()
            if level is not self.level:
                logger.info("Scene alert level %s -> %s", self.level.name, level.name)
                self.level = level
            candidate = self.tracker.nearest_qualifying(self.config.alert_min_threat)
            self.debouncer.update(level, candidate, now)

            state = HudState(
                timestamp=now,
                objects=tuple(self._snapshot(t) for t in self.tracker.tracks),
                level=level,
                alert=self._snapshot(self.debouncer.alert),
            )
        self._publish_state(state)
        return state

    def _process_update(self, update: AnchorUpdate, now: float) -> None:
        if AnchorEvent(update.event) is AnchorEvent.REMOVED:
            self.tracker.remove_source(update.update_id)
            return

        position = tuple(float(v) for v in update.position)
        if len(position) != 3:
            raise ValueError(f"Expected a 3D position, got {len(position)} components")
        if not all(math.isfinite(v) for v in position):
            raise ValueError(f"Non-finite position {position}")
        distance = distance_of(position)
        if distance > self.config.scan_radius:
            logger.debug("Anchor %s at %.1fm outside scan radius", update.update_id, distance)
            return

        category = self.classifier.classify(update)
        candidate = TrackedObject(
            id=0,
            category=category,
            position=position,
            closing_speed=0.0,
            threat=ThreatLevel.NONE,
            last_seen=now,
            source_id=update.update_id,
        )
        candidate.closing_speed = self.velocity.estimate(self.tracker.match(candidate), distance, now)
        candidate.threat = assess_threat(category, distance, candidate.closing_speed)
        self.tracker.ingest(candidate, now)

    @staticmethod
    def _snapshot(obj):
        if obj is None:
            return None
        # Presentation gets copies; live tracks are mutated in place
        return dataclasses.replace(obj)

    def _tick_loop(self, stop_event: threading.Event) -> None:
        logger.debug("Tick thread started")
        interval = self.config.update_interval
        while not stop_event.wait(interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Pipeline tick failed")
        logger.debug("Tick thread exiting")

    def _publish_state(self, state: HudState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("HUD state listener failed")
        try:
            self.state_queue.put_nowait(state)
        except queue.Full:
            try:
                _ = self.state_queue.get_nowait()
            except queue.Empty:
                pass
            self.state_queue.put_nowait(state)

    def _drain_state_queue(self) -> None:
        while not self.state_queue.empty():
            try:
                self.state_queue.get_nowait()
            except queue.Empty:
                break
        logger.debug("State queue drained")


def configure_logging(level: str) -> None:
    numeric_level = getattr(logging, level.upper(), None)
    invalid = False
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
        invalid = True
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        force=True,
    )
    if invalid:
        logging.getLogger(__name__).warning("Invalid log level '%s'; defaulting to INFO", level)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Spatial threat detection and alerting")
    parser.add_argument("--mock", action="store_true", help="Use the simulated sensor instead of device tracking")
    parser.add_argument("--config", type=Path, default=None, help="JSON file with configuration overrides")
    parser.add_argument("--duration", type=float, default=None, help="Stop after this many seconds")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the simulated sensor")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging verbosity (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser.parse_args(argv)


def run_pipeline(
    use_mock: bool = False,
    config_path: Path | None = None,
    duration: float | None = None,
    seed: int | None = None,
) -> int:
    if not logging.getLogger().hasHandlers():
        configure_logging("INFO")
    config = ConfigManager.load(config_path)
    provider: SensorProvider
    if use_mock:
        logger.info("Using simulated sensor for mock mode")
        provider = SimulatedSensorProvider(interval=config.update_interval, seed=seed)
    else:
        provider = UnavailableSensorProvider()

    pipeline = Pipeline(config, provider=provider)
    try:
        pipeline.start()
    except AwarenessUnavailableError as exc:
        logger.error("Awareness engine unavailable: %s", exc)
        return 1

    deadline = None if duration is None else time.monotonic() + duration
    try:
        while deadline is None or time.monotonic() < deadline:
            time.sleep(0.5)
    except KeyboardInterrupt:
        print("Stopping pipeline...")
    finally:
        pipeline.stop()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)
    return run_pipeline(
        use_mock=args.mock,
        config_path=args.config,
        duration=args.duration,
        seed=args.seed,
    )


if __name__ == "__main__":
    raise SystemExit(main())
