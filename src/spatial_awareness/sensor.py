from __future__ import annotations

import logging
import queue
from typing import Callable, Protocol

from .models import AnchorUpdate


logger = logging.getLogger(__name__)

UpdateSink = Callable[[AnchorUpdate], None]


class AwarenessUnavailableError(RuntimeError):
    """Scene reconstruction or world tracking is not supported on this device."""


class SensorProvider(Protocol):
    def is_supported(self) -> bool:
        ...

    def start(self, sink: UpdateSink) -> None:
        ...

    def stop(self) -> None:
        ...


class UpdateFeed:
    """Bounded hand-off from sensor callback threads to the pipeline tick.

    Producers call :meth:`put` from any thread; only the tick drains.
    When full the oldest update is dropped.
    """

    def __init__(self, maxsize: int = 256) -> None:
        self._queue: queue.Queue[AnchorUpdate] = queue.Queue(maxsize=maxsize)

    def __len__(self) -> int:
        return self._queue.qsize()

    def put(self, update: AnchorUpdate) -> None:
        try:
            self._queue.put_nowait(update)
        except queue.Full:
            try:
                _ = self._queue.get_nowait()
                logger.warning("Anchor update queue full; dropping oldest update")
            except queue.Empty:
                logger.warning("Anchor update queue full but empty on readback; continuing")
            self._queue.put_nowait(update)

    def drain(self) -> list[AnchorUpdate]:
        updates: list[AnchorUpdate] = []
        while True:
            try:
                updates.append(self._queue.get_nowait())
            except queue.Empty:
                break
        return updates

    def clear(self) -> None:
        with self._queue.mutex:
            self._queue.queue.clear()


class UnavailableSensorProvider:
    """Provider for hardware without scene reconstruction support."""

    def is_supported(self) -> bool:
        return False

    def start(self, sink: UpdateSink) -> None:
        raise AwarenessUnavailableError("Spatial awareness is not supported on this device")

    def stop(self) -> None:
        pass
