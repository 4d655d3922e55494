"""Thread-safe FIFO of sensor readings waiting to be stored."""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SensorData:
    """One reading for one plant, stamped when it was queued."""

    plant_id: int
    temperature: float
    humidity: int
    timestamp: datetime = field(default_factory=datetime.now)


class SensorDataQueue:
    """Producers enqueue readings; a consumer takes them out in arrival order."""

    _instance: ClassVar[SensorDataQueue | None] = None
    _instance_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self) -> None:
        self._queue: deque[SensorData] = deque()
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> SensorDataQueue:
        """Return the shared queue, creating it on first use."""
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
            return cls._instance

    @classmethod
    def destroy_instance(cls) -> None:
        """Drop the shared queue and anything still in it."""
        with cls._instance_lock:
            cls._instance = None

    def enqueue(self, plant_id: int, temperature: float, humidity: int) -> SensorData:
        """Append a reading stamped with the current time and return it."""
        data = SensorData(plant_id, temperature, humidity, datetime.now())
        with self._lock:
            self._queue.append(data)
            size = len(self._queue)
        log.debug("[PRODUCER] queued data - plant: %s, queue size: %d", plant_id, size)
        return data

    def try_dequeue(self) -> SensorData | None:
        """Remove and return the oldest reading, or None if the queue is empty."""
        with self._lock:
            if not self._queue:
                return None
            data = self._queue.popleft()
            remaining = len(self._queue)
        log.debug("[CONSUMER] read data - plant: %s, remaining: %d", data.plant_id, remaining)
        return data

    def is_empty(self) -> bool:
        with self._lock:
            return not self._queue

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)