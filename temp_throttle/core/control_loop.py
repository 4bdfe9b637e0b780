"""
Control loop: sample -> evaluate -> wait, until stopped.

A tick with no readable temperature source is skipped and logged; the
loop keeps going. Fatal errors from the frequency applier propagate out
of run() so the process exits without running further ticks.
"""

import logging
import threading
from typing import Optional

from temp_throttle.core.types import TemperatureUnavailable, Transition

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 3.0


class ControlLoop:
    """Periodically drives the throttle state machine."""

    def __init__(self, reader, machine, interval: float = DEFAULT_POLL_INTERVAL):
        self._reader = reader
        self._machine = machine
        self._interval = interval
        # Starts cleared and is never reset, so a stop requested before
        # run() (e.g. an early SIGTERM) still ends the loop.
        self._stop_event = threading.Event()
        self._tick_count = 0
        self._skipped_ticks = 0

    def tick(self) -> Optional[Transition]:
        """Run a single iteration.

        Returns the transition taken, or None when no temperature could be
        read on this tick.
        """
        self._tick_count += 1
        try:
            temperature = self._reader.sample()
        except TemperatureUnavailable as e:
            self._skipped_ticks += 1
            logger.warning("Skipping tick %d: %s", self._tick_count, e)
            return None

        transition = self._machine.evaluate(temperature)
        logger.debug("Tick %d: %d m°C -> %s (index %d)",
                     self._tick_count, temperature, transition.value,
                     self._machine.index)
        return transition

    def run(self):
        """Initialize to maximum frequency, then tick until stop() is called."""
        self._machine.initialize()
        logger.info("Control loop started (interval=%.1fs)", self._interval)

        while not self._stop_event.is_set():
            self.tick()
            self._stop_event.wait(self._interval)

        logger.info("Control loop stopped after %d ticks (%d skipped)",
                    self._tick_count, self._skipped_ticks)

    def stop(self):
        """Request the loop to exit after the current tick."""
        self._stop_event.set()

    def handle_signal(self, signum, frame):
        """Handle SIGINT/SIGTERM for graceful shutdown."""
        logger.info("Signal %d received, shutting down...", signum)
        self.stop()
