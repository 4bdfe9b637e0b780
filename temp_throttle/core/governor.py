"""
Discrete throttle state machine.

Holds a 1-based index into the frequency table and moves it by one step
per evaluation:

    temp >  max_temp  -> throttle   (index + 1, slower)
    temp <= low_temp  -> unthrottle (index - 1, faster)
    otherwise         -> hold       (hysteresis band, nothing applied)

The index is clamped to [1, len(table)]. Every change of index is applied
to all cores exactly once through the FrequencyApplier.
"""

import logging
from typing import Optional

from temp_throttle.core.events import EventBus, Events
from temp_throttle.core.types import FrequencyTable, TemperatureThresholds, Transition

logger = logging.getLogger(__name__)


class ThrottleStateMachine:
    """Steps all cores through the frequency table based on temperature."""

    def __init__(self, table: FrequencyTable, thresholds: TemperatureThresholds,
                 applier, core_count: int, bus: Optional[EventBus] = None):
        self._table = table
        self._thresholds = thresholds
        self._applier = applier
        self._core_count = core_count
        self._bus = bus
        self._index = 1

    def initialize(self):
        """Force every core to the highest frequency.

        Runs once before the loop regardless of the table size, since the
        hardware limit may not match index 1 after a restart.
        """
        self._index = 1
        self._apply(Transition.UNTHROTTLE, temperature=None)

    def restore_maximum(self):
        """Put every core back at the highest frequency (used at shutdown)."""
        logger.info("Restoring maximum CPU frequency", extra={"color": "yellow"})
        self.initialize()

    def throttle(self, temperature: Optional[int] = None) -> bool:
        """Reduce the frequency by one step. Returns True if it changed."""
        if self._index >= len(self._table):
            return False
        self._index += 1
        self._apply(Transition.THROTTLE, temperature)
        return True

    def unthrottle(self, temperature: Optional[int] = None) -> bool:
        """Raise the frequency by one step. Returns True if it changed."""
        if self._index == 1:
            return False
        self._index -= 1
        self._apply(Transition.UNTHROTTLE, temperature)
        return True

    def evaluate(self, temperature: int) -> Transition:
        """Run one state machine step for a millidegree sample."""
        if temperature > self._thresholds.max_temp:
            changed = self.throttle(temperature)
            return Transition.THROTTLE if changed else Transition.HOLD
        if temperature <= self._thresholds.low_temp:
            changed = self.unthrottle(temperature)
            return Transition.UNTHROTTLE if changed else Transition.HOLD
        return Transition.HOLD

    def _apply(self, transition: Transition, temperature: Optional[int]):
        frequency = self._applier.apply(self._table, self._index, self._core_count)
        if self._bus is not None:
            self._bus.emit(
                Events.FREQUENCY_CHANGED,
                transition=transition,
                index=self._index,
                frequency=frequency,
                temperature=temperature,
            )

    @property
    def index(self) -> int:
        return self._index
