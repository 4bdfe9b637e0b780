"""
Shared domain types for the thermal governor.

Centralizes the frequency table, temperature thresholds, transition enum
and the error hierarchy used across modules, so that the state machine,
the applier and the entry point agree on one set of definitions.

Units:
    frequencies  -> kHz (as exposed by cpufreq in sysfs)
    temperatures -> millidegrees Celsius
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Tuple

# Scale between whole degrees (CLI / config) and sysfs millidegrees.
MILLIDEGREES_PER_DEGREE = 1000


# =============================================================================
# Errors
# =============================================================================

class ThrottleError(Exception):
    """Fatal error: the daemon cannot keep running.

    Each subclass carries the process exit status reported by main().
    """

    exit_code = 1


class ConfigError(ThrottleError):
    """Missing or malformed startup configuration."""

    exit_code = 2


class FrequencyTableError(ThrottleError):
    """No usable list of CPU frequencies could be determined."""

    exit_code = 3


class TemperatureSourceError(ThrottleError):
    """None of the temperature candidates exists."""

    exit_code = 4


class FrequencyApplyError(ThrottleError):
    """Every frequency-setting mechanism failed for a core."""

    exit_code = 5

    def __init__(self, core: int, frequency: int):
        self.core = core
        self.frequency = frequency
        super().__init__(
            f"Failed to set frequency {frequency} on CPU core{core}. "
            "Run as root user. Some systems may require to install "
            "the package cpufrequtils."
        )


class TemperatureUnavailable(Exception):
    """No temperature source returned a valid reading on this tick.

    Transient: the control loop skips the tick instead of exiting.
    """


# =============================================================================
# State machine types
# =============================================================================

class Transition(Enum):
    """Outcome of a single state machine evaluation."""
    THROTTLE = "throttle"
    UNTHROTTLE = "unthrottle"
    HOLD = "hold"


@dataclass(frozen=True)
class FrequencyTable:
    """Descending sequence of supported frequencies in kHz.

    Indexed 1-based through at(): index 1 is the fastest frequency,
    index len(table) the slowest.
    """

    frequencies: Tuple[int, ...]

    def __post_init__(self):
        if not self.frequencies:
            raise FrequencyTableError("Frequency table is empty")
        for higher, lower in zip(self.frequencies, self.frequencies[1:]):
            if lower > higher:
                raise FrequencyTableError(
                    f"Frequency table is not descending: {lower} after {higher}"
                )

    @classmethod
    def from_iterable(cls, values: Iterable[int]) -> "FrequencyTable":
        """Build a table from frequencies in any order."""
        return cls(tuple(sorted((int(v) for v in values), reverse=True)))

    def at(self, index: int) -> int:
        if not 1 <= index <= len(self.frequencies):
            raise IndexError(
                f"Frequency index {index} outside 1..{len(self.frequencies)}"
            )
        return self.frequencies[index - 1]

    @property
    def highest(self) -> int:
        return self.frequencies[0]

    @property
    def lowest(self) -> int:
        return self.frequencies[-1]

    def __len__(self) -> int:
        return len(self.frequencies)

    def __iter__(self):
        return iter(self.frequencies)


@dataclass(frozen=True)
class TemperatureThresholds:
    """Throttle above max_temp, unthrottle at or below low_temp (millidegrees)."""

    max_temp: int
    low_temp: int

    def __post_init__(self):
        if self.low_temp >= self.max_temp:
            raise ConfigError(
                f"Low temperature {self.low_temp} must be below "
                f"max temperature {self.max_temp}"
            )

    @classmethod
    def from_degrees(cls, max_temp: int, hysteresis: int = 5) -> "TemperatureThresholds":
        """Convert whole-degree settings to millidegree thresholds."""
        if hysteresis <= 0:
            raise ConfigError(f"Hysteresis must be positive, got {hysteresis}")
        return cls(
            max_temp=max_temp * MILLIDEGREES_PER_DEGREE,
            low_temp=(max_temp - hysteresis) * MILLIDEGREES_PER_DEGREE,
        )
