"""
CPU temperature sampling.

Candidate locations, checked in order:
    /sys/class/thermal/thermal_zone{0,1,2}/temp
    /sys/class/hwmon/hwmon{0,1,2}/temp1_input
    /sys/class/hwmon/hwmon{0,1,2}/device/temp1_input

All of them report millidegrees Celsius. Every sample reads all
candidates and keeps the hottest reading, since the first sensor found
is not necessarily the hottest one on multi-sensor boards.
"""

import os
import logging
from typing import Dict, List, Optional

from temp_throttle.core.types import TemperatureSourceError, TemperatureUnavailable

logger = logging.getLogger(__name__)

DEFAULT_CANDIDATES = [
    "/sys/class/thermal/thermal_zone0/temp",
    "/sys/class/thermal/thermal_zone1/temp",
    "/sys/class/thermal/thermal_zone2/temp",
    "/sys/class/hwmon/hwmon0/temp1_input",
    "/sys/class/hwmon/hwmon1/temp1_input",
    "/sys/class/hwmon/hwmon2/temp1_input",
    "/sys/class/hwmon/hwmon0/device/temp1_input",
    "/sys/class/hwmon/hwmon1/device/temp1_input",
    "/sys/class/hwmon/hwmon2/device/temp1_input",
]


class TemperatureReader:
    """Reads the maximum temperature across candidate sensor files."""

    def __init__(self, candidates: Optional[List[str]] = None):
        self._candidates = list(candidates if candidates is not None else DEFAULT_CANDIDATES)
        self._sources = [path for path in self._candidates if os.path.isfile(path)]

        if not self._sources:
            raise TemperatureSourceError(
                "The location for temperature reading was not found."
            )

        logger.info("Temperature source: %s (%d of %d candidates present)",
                    self._sources[0], len(self._sources), len(self._candidates))
        for path, value in self.read_all().items():
            logger.debug("  %s: %s", path, "unreadable" if value is None else value)

    @staticmethod
    def _read(path: str) -> Optional[int]:
        try:
            with open(path, "r") as f:
                return int(f.read().strip())
        except (ValueError, OSError):
            return None

    def sample(self) -> int:
        """Current temperature in millidegrees (max over readable candidates).

        Raises:
            TemperatureUnavailable: no candidate could be read.
        """
        readings = [value for value in map(self._read, self._candidates) if value is not None]
        if not readings:
            raise TemperatureUnavailable(
                f"none of {len(self._candidates)} temperature sources could be read"
            )
        return max(readings)

    def read_all(self) -> Dict[str, Optional[int]]:
        """Per-candidate readings, None for unreadable entries."""
        return {path: self._read(path) for path in self._candidates}
