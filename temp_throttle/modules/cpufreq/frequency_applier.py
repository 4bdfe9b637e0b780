"""
Applies a maximum frequency to every CPU core.

Mechanisms, tried in order for each core:
    1. write to <sysfs_root>/cpu<N>/cpufreq/scaling_max_freq
    2. cpufreq-set -c <N> --max <freq>   (cpufrequtils)

If both fail for any core the whole operation is fatal. A partially
throttled machine is not an acceptable outcome.
"""

import os
import subprocess
import logging
from typing import List, Optional

from temp_throttle.core.types import FrequencyApplyError, FrequencyTable

logger = logging.getLogger(__name__)

SYSFS_CPU_ROOT = "/sys/devices/system/cpu"
DEFAULT_COMMAND = "cpufreq-set"
DEFAULT_COMMAND_TIMEOUT = 5.0


class SysfsFrequencyWriter:
    """Writes scaling_max_freq directly."""

    name = "sysfs"

    def __init__(self, sysfs_root: str = SYSFS_CPU_ROOT):
        self._sysfs_root = sysfs_root

    def path_for(self, core: int) -> str:
        return os.path.join(self._sysfs_root, f"cpu{core}", "cpufreq", "scaling_max_freq")

    def set_max_frequency(self, core: int, frequency: int) -> bool:
        path = self.path_for(core)
        try:
            with open(path, "w") as f:
                f.write(str(frequency))
            return True
        except OSError as e:
            logger.debug("sysfs write to %s failed: %s", path, e)
            return False


class CpufreqSetCommand:
    """Runs the cpufrequtils command-line utility."""

    name = "cpufreq-set"

    def __init__(self, command: str = DEFAULT_COMMAND,
                 timeout: Optional[float] = DEFAULT_COMMAND_TIMEOUT):
        self._command = command
        self._timeout = timeout

    def set_max_frequency(self, core: int, frequency: int) -> bool:
        args = [self._command, "-c", str(core), "--max", str(frequency)]
        try:
            result = subprocess.run(
                args,
                stdout=subprocess.DEVNULL, stderr=subprocess.PIPE,
                timeout=self._timeout,
            )
        except FileNotFoundError:
            logger.debug("%s not found", self._command)
            return False
        except subprocess.TimeoutExpired:
            logger.warning("%s timed out for core %d", self._command, core)
            return False
        except OSError as e:
            logger.debug("%s could not be run: %s", self._command, e)
            return False

        if result.returncode != 0:
            logger.debug("%s exited with %d: %s", self._command, result.returncode,
                         result.stderr.decode(errors="replace").strip())
            return False
        return True


class FrequencyApplier:
    """Sets the same maximum frequency on all cores through a strategy chain."""

    def __init__(self, strategies: List):
        if not strategies:
            raise ValueError("FrequencyApplier needs at least one strategy")
        self._strategies = list(strategies)

    @classmethod
    def from_config(cls, config: dict) -> "FrequencyApplier":
        """Build the default sysfs -> cpufreq-set chain from the cpufreq section."""
        return cls([
            SysfsFrequencyWriter(config.get("sysfs_root", SYSFS_CPU_ROOT)),
            CpufreqSetCommand(
                command=config.get("fallback_command", DEFAULT_COMMAND),
                timeout=config.get("command_timeout", DEFAULT_COMMAND_TIMEOUT),
            ),
        ])

    def apply(self, table: FrequencyTable, index: int, core_count: int) -> int:
        """Set table.at(index) as the maximum frequency of cores 0..core_count-1.

        Returns:
            The applied frequency in kHz.

        Raises:
            FrequencyApplyError: every strategy failed for some core.
        """
        frequency = table.at(index)
        for core in range(core_count):
            self._apply_core(core, frequency)

        return frequency

    def _apply_core(self, core: int, frequency: int):
        for strategy in self._strategies:
            if strategy.set_max_frequency(core, frequency):
                logger.debug("core%d -> %d kHz via %s", core, frequency, strategy.name)
                return
        raise FrequencyApplyError(core, frequency)
