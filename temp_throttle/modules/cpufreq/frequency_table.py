"""
Startup queries against cpufreq in sysfs.

Files read (relative to the sysfs CPU root, normally /sys/devices/system/cpu):
    cpu0/cpufreq/scaling_available_frequencies  -> discrete table (preferred)
    cpu0/cpufreq/cpuinfo_min_freq               -> lower bound for a synthesized table
    cpu0/cpufreq/cpuinfo_max_freq               -> hardware maximum for --max-freq=auto

Drivers such as intel_pstate expose no discrete table; in that case the
table is synthesized from max_freq down to cpuinfo_min_freq in fixed steps.
"""

import os
import logging

from temp_throttle.core.types import FrequencyTable, FrequencyTableError

logger = logging.getLogger(__name__)

SYSFS_CPU_ROOT = "/sys/devices/system/cpu"
DEFAULT_STEP_KHZ = 100000  # 100 MHz

AVAILABLE_FREQUENCIES = "cpu0/cpufreq/scaling_available_frequencies"
CPUINFO_MIN_FREQ = "cpu0/cpufreq/cpuinfo_min_freq"
CPUINFO_MAX_FREQ = "cpu0/cpufreq/cpuinfo_max_freq"


def _read_int(path: str) -> int:
    with open(path, "r") as f:
        return int(f.read().strip())


def resolve_max_frequency(value, sysfs_root: str = SYSFS_CPU_ROOT) -> int:
    """Turn a --max-freq setting ("auto" or kHz) into kHz."""
    if value != "auto":
        return int(value)

    path = os.path.join(sysfs_root, CPUINFO_MAX_FREQ)
    try:
        max_freq = _read_int(path)
    except (OSError, ValueError) as e:
        raise FrequencyTableError(
            "Could not retrieve maximum CPU frequency. "
            "Please specify a value for --max-freq."
        ) from e

    logger.info("Detected maximum CPU frequency: %d kHz", max_freq)
    return max_freq


def build_frequency_table(max_freq: int, sysfs_root: str = SYSFS_CPU_ROOT,
                          step: int = DEFAULT_STEP_KHZ) -> FrequencyTable:
    """Build the descending table of frequencies the governor steps through."""
    available_path = os.path.join(sysfs_root, AVAILABLE_FREQUENCIES)
    min_path = os.path.join(sysfs_root, CPUINFO_MIN_FREQ)

    if os.path.isfile(available_path):
        try:
            with open(available_path, "r") as f:
                values = [int(token) for token in f.read().split()]
        except (OSError, ValueError) as e:
            raise FrequencyTableError(
                f"Could not read available cpu frequencies from file {available_path}"
            ) from e
        if not values:
            raise FrequencyTableError(f"No frequencies listed in {available_path}")
        table = FrequencyTable.from_iterable(values)
        logger.debug("Frequency table from %s: %s", available_path, list(table))
        return table

    if os.path.isfile(min_path):
        if step <= 0:
            raise FrequencyTableError(f"Frequency step must be positive, got {step}")
        try:
            min_freq = _read_int(min_path)
        except (OSError, ValueError) as e:
            raise FrequencyTableError("Could not compute available cpu frequencies") from e
        values = list(range(max_freq, min_freq - 1, -step))
        if not values:
            raise FrequencyTableError(
                f"Maximum frequency {max_freq} is below the minimum {min_freq}"
            )
        logger.debug("Synthesized %d frequencies from %d down to %d kHz",
                     len(values), max_freq, min_freq)
        return FrequencyTable(tuple(values))

    raise FrequencyTableError("Could not determine available cpu frequencies")


def detect_core_count() -> int:
    """Number of logical CPUs this process may run on (like nproc)."""
    try:
        count = len(os.sched_getaffinity(0))
    except AttributeError:
        count = os.cpu_count() or 1
    return max(1, count)
