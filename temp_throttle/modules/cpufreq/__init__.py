"""cpufreq sysfs access: frequency table discovery and frequency limits."""
from .frequency_table import build_frequency_table, resolve_max_frequency, detect_core_count
from .frequency_applier import FrequencyApplier, SysfsFrequencyWriter, CpufreqSetCommand

__all__ = [
    "build_frequency_table",
    "resolve_max_frequency",
    "detect_core_count",
    "FrequencyApplier",
    "SysfsFrequencyWriter",
    "CpufreqSetCommand",
]
