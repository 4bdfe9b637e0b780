"""
Shared fixtures: fake sysfs trees and a recording frequency applier.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from temp_throttle.core.types import FrequencyTable


class RecordingApplier:
    """Stands in for FrequencyApplier and remembers what was applied."""

    def __init__(self):
        self.applied = []
        self.indices = []

    def apply(self, table: FrequencyTable, index: int, core_count: int) -> int:
        frequency = table.at(index)
        self.applied.append(frequency)
        self.indices.append(index)
        return frequency


def write_cpufreq(cpu_root: Path, core: int, **files):
    """Create cpu<core>/cpufreq/<name> files under a fake sysfs root."""
    cpufreq = cpu_root / f"cpu{core}" / "cpufreq"
    cpufreq.mkdir(parents=True, exist_ok=True)
    for name, content in files.items():
        (cpufreq / name).write_text(f"{content}\n")
    return cpufreq


@pytest.fixture
def recording_applier():
    return RecordingApplier()


@pytest.fixture
def cpu_root(tmp_path):
    """Fake /sys/devices/system/cpu with four cores and a discrete table."""
    root = tmp_path / "cpu"
    write_cpufreq(
        root, 0,
        scaling_available_frequencies="1400000 2000000 1600000 1800000 ",
        cpuinfo_min_freq=1400000,
        cpuinfo_max_freq=2000000,
        scaling_max_freq=1400000,
    )
    for core in range(1, 4):
        write_cpufreq(root, core, scaling_max_freq=1400000)
    return root


@pytest.fixture
def thermal_root(tmp_path):
    """Fake temperature sensor files; returns a factory for candidates."""
    root = tmp_path / "thermal"
    root.mkdir()

    def make(**readings):
        paths = []
        for name, value in readings.items():
            path = root / name
            if value is not None:
                path.write_text(f"{value}\n")
            paths.append(str(path))
        return paths

    return make
