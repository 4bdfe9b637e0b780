"""
Tests for the Frequency Applier
================================
"""

import subprocess

import pytest
from unittest.mock import Mock, patch

from temp_throttle.core.types import FrequencyApplyError, FrequencyTable
from temp_throttle.modules.cpufreq.frequency_applier import (
    CpufreqSetCommand,
    FrequencyApplier,
    SysfsFrequencyWriter,
)

TABLE = FrequencyTable((2000000, 1800000, 1600000, 1400000))


def mock_strategy(name, result):
    strategy = Mock()
    strategy.name = name
    if isinstance(result, list):
        strategy.set_max_frequency.side_effect = result
    else:
        strategy.set_max_frequency.return_value = result
    return strategy


class TestSysfsFrequencyWriter:
    """Direct scaling_max_freq writes."""

    def test_writes_value(self, cpu_root):
        writer = SysfsFrequencyWriter(str(cpu_root))

        assert writer.set_max_frequency(2, 1800000) is True
        assert (cpu_root / "cpu2" / "cpufreq" / "scaling_max_freq").read_text() == "1800000"

    def test_missing_core_fails(self, cpu_root):
        writer = SysfsFrequencyWriter(str(cpu_root))

        assert writer.set_max_frequency(9, 1800000) is False


class TestCpufreqSetCommand:
    """cpufreq-set fallback."""

    @patch("temp_throttle.modules.cpufreq.frequency_applier.subprocess.run")
    def test_invokes_utility(self, mock_run):
        mock_run.return_value = Mock(returncode=0, stderr=b"")
        command = CpufreqSetCommand(timeout=2.0)

        assert command.set_max_frequency(3, 1600000) is True
        args, kwargs = mock_run.call_args
        assert args[0] == ["cpufreq-set", "-c", "3", "--max", "1600000"]
        assert kwargs["timeout"] == 2.0

    @patch("temp_throttle.modules.cpufreq.frequency_applier.subprocess.run")
    def test_nonzero_exit_fails(self, mock_run):
        mock_run.return_value = Mock(returncode=1, stderr=b"permission denied")

        assert CpufreqSetCommand().set_max_frequency(0, 1600000) is False

    @patch("temp_throttle.modules.cpufreq.frequency_applier.subprocess.run")
    def test_missing_binary_fails(self, mock_run):
        mock_run.side_effect = FileNotFoundError("cpufreq-set")

        assert CpufreqSetCommand().set_max_frequency(0, 1600000) is False

    @patch("temp_throttle.modules.cpufreq.frequency_applier.subprocess.run")
    def test_timeout_fails(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired("cpufreq-set", 5)

        assert CpufreqSetCommand().set_max_frequency(0, 1600000) is False


class TestFrequencyApplier:
    """Strategy chain across all cores."""

    def test_applies_to_every_core(self, cpu_root):
        applier = FrequencyApplier([SysfsFrequencyWriter(str(cpu_root))])

        assert applier.apply(TABLE, 3, 4) == 1600000
        for core in range(4):
            path = cpu_root / f"cpu{core}" / "cpufreq" / "scaling_max_freq"
            assert path.read_text() == "1600000"

    def test_first_success_short_circuits(self):
        primary = mock_strategy("primary", True)
        fallback = mock_strategy("fallback", True)
        applier = FrequencyApplier([primary, fallback])

        applier.apply(TABLE, 1, 2)

        assert primary.set_max_frequency.call_count == 2
        fallback.set_max_frequency.assert_not_called()

    def test_falls_back_per_core(self):
        primary = mock_strategy("primary", [True, False])
        fallback = mock_strategy("fallback", True)
        applier = FrequencyApplier([primary, fallback])

        applier.apply(TABLE, 2, 2)

        fallback.set_max_frequency.assert_called_once_with(1, 1800000)

    def test_all_strategies_failing_is_fatal(self):
        primary = mock_strategy("primary", [True, False, True])
        fallback = mock_strategy("fallback", False)
        applier = FrequencyApplier([primary, fallback])

        with pytest.raises(FrequencyApplyError) as exc_info:
            applier.apply(TABLE, 4, 3)

        assert exc_info.value.core == 1
        assert exc_info.value.frequency == 1400000
        assert "core1" in str(exc_info.value)
        # core 2 is never attempted
        assert primary.set_max_frequency.call_count == 2

    def test_from_config_builds_default_chain(self, cpu_root):
        applier = FrequencyApplier.from_config({
            "sysfs_root": str(cpu_root),
            "fallback_command": "cpufreq-set",
        })

        assert applier.apply(TABLE, 2, 4) == 1800000
        for core in range(4):
            path = cpu_root / f"cpu{core}" / "cpufreq" / "scaling_max_freq"
            assert path.read_text() == "1800000"

    def test_requires_a_strategy(self):
        with pytest.raises(ValueError):
            FrequencyApplier([])
