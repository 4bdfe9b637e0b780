"""
Tests for Frequency Table discovery
====================================
"""

import pytest

from conftest import write_cpufreq
from temp_throttle.core.types import FrequencyTable, FrequencyTableError
from temp_throttle.modules.cpufreq.frequency_table import (
    build_frequency_table,
    detect_core_count,
    resolve_max_frequency,
)


class TestFrequencyTable:
    """Invariants of the table type."""

    def test_from_iterable_sorts_descending(self):
        table = FrequencyTable.from_iterable([1400000, 2000000, 1600000, 1800000])

        assert list(table) == [2000000, 1800000, 1600000, 1400000]
        assert table.highest == 2000000
        assert table.lowest == 1400000

    def test_duplicates_allowed(self):
        table = FrequencyTable.from_iterable([1000, 2000, 1000])

        assert list(table) == [2000, 1000, 1000]

    def test_rejects_ascending(self):
        with pytest.raises(FrequencyTableError):
            FrequencyTable((1000, 2000))

    def test_rejects_empty(self):
        with pytest.raises(FrequencyTableError):
            FrequencyTable.from_iterable([])

    def test_one_based_access(self):
        table = FrequencyTable((3000, 2000, 1000))

        assert table.at(1) == 3000
        assert table.at(3) == 1000
        with pytest.raises(IndexError):
            table.at(0)
        with pytest.raises(IndexError):
            table.at(4)


class TestBuildFrequencyTable:
    """Discrete list, synthesized fallback and failures."""

    def test_reads_available_frequencies(self, cpu_root):
        table = build_frequency_table(2000000, str(cpu_root))

        assert list(table) == [2000000, 1800000, 1600000, 1400000]

    def test_discrete_list_ignores_max_freq(self, cpu_root):
        table = build_frequency_table(1500000, str(cpu_root))

        assert table.highest == 2000000

    def test_synthesizes_from_min(self, tmp_path):
        write_cpufreq(tmp_path, 0, cpuinfo_min_freq=1600000)

        table = build_frequency_table(2000000, str(tmp_path))

        assert list(table) == [2000000, 1900000, 1800000, 1700000, 1600000]

    def test_synthesized_stops_above_unaligned_min(self, tmp_path):
        write_cpufreq(tmp_path, 0, cpuinfo_min_freq=1650000)

        table = build_frequency_table(2000000, str(tmp_path), step=100000)

        assert table.lowest == 1700000

    def test_synthesized_max_equals_min(self, tmp_path):
        write_cpufreq(tmp_path, 0, cpuinfo_min_freq=800000)

        assert list(build_frequency_table(800000, str(tmp_path))) == [800000]

    def test_max_below_min_fails(self, tmp_path):
        write_cpufreq(tmp_path, 0, cpuinfo_min_freq=1600000)

        with pytest.raises(FrequencyTableError):
            build_frequency_table(1000000, str(tmp_path))

    def test_no_source_fails(self, tmp_path):
        with pytest.raises(FrequencyTableError, match="Could not determine"):
            build_frequency_table(2000000, str(tmp_path))

    def test_garbage_list_fails(self, tmp_path):
        write_cpufreq(tmp_path, 0, scaling_available_frequencies="fast slow")

        with pytest.raises(FrequencyTableError):
            build_frequency_table(2000000, str(tmp_path))

    def test_empty_list_fails(self, tmp_path):
        write_cpufreq(tmp_path, 0, scaling_available_frequencies="")

        with pytest.raises(FrequencyTableError):
            build_frequency_table(2000000, str(tmp_path))


class TestResolveMaxFrequency:
    """--max-freq=auto handling."""

    def test_auto_reads_cpuinfo_max(self, cpu_root):
        assert resolve_max_frequency("auto", str(cpu_root)) == 2000000

    def test_auto_without_cpuinfo_fails(self, tmp_path):
        with pytest.raises(FrequencyTableError, match="--max-freq"):
            resolve_max_frequency("auto", str(tmp_path))

    def test_explicit_value_passes_through(self, tmp_path):
        assert resolve_max_frequency(2400000, str(tmp_path)) == 2400000


def test_detect_core_count_positive():
    assert detect_core_count() >= 1
