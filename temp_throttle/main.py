"""
temp-throttle - keep the CPU below a target temperature by lowering the
maximum clock frequency of all cores one step at a time.

Usage:
    temp-throttle --max-temp=65 --max-freq=auto
    temp-throttle --max-temp=70 --max-freq=2400000 --log-level DEBUG
    temp-throttle --config /etc/temp-throttle/config.yaml

Temperatures are in degrees Celsius, frequencies in kHz. Needs root (or
cpufrequtils) to change the frequency limits.
"""

import signal
import argparse
import logging

from temp_throttle import __version__
from temp_throttle.core.control_loop import ControlLoop
from temp_throttle.core.events import EventBus, Events
from temp_throttle.core.governor import ThrottleStateMachine
from temp_throttle.core.types import TemperatureThresholds, ThrottleError, Transition
from temp_throttle.modules.cpufreq.frequency_applier import FrequencyApplier
from temp_throttle.modules.cpufreq.frequency_table import (
    build_frequency_table,
    detect_core_count,
    resolve_max_frequency,
)
from temp_throttle.modules.thermal.temperature_reader import TemperatureReader
from temp_throttle.modules.utils.config import Config
from temp_throttle.modules.utils.logger import setup_logging

logger = logging.getLogger(__name__)


class ThermalGovernor:
    """Wires the startup queries, state machine and control loop together."""

    def __init__(self, config: Config, bus: EventBus = None):
        self._config = config
        self._bus = bus or EventBus()
        cpufreq = config.cpufreq
        sysfs_root = cpufreq.get("sysfs_root")

        max_freq = resolve_max_frequency(config.get("governor.max_freq"), sysfs_root)
        self._table = build_frequency_table(
            max_freq, sysfs_root, cpufreq.get("step_khz", 100000)
        )
        self._thresholds = TemperatureThresholds.from_degrees(
            config.get("governor.max_temp"), config.get("governor.hysteresis", 5)
        )
        self._core_count = detect_core_count()
        logger.info("Number of CPU cores detected: %d", self._core_count,
                    extra={"color": "yellow"})
        logger.info("Frequency table: %d steps, %d..%d kHz",
                    len(self._table), self._table.highest, self._table.lowest)

        self._reader = TemperatureReader(config.thermal.get("candidates"))
        self._applier = FrequencyApplier.from_config(cpufreq)
        self._machine = ThrottleStateMachine(
            self._table, self._thresholds, self._applier, self._core_count, bus=self._bus,
        )
        self._loop = ControlLoop(
            self._reader, self._machine,
            interval=config.get("governor.poll_interval", 3.0),
        )

        self._bus.subscribe(Events.FREQUENCY_CHANGED, self._on_frequency_changed)

    def _on_frequency_changed(self, transition, index, frequency, temperature, **kwargs):
        """Report every applied frequency change on the console."""
        if temperature is None:
            logger.info("%s %d kHz", transition.value, frequency)
            return
        color = "red" if transition is Transition.THROTTLE else "green"
        logger.info("%s %d kHz (%.1f°C, step %d/%d)",
                    transition.value, frequency, temperature / 1000.0,
                    index, len(self._table), extra={"color": color})

    def run(self):
        """Run until a signal stops the loop, then restore the maximum frequency."""
        logger.info("Initialize to max CPU frequency", extra={"color": "yellow"})
        self._loop.run()
        if self._config.get("governor.restore_on_exit", True):
            self._machine.restore_maximum()

    def handle_signal(self, signum, frame):
        self._loop.handle_signal(signum, frame)

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def machine(self) -> ThrottleStateMachine:
        return self._machine

    @property
    def loop(self) -> ControlLoop:
        return self._loop


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="temp-throttle",
        description="Throttle CPU frequency to keep temperature below a limit",
    )
    parser.add_argument(
        "--max-temp", type=str, default=None,
        help="Temperature in celsius above which the CPU is throttled"
    )
    parser.add_argument(
        "--max-freq", type=str, default=None,
        help="Highest frequency in kHz, or 'auto' to read it from the hardware"
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Path to config.yaml"
    )
    parser.add_argument(
        "--interval", type=float, default=None,
        help="Seconds between temperature checks (default 3)"
    )
    parser.add_argument(
        "--log-level", type=str, default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console log level"
    )
    parser.add_argument(
        "--log-file", type=str, default=None,
        help="Also write a rotating log file"
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(level=args.log_level or "INFO")

    try:
        config = Config().load(args.config)
        config.override("governor.max_temp", args.max_temp)
        config.override("governor.max_freq", args.max_freq)
        config.override("governor.poll_interval", args.interval)
        config.override("logging.level", args.log_level)
        config.override("logging.file", args.log_file)
        config.validate_required()

        log_cfg = config.get_section("logging")
        setup_logging(
            level=log_cfg.get("level", "INFO"),
            log_file=log_cfg.get("file"),
            max_size_mb=log_cfg.get("max_size_mb", 10),
            backup_count=log_cfg.get("backup_count", 3),
            color=log_cfg.get("color", True),
        )

        governor = ThermalGovernor(config)

        signal.signal(signal.SIGINT, governor.handle_signal)
        signal.signal(signal.SIGTERM, governor.handle_signal)

        governor.run()
    except ThrottleError as e:
        logger.error("%s", e)
        return e.exit_code

    return 0
