"""Governor core: domain types, state machine and control loop."""
from .types import (
    FrequencyTable,
    TemperatureThresholds,
    Transition,
    ThrottleError,
    TemperatureUnavailable,
)
from .events import EventBus, Events
from .governor import ThrottleStateMachine
from .control_loop import ControlLoop

__all__ = [
    "FrequencyTable",
    "TemperatureThresholds",
    "Transition",
    "ThrottleError",
    "TemperatureUnavailable",
    "EventBus",
    "Events",
    "ThrottleStateMachine",
    "ControlLoop",
]
