"""Temperature sensors."""
from .temperature_reader import TemperatureReader, DEFAULT_CANDIDATES

__all__ = ["TemperatureReader", "DEFAULT_CANDIDATES"]
