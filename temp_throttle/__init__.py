"""User-space thermal governor: steps CPU max frequency to hold a temperature."""

__version__ = "1.0.0"
