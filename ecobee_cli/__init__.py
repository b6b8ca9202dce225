"""Command-line client for ecobee thermostats."""

__version__ = "1.0.0"
