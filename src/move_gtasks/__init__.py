"""Move incomplete Google Tasks from one day to another."""

__version__ = "0.1.0"
