"""Scheduling, persistence and restore of timed local notifications."""

__version__ = "0.3.0"
