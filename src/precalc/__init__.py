"""Precalculus course site: schedules, pace ordering, course status and assignments."""

__version__ = "0.1.0"
