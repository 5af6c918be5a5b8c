"""HealthTrack: personal vital-sign logging with normal-range alerts."""

__version__ = "0.1.0"
