"""Race Replay - time-scaled replay of a runner along a race course."""

__version_date__ = "2025-03-08"
