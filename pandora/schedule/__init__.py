"""Schedules that decide when each operation is performed."""

__all__ = ["do_at", "rate", "unlimited", "composite"]