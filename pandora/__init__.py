"""Load generation building blocks: schedules, an ammo queue, plugins and utilities."""

__version__ = "0.1.0"

__all__ = ["errutil", "ioutil2", "monitoring", "netutil", "plugin", "provider", "schedule"]