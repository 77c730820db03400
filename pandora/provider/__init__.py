"""Ammo queue and a provider of sequential numbers."""

__all__ = ["queue"]