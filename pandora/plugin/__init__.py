"""Plugin constructors and the registry that creates configured plugins."""

__all__ = ["constructor", "registry"]