"""Route group exports."""

from . import configs, health, shipping

__all__ = ["shipping", "configs", "health"]
