"""API routes package"""

from . import automated, health

__all__ = ["automated", "health"]
