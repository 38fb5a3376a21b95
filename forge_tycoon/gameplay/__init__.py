"""
Gameplay systems for Forge Tycoon.
NO UI DEPENDENCIES.
"""

from forge_tycoon.gameplay.shop import Shop

__all__ = ["Shop"]
