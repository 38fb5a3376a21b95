"""
SQLAlchemy models for Forge Tycoon.
"""

from forge_tycoon.models.save_slot import SaveSlot

__all__ = ["SaveSlot"]
