"""
Save slot persistence for Forge Tycoon.
"""

from forge_tycoon.persistence.save_manager import SaveManager, get_save_manager, set_save_manager

__all__ = ["SaveManager", "get_save_manager", "set_save_manager"]
