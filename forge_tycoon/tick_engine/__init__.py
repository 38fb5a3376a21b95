"""
Tick engine for Forge Tycoon.
"""

from forge_tycoon.tick_engine.engine import TickEngine, get_tick_engine, set_tick_engine

__all__ = ["TickEngine", "get_tick_engine", "set_tick_engine"]
