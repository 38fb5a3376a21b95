"""
Forge Tycoon - blacksmith shop simulation core with a small HTTP surface.
"""
