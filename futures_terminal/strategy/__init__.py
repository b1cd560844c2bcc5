"""
Strategy package - grid ladder generation.
"""

from futures_terminal.strategy.grid_generator import GridGenerator

__all__ = ["GridGenerator"]
