"""
Visualization tools for Pips puzzles.
"""

from .static_viz import PuzzleVisualizer

__all__ = [
    'PuzzleVisualizer',
]
