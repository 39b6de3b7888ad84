"""
Core data structures and utilities for the Pips solver.
"""

from .expression import (
    ExpressionEvaluator, ExpressionKind, ExpressionError, ZeroDivisorError, evaluate
)
from .puzzle import (
    Puzzle, Node, Domino, DominoPool, Placement, Solution, PuzzleFormatError
)
from .constraints import ConstraintSatisfier
from .validator import PuzzleValidator, ValidationResult
from .utils import (
    setup_logger, timer, memory_usage,
    PuzzleConverter, save_solution,
    calculate_solution_stats
)

__all__ = [
    # Expressions
    'ExpressionEvaluator', 'ExpressionKind', 'ExpressionError', 'ZeroDivisorError',
    'evaluate', 'ConstraintSatisfier',

    # Data structures
    'Puzzle', 'Node', 'Domino', 'DominoPool', 'Placement', 'Solution',
    'PuzzleFormatError',

    # Validation
    'PuzzleValidator', 'ValidationResult',

    # Utilities
    'setup_logger', 'timer', 'memory_usage',
    'PuzzleConverter', 'save_solution',
    'calculate_solution_stats'
]
