"""
Base solver class for Pips puzzles.
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any, List, Callable
from dataclasses import dataclass, field
from enum import Enum
import time
from pathlib import Path

from ..core.puzzle import Puzzle, Solution
from ..core.constraints import ConstraintSatisfier
from ..core.validator import PuzzleValidator
from ..core.utils import setup_logger, memory_usage
from ..config import DEFAULT_TIME_LIMIT


class SolveStatus(Enum):
    """
    Outcome of a solve call.

    INVALID_PUZZLE is returned before any search for malformed puzzles and
    also for well-formed ones whose cells cannot be tiled at all: fewer
    dominoes than cell pairs, or a peer graph without a perfect matching.
    NO_SOLUTION means a tiling exists but no assignment of the inventory
    satisfies every expression.
    """
    SOLVED = "solved"
    NO_SOLUTION = "no_solution"
    ABORTED = "aborted"
    INVALID_PUZZLE = "invalid_puzzle"
    ERROR = "error"


class SearchAborted(Exception):
    """Raised inside search when a time, step or depth budget is exceeded"""


@dataclass
class SolverConfig:
    """Configuration for puzzle solvers"""
    time_limit: Optional[float] = DEFAULT_TIME_LIMIT  # seconds, None for no limit
    max_iterations: Optional[int] = None  # search steps, None for unbounded
    max_depth: Optional[int] = None  # recursion depth, None for interpreter limit
    verbose: bool = False
    log_file: Optional[Path] = None
    enumerate_all: bool = False  # find every solution instead of the first
    validate_solution: bool = True


@dataclass
class SolverResult:
    """Result from puzzle solver"""
    status: SolveStatus
    solution: Optional[Solution] = None
    solutions: List[Solution] = field(default_factory=list)
    solve_time: float = 0.0
    iterations: int = 0
    memory_used: float = 0.0  # MB
    message: str = ""

    # Additional information
    stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.status is SolveStatus.SOLVED

    def __repr__(self):
        return (f"SolverResult({self.status.value}, solutions={len(self.solutions)}, "
                f"time={self.solve_time:.2f}s, iterations={self.iterations})")


class BaseSolver(ABC):
    """Abstract base class for Pips solvers"""

    def __init__(self, config: Optional[SolverConfig] = None):
        """Initialize solver with configuration."""
        self.config = config or SolverConfig()
        self.logger = setup_logger(
            self.__class__.__name__,
            self.config.log_file,
            "DEBUG" if self.config.verbose else "INFO"
        )

        # Callbacks for monitoring progress
        self._progress_callbacks: List[Callable] = []

        # Statistics tracking
        self._start_time: Optional[float] = None
        self._iterations: int = 0

        self._solutions: List[Solution] = []
        self.satisfier: Optional[ConstraintSatisfier] = None

    def add_progress_callback(self, callback: Callable):
        """Add a callback function called with (iterations, stats) on each solution."""
        self._progress_callbacks.append(callback)

    def solve(self, puzzle: Puzzle) -> SolverResult:
        """Solve the puzzle. Never raises; failures are reported in the result status."""
        self.logger.info(f"Starting {self.__class__.__name__} solver")
        self.logger.info(f"Puzzle: {puzzle!r}")

        # Validate input puzzle
        validation = PuzzleValidator.validate_puzzle_structure(puzzle)
        for warning in validation.warnings:
            self.logger.warning(warning)
        if not validation:
            self.logger.warning(f"Invalid puzzle: {'; '.join(validation.errors)}")
            return SolverResult(
                status=SolveStatus.INVALID_PUZZLE,
                message=f"Invalid puzzle: {'; '.join(validation.errors)}"
            )

        # Initialize solving
        self._start_time = time.time()
        self._iterations = 0
        self._solutions = []
        self.satisfier = ConstraintSatisfier.for_puzzle(puzzle)
        initial_memory = memory_usage()

        try:
            # Call the specific solver implementation
            result = self._solve(puzzle)

            # Validate solutions if found
            if result.solutions and self.config.validate_solution:
                for solution in result.solutions:
                    validation = PuzzleValidator.validate_solution(puzzle, solution, self.satisfier)
                    if not validation:
                        result.status = SolveStatus.ERROR
                        result.message = f"Invalid solution: {'; '.join(validation.errors)}"
                        break

        except SearchAborted as e:
            self.logger.warning(f"Search aborted: {e}")
            result = SolverResult(
                status=SolveStatus.ABORTED,
                solutions=list(self._solutions),
                message=f"Search aborted: {e}"
            )

        except Exception as e:
            self.logger.error(f"Error during solving: {str(e)}", exc_info=True)
            return SolverResult(
                status=SolveStatus.ERROR,
                message=f"Solver error: {str(e)}",
                solve_time=time.time() - self._start_time,
                iterations=self._iterations
            )

        # Add final statistics
        result.solve_time = time.time() - self._start_time
        result.memory_used = memory_usage() - initial_memory
        result.iterations = self._iterations
        if result.solutions and result.solution is None:
            result.solution = result.solutions[0]

        # Log result
        if result.success:
            self.logger.info(f"Solved in {result.solve_time:.2f}s with {result.iterations} iterations "
                             f"({len(result.solutions)} solution(s))")
        else:
            self.logger.warning(f"Failed to solve: {result.message}")

        return result

    @abstractmethod
    def _solve(self, puzzle: Puzzle) -> SolverResult:
        """Implement the specific solving algorithm."""
        pass

    def _check_time_limit(self) -> bool:
        """Check if time limit has been exceeded"""
        if self._start_time is None or self.config.time_limit is None:
            return False
        return (time.time() - self._start_time) > self.config.time_limit

    def _increment_iteration(self):
        """Increment iteration counter and check limits"""
        self._iterations += 1

        if self.config.max_iterations is not None and self._iterations > self.config.max_iterations:
            raise SearchAborted(f"Maximum iterations ({self.config.max_iterations}) exceeded")

        if self._check_time_limit():
            raise SearchAborted(f"Time limit ({self.config.time_limit}s) exceeded")

    def _call_progress_callbacks(self, stats: Optional[Dict[str, Any]] = None):
        """Call all registered progress callbacks"""
        for callback in self._progress_callbacks:
            try:
                callback(self._iterations, stats or {})
            except Exception as e:
                self.logger.error(f"Error in progress callback: {e}")

    def _record_solution(self, solution: Solution):
        self._solutions.append(solution)
        self.logger.debug(f"Solution {len(self._solutions)} at iteration {self._iterations}: {solution}")
        self._call_progress_callbacks({'solutions': len(self._solutions)})

    def _finish(self, solutions: List[Solution], stats: Dict[str, Any]) -> SolverResult:
        """Build the result for a search that ran to completion"""
        if solutions:
            return SolverResult(
                status=SolveStatus.SOLVED,
                solution=solutions[0],
                solutions=solutions,
                message=f"Found {len(solutions)} solution(s)",
                stats=stats
            )
        return SolverResult(
            status=SolveStatus.NO_SOLUTION,
            message="No solution exists",
            stats=stats
        )
