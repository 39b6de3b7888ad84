"""
Dancing Links solver for Pips puzzles.
"""

import logging
from typing import Optional

from .base_solver import BaseSolver, SolverConfig, SolverResult
from .exact_cover import ExactCoverBuilder
from .dlx import DancingLinks
from ..core.puzzle import Puzzle


class DLXSolverConfig(SolverConfig):
    """Configuration specific to the DLX solver"""

    def __init__(self, **kwargs):
        # Extract DLX-specific parameters before passing to parent
        self.verify_solutions = kwargs.pop('verify_solutions', True)
        self.dominoes_optional = kwargs.pop('dominoes_optional', True)
        self.max_solutions = kwargs.pop('max_solutions', None)

        # Call parent constructor with remaining kwargs
        super().__init__(**kwargs)


class DLXSolver(BaseSolver):
    """
    Solve Pips puzzles as an exact cover problem.

    The matrix rows only encode constraints between the two nodes a domino
    covers, so multi-node expressions are checked again on every full cover;
    covers that fail are skipped.
    """

    def __init__(self, config: Optional[DLXSolverConfig] = None):
        super().__init__(config or DLXSolverConfig())
        self.verify_solutions = getattr(self.config, 'verify_solutions', True)
        self.dominoes_optional = getattr(self.config, 'dominoes_optional', True)
        self.max_solutions = getattr(self.config, 'max_solutions', None)

    def _solve(self, puzzle: Puzzle) -> SolverResult:
        """Build the exact cover matrix and enumerate its covers"""
        builder = ExactCoverBuilder(self.satisfier, self.dominoes_optional)
        cover_matrix = builder.build(puzzle)
        self.logger.debug(f"Matrix: {cover_matrix.num_rows} rows x {cover_matrix.shape[1]} columns, "
                          f"{cover_matrix.primary_columns} primary")

        dlx = DancingLinks(cover_matrix.matrix, cover_matrix.primary_columns,
                           step_callback=self._increment_iteration)

        covers = 0
        rejected = 0
        seen = set()
        generator = dlx.iter_solutions()
        try:
            for rows in generator:
                covers += 1
                solution = cover_matrix.decode(rows)

                if self.verify_solutions and not self.satisfier.all_satisfied(puzzle, solution.assignment):
                    rejected += 1
                    if self.logger.isEnabledFor(logging.DEBUG):
                        failing = self.satisfier.unsatisfied(puzzle, solution.assignment)
                        self.logger.debug(f"Rejected cover {rows}: {failing}")
                    continue

                key = solution.tiling_key()
                if key in seen:
                    continue
                seen.add(key)

                self._record_solution(solution)
                if not self.config.enumerate_all:
                    break
                if self.max_solutions is not None and len(self._solutions) >= self.max_solutions:
                    self.logger.info(f"Stopping after {self.max_solutions} solutions")
                    break
        finally:
            generator.close()

        stats = {
            'matrix_rows': cover_matrix.num_rows,
            'matrix_columns': cover_matrix.shape[1],
            'primary_columns': cover_matrix.primary_columns,
            'covers_found': covers,
            'covers_rejected': rejected,
            'link_updates': dlx.updates,
        }
        return self._finish(list(self._solutions), stats)
