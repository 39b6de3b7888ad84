"""
Recursive backtracking solver for Pips puzzles.

Dominoes are laid directly on the node graph: the solver picks an unassigned
node, tries every remaining domino on it and one of its unassigned peers, and
recurses. Each branch works on its own copy of the assignment and its own
domino pool, so nothing needs to be undone on the way back.
"""

import sys
from typing import Optional, Dict, List, Tuple

from .base_solver import BaseSolver, SolverConfig, SolverResult, SearchAborted
from ..core.puzzle import Puzzle, DominoPool, Placement, Solution
from ..core.constraints import ANY_EXPRESSION
from ..config import RECURSION_HEADROOM


class BacktrackingSolverConfig(SolverConfig):
    """Configuration specific to the backtracking solver"""

    def __init__(self, **kwargs):
        # Extract backtracking-specific parameters before passing to parent
        self.skip_duplicate_tiles = kwargs.pop('skip_duplicate_tiles', True)
        self.verify_complete = kwargs.pop('verify_complete', True)

        # Call parent constructor with remaining kwargs
        super().__init__(**kwargs)


class BacktrackingSolver(BaseSolver):
    """
    Solve Pips puzzles by depth-first domino placement.

    Nodes are visited in a fixed order: fewest expression partners first, with
    unconstrained (``ANY``) nodes last. After placing a domino on ``(c, p)``
    the search continues from the unassigned peers of ``p`` before falling
    back to the first unassigned node in visitation order.
    """

    def __init__(self, config: Optional[BacktrackingSolverConfig] = None):
        super().__init__(config or BacktrackingSolverConfig())
        self.skip_duplicate_tiles = getattr(self.config, 'skip_duplicate_tiles', True)
        self.verify_complete = getattr(self.config, 'verify_complete', True)

        self._puzzle: Optional[Puzzle] = None
        self._order: List[str] = []
        self._max_depth: int = 0
        self._seen: set = set()
        self._deepest: int = 0
        self._rejected: int = 0

    def visitation_order(self, puzzle: Puzzle) -> List[str]:
        """Nodes sorted (stably) by how many other nodes their expression involves"""
        def key(name):
            unconstrained = puzzle.expression(name).strip() in ("", ANY_EXPRESSION)
            return (unconstrained, len(puzzle.partners(name)))
        return sorted(puzzle.node_names, key=key)

    def _solve(self, puzzle: Puzzle) -> SolverResult:
        """Implement depth-first search from the first node in visitation order"""
        self._puzzle = puzzle
        self._order = self.visitation_order(puzzle)
        self._max_depth = self.config.max_depth or (sys.getrecursionlimit() - RECURSION_HEADROOM)
        self._seen = set()
        self._deepest = 0
        self._rejected = 0

        self.logger.debug(f"Visitation order: {self._order}")

        self._search(self._order[0], {}, puzzle.domino_pool(), (), 1)

        stats = {
            'visitation_order': list(self._order),
            'max_depth_reached': self._deepest,
            'rejected_complete_assignments': self._rejected,
        }
        return self._finish(list(self._solutions), stats)

    def _search(self, current: str, assignment: Dict[str, int], pool: DominoPool,
                placements: Tuple[Placement, ...], depth: int) -> bool:
        """
        Try every domino across `current` and each of its unassigned peers.

        Returns:
            True once search should stop (first solution found in first-only mode)
        """
        self._increment_iteration()
        if depth > self._max_depth:
            raise SearchAborted(f"Maximum recursion depth ({self._max_depth}) exceeded")
        self._deepest = max(self._deepest, depth)

        puzzle = self._puzzle
        for peer in puzzle.peers(current):
            if peer in assignment:
                continue

            for pip in puzzle.pip_range:
                tried = set()
                for index in pool.candidates(pip):
                    domino = pool.domino(index)
                    if self.skip_duplicate_tiles:
                        if domino in tried:
                            continue
                        tried.add(domino)

                    other = domino.other(pip)
                    if not self.satisfier.placement_feasible(puzzle, current, peer, pip, other, assignment):
                        continue

                    child = dict(assignment)
                    child[current] = pip
                    child[peer] = other
                    child_pool = pool.consume(index)
                    child_placements = placements + (Placement(current, peer, pip, other, index),)

                    frontier = [name for name in self._order if name not in child]
                    if not frontier:
                        if self._accept(child, child_placements):
                            return True
                        continue

                    for next_node in puzzle.peers(peer):
                        if next_node in child:
                            continue
                        if self._search(next_node, child, child_pool, child_placements, depth + 1):
                            return True

                    if self._search(frontier[0], child, child_pool, child_placements, depth + 1):
                        return True

        return False

    def _accept(self, assignment: Dict[str, int], placements: Tuple[Placement, ...]) -> bool:
        """Record a complete assignment; True if search should stop"""
        if self.verify_complete and not self.satisfier.all_satisfied(self._puzzle, assignment):
            self._rejected += 1
            self.logger.debug(f"Rejected complete assignment {assignment}")
            return False

        solution = Solution(dict(assignment), list(placements))
        key = solution.tiling_key()
        if key in self._seen:
            return False
        self._seen.add(key)

        self._record_solution(solution)
        return not self.config.enumerate_all
