"""
Exact cover formulation of a Pips puzzle.

Columns are the puzzle nodes followed by the domino instances. Every row is
one candidate placement of one instance, in one orientation, across one
adjacent pair of nodes, and has exactly three 1s: the two node columns and
the instance column.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence
import logging

import numpy as np

from ..core.puzzle import Puzzle, Placement, Solution
from ..core.constraints import ConstraintSatisfier
from ..core.utils import timer

logger = logging.getLogger(__name__)


@dataclass
class ExactCoverMatrix:
    """0/1 matrix plus the placement each row stands for"""
    matrix: np.ndarray
    placements: List[Placement]
    column_names: List[str]
    primary_columns: int

    @property
    def shape(self):
        return self.matrix.shape

    @property
    def num_rows(self) -> int:
        return self.matrix.shape[0]

    def decode(self, rows: Sequence[int]) -> Solution:
        """Turn a set of selected row indices back into a solution"""
        assignment = {}
        placements = []
        for row in sorted(rows):
            placement = self.placements[row]
            assignment[placement.first] = placement.first_pip
            assignment[placement.second] = placement.second_pip
            placements.append(placement)
        return Solution(assignment, placements)


class ExactCoverBuilder:
    """Builds the exact cover matrix of a puzzle"""

    def __init__(self, satisfier: Optional[ConstraintSatisfier] = None,
                 dominoes_optional: bool = True):
        """
        Args:
            satisfier: Checks each candidate against the two node expressions
            dominoes_optional: Make domino columns secondary (used at most once)
                so puzzles with spare tiles can be solved
        """
        self.satisfier = satisfier
        self.dominoes_optional = dominoes_optional

    def candidates(self, puzzle: Puzzle) -> List[Placement]:
        """Every locally feasible placement, in node, peer, instance, orientation order"""
        satisfier = self.satisfier or ConstraintSatisfier.for_puzzle(puzzle)
        placements = []

        for first, second in puzzle.edges():
            for index, domino in enumerate(puzzle.dominoes):
                orientations = [(domino.first, domino.second)]
                if not domino.is_double():
                    orientations.append((domino.second, domino.first))

                for first_pip, second_pip in orientations:
                    # Only the pair's own values are known at this point
                    if satisfier.placement_feasible(puzzle, first, second, first_pip, second_pip):
                        placements.append(Placement(first, second, first_pip, second_pip, index))

        return placements

    @timer
    def build(self, puzzle: Puzzle) -> ExactCoverMatrix:
        """Build the 0/1 matrix with one row per feasible candidate"""
        node_columns = {name: i for i, name in enumerate(puzzle.node_names)}
        num_nodes = len(node_columns)
        num_columns = num_nodes + len(puzzle.dominoes)

        placements = self.candidates(puzzle)
        matrix = np.zeros((len(placements), num_columns), dtype=np.int8)
        for row, placement in enumerate(placements):
            matrix[row, node_columns[placement.first]] = 1
            matrix[row, node_columns[placement.second]] = 1
            matrix[row, num_nodes + placement.domino_index] = 1

        column_names = puzzle.node_names + [f"#{i}:{d.first}|{d.second}"
                                            for i, d in enumerate(puzzle.dominoes)]
        primary = num_nodes if self.dominoes_optional else num_columns

        logger.debug(f"Exact cover matrix: {matrix.shape[0]} rows x {matrix.shape[1]} columns "
                     f"({primary} primary)")

        return ExactCoverMatrix(matrix, placements, column_names, primary)
