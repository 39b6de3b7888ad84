"""
Constraint checks shared by the solvers.
"""

from typing import Dict, Mapping, Optional

from .expression import ExpressionEvaluator
from .puzzle import Puzzle


ANY_EXPRESSION = "ANY"


class ConstraintSatisfier:
    """Decides whether node expressions hold for (partial) pip assignments"""

    def __init__(self, evaluator: Optional[ExpressionEvaluator] = None):
        self.evaluator = evaluator or ExpressionEvaluator()

    @classmethod
    def for_puzzle(cls, puzzle: Puzzle) -> 'ConstraintSatisfier':
        """Satisfier whose evaluator uses the puzzle's pip range"""
        return cls(ExpressionEvaluator(puzzle.min_pip, puzzle.max_pip))

    def satisfiable(self, expression: Optional[str], bindings: Mapping[str, int]) -> bool:
        """
        Check an expression against the current bindings.

        ``ANY`` and empty expressions always hold. Otherwise the evaluator is
        asked with domino checking enabled, so a partial assignment passes
        unless it is already known to be infeasible.
        """
        if expression is None or expression.strip() in ("", ANY_EXPRESSION):
            return True
        return self.evaluator.evaluate(expression, bindings, domino_check=True)

    def satisfies_value(self, expression: Optional[str], node: str, value: int,
                        bindings: Optional[Mapping[str, int]] = None) -> bool:
        """Check an expression with `node` tentatively set to `value`"""
        trial: Dict[str, int] = dict(bindings or {})
        trial[node] = value
        return self.satisfiable(expression, trial)

    def placement_feasible(self, puzzle: Puzzle, first: str, second: str,
                           first_pip: int, second_pip: int,
                           bindings: Optional[Mapping[str, int]] = None) -> bool:
        """Check both nodes' expressions with a domino laid across them"""
        trial: Dict[str, int] = dict(bindings or {})
        trial[first] = first_pip
        trial[second] = second_pip
        return (self.satisfiable(puzzle.expression(first), trial) and
                self.satisfiable(puzzle.expression(second), trial))

    def all_satisfied(self, puzzle: Puzzle, assignment: Mapping[str, int]) -> bool:
        """True if every node is assigned and its expression holds"""
        for node in puzzle.nodes:
            if node.name not in assignment:
                return False
            if not self.satisfiable(node.expression, assignment):
                return False
        return True

    def unsatisfied(self, puzzle: Puzzle, assignment: Mapping[str, int]):
        """Names of nodes whose expression fails under the assignment"""
        return [node.name for node in puzzle.nodes
                if not self.satisfiable(node.expression, assignment)]
