"""
Validator for Pips puzzle structure and solutions.
"""

from typing import List
from collections import Counter
import networkx as nx

from .puzzle import Puzzle, Solution
from .expression import ExpressionEvaluator
from .constraints import ConstraintSatisfier, ANY_EXPRESSION


class ValidationResult:
    """Result of puzzle validation"""

    def __init__(self):
        self.is_valid = True
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def add_error(self, error: str):
        """Add an error message"""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str):
        """Add a warning message"""
        self.warnings.append(warning)

    def merge(self, other: 'ValidationResult'):
        for error in other.errors:
            self.add_error(error)
        self.warnings.extend(other.warnings)

    def __bool__(self):
        return self.is_valid

    def __repr__(self):
        status = "Valid" if self.is_valid else "Invalid"
        return f"ValidationResult({status}, {len(self.errors)} errors, {len(self.warnings)} warnings)"


class PuzzleValidator:
    """Validates Pips puzzle structure and solutions"""

    @staticmethod
    def build_graph(puzzle: Puzzle) -> nx.Graph:
        """Peer graph of the puzzle, one vertex per node"""
        graph = nx.Graph()
        graph.add_nodes_from(puzzle.node_names)
        graph.add_edges_from(puzzle.edges())
        return graph

    @staticmethod
    def validate_puzzle_structure(puzzle: Puzzle) -> ValidationResult:
        """Validate basic puzzle structure"""
        result = ValidationResult()

        if not puzzle.nodes:
            result.add_error("Puzzle has no nodes")
            return result

        if puzzle.min_pip > puzzle.max_pip:
            result.add_error(f"Invalid pip range: {puzzle.min_pip}..{puzzle.max_pip}")

        names = set(puzzle.node_names)
        for node in puzzle.nodes:
            if not node.name.isalpha():
                result.add_error(f"Node name {node.name!r} must contain letters only")

            for peer in node.peers:
                if peer == node.name:
                    result.add_error(f"Node {node.name} lists itself as a peer")
                elif peer not in names:
                    result.add_error(f"Node {node.name} has unknown peer {peer}")
                elif node.name not in puzzle.peers(peer):
                    result.add_error(f"Peer relation {node.name}-{peer} is not symmetric")

            unknown = ExpressionEvaluator.variables(node.expression) - names - {ANY_EXPRESSION}
            if unknown:
                result.add_warning(
                    f"Expression of {node.name} references unknown identifiers: {sorted(unknown)}")

        for index, domino in enumerate(puzzle.dominoes):
            for pip in domino.pips:
                if not puzzle.min_pip <= pip <= puzzle.max_pip:
                    result.add_error(f"Domino #{index} {domino} has pip {pip} outside "
                                     f"{puzzle.min_pip}..{puzzle.max_pip}")

        if len(puzzle.nodes) % 2 != 0:
            result.add_error(f"Odd number of nodes ({len(puzzle.nodes)}) cannot be covered by dominoes")

        needed = len(puzzle.nodes) // 2
        if len(puzzle.dominoes) < needed:
            result.add_error(f"Not enough dominoes: {len(puzzle.dominoes)} < {needed}")

        # A tiling is a perfect matching of the peer graph
        if result.is_valid:
            graph = PuzzleValidator.build_graph(puzzle)
            matching = nx.max_weight_matching(graph, maxcardinality=True)
            if len(matching) * 2 != len(puzzle.nodes):
                result.add_error("Peer graph has no perfect matching; no domino tiling exists")

        return result

    @staticmethod
    def validate_solution(puzzle: Puzzle, solution: Solution,
                          satisfier: ConstraintSatisfier = None) -> ValidationResult:
        """Validate that a solution is complete and obeys every rule"""
        result = ValidationResult()
        satisfier = satisfier or ConstraintSatisfier.for_puzzle(puzzle)
        assignment = solution.assignment

        for name in puzzle.node_names:
            if name not in assignment:
                result.add_error(f"Node {name} has no value")
            elif not puzzle.min_pip <= assignment[name] <= puzzle.max_pip:
                result.add_error(f"Node {name} has value {assignment[name]} outside the pip range")

        for name in assignment:
            if not puzzle.has_node(name):
                result.add_error(f"Assignment names unknown node {name}")

        covered = Counter()
        used = Counter()
        for placement in solution.placements:
            covered.update(placement.nodes)
            used[placement.domino_index] += 1

            if not (puzzle.has_node(placement.first) and puzzle.has_node(placement.second)):
                continue
            if not puzzle.are_adjacent(placement.first, placement.second):
                result.add_error(f"{placement.first} and {placement.second} are not adjacent")

            if not 0 <= placement.domino_index < len(puzzle.dominoes):
                result.add_error(f"Placement uses unknown domino #{placement.domino_index}")
                continue
            domino = puzzle.dominoes[placement.domino_index]
            if sorted(domino.pips) != sorted((placement.first_pip, placement.second_pip)):
                result.add_error(f"Placement {placement} does not match domino {domino}")

            if (assignment.get(placement.first) != placement.first_pip or
                    assignment.get(placement.second) != placement.second_pip):
                result.add_error(f"Placement {placement} disagrees with the assignment")

        for index, count in used.items():
            if count > 1:
                result.add_error(f"Domino #{index} used {count} times")

        if solution.placements:
            for name in puzzle.node_names:
                if covered[name] != 1:
                    result.add_error(f"Node {name} covered {covered[name]} times")

        if result.is_valid:
            for name in satisfier.unsatisfied(puzzle, assignment):
                result.add_error(f"Expression of {name} does not hold: {puzzle.expression(name)}")

        return result

    @staticmethod
    def get_puzzle_statistics(puzzle: Puzzle) -> dict:
        """Get various statistics about the puzzle"""
        graph = PuzzleValidator.build_graph(puzzle)
        kinds = Counter()
        for node in puzzle.nodes:
            if node.expression.strip() in ("", ANY_EXPRESSION):
                kinds['any'] += 1
            else:
                kinds[ExpressionEvaluator.classify(node.expression).value] += 1

        stats = {
            'num_nodes': len(puzzle.nodes),
            'num_edges': graph.number_of_edges(),
            'num_dominoes': len(puzzle.dominoes),
            'num_doubles': sum(1 for d in puzzle.dominoes if d.is_double()),
            'distinct_dominoes': len(set(puzzle.dominoes)),
            'spare_dominoes': len(puzzle.dominoes) - len(puzzle.nodes) // 2,
            'avg_peers': (sum(len(n.peers) for n in puzzle.nodes) / len(puzzle.nodes)
                          if puzzle.nodes else 0),
            'is_connected': nx.is_connected(graph) if puzzle.nodes else False,
            'expression_kinds': dict(kinds),
        }

        degree_dist = {}
        for node in puzzle.nodes:
            deg = len(node.peers)
            degree_dist[deg] = degree_dist.get(deg, 0) + 1
        stats['degree_distribution'] = degree_dist

        return stats
