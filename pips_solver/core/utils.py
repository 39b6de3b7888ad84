"""
Utility functions for the Pips solver.
"""

import logging
from pathlib import Path
from typing import List, Tuple, Optional, Dict, Any, Union
import json
import time
from functools import wraps

from .puzzle import Puzzle, Node, Domino, Solution, PuzzleFormatError
from ..config import LOG_LEVEL, LOG_FORMAT, LOG_DATE_FORMAT, MIN_PIP, MAX_PIP

logger = logging.getLogger(__name__)


def setup_logger(name: str, log_file: Optional[Path] = None, level: str = LOG_LEVEL) -> logging.Logger:
    """
    Set up a logger with console and optional file output.

    Args:
        name: Logger name
        log_file: Optional log file path
        level: Logging level

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers
    logger.handlers = []

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, level.upper()))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(getattr(logging, level.upper()))
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def timer(func):
    """Decorator to time function execution"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.time()
        result = func(*args, **kwargs)
        execution_time = time.time() - start_time

        # Use the instance logger when decorating a method
        if args and hasattr(args[0], 'logger'):
            args[0].logger.debug(f"{func.__name__} took {execution_time:.3f} seconds")
        else:
            logging.getLogger(func.__module__).debug(
                f"{func.__name__} took {execution_time:.3f} seconds")

        return result
    return wrapper


def memory_usage():
    """Get current memory usage in MB"""
    import psutil
    import os
    process = psutil.Process(os.getpid())
    return process.memory_info().rss / 1024 / 1024


REGION_TYPES = ('empty', 'sum', 'less', 'greater', 'equals')


class PuzzleConverter:
    """Convert puzzles between different formats"""

    @staticmethod
    def node_name(index: int) -> str:
        """Spreadsheet-style name for a cell index: A..Z, AA, AB, ..."""
        if index < 0:
            raise ValueError(f"Negative cell index: {index}")
        name = ""
        remaining = index
        while True:
            name = chr(ord('A') + remaining % 26) + name
            remaining = remaining // 26 - 1
            if remaining < 0:
                return name

    @staticmethod
    def region_expression(names: List[str], region_type: str, target: Optional[int]) -> str:
        """
        Expression text for one region.

        Args:
            names: Node names of the region's cells
            region_type: empty, sum, less, greater or equals
            target: Target value; required by every type but empty and equals

        Returns:
            Expression text, e.g. ``"A+B=7"``
        """
        if region_type == 'empty':
            return "ANY"

        if region_type == 'equals':
            return "=".join(names) if len(names) > 1 else "ANY"

        if target is None:
            raise PuzzleFormatError(f"Region of type {region_type!r} needs a target")

        total = "+".join(names)
        if region_type in ('less', '<'):
            return f"{total}<{target}"
        if region_type in ('greater', '>'):
            return f"{total}>{target}"
        # sum, and anything unknown
        return f"{total}={target}"

    @staticmethod
    def from_regions(data: Dict[str, Any], difficulty: Optional[str] = None,
                     name: Optional[str] = None,
                     min_pip: int = MIN_PIP, max_pip: int = MAX_PIP) -> Puzzle:
        """
        Build a node-graph puzzle from a region description.

        The description holds ``dominoes`` and ``regions``; each region lists
        its cells as ``[row, col]`` pairs plus a ``type`` and ``target``. The
        description may sit under a difficulty key, e.g. ``{"hard": {...}}``.

        Cells are named in row-major order and linked to their up, down, left
        and right neighbours.
        """
        if difficulty is not None:
            if difficulty not in data:
                raise PuzzleFormatError(f"No {difficulty!r} puzzle in region data")
            data = data[difficulty]
            name = name or difficulty
        elif 'regions' not in data:
            nested = [key for key, value in data.items()
                      if isinstance(value, dict) and 'regions' in value]
            if len(nested) != 1:
                raise PuzzleFormatError(
                    f"Region data must hold exactly one puzzle or a difficulty must be given; found {nested}")
            name = name or nested[0]
            data = data[nested[0]]

        try:
            regions = data['regions']
            raw_dominoes = data['dominoes']

            region_cells: List[List[Tuple[int, int]]] = []
            for region in regions:
                region_cells.append([(int(row), int(col)) for row, col in region['indices']])
        except (KeyError, TypeError, ValueError) as e:
            raise PuzzleFormatError(f"Malformed region data: {e}") from e

        cells = sorted({cell for region in region_cells for cell in region})
        cell_to_name = {cell: PuzzleConverter.node_name(i) for i, cell in enumerate(cells)}

        peers: Dict[str, List[str]] = {}
        for (row, col), node in cell_to_name.items():
            peers[node] = []
            for dr, dc in ((-1, 0), (1, 0), (0, -1), (0, 1)):  # up, down, left, right
                neighbour = cell_to_name.get((row + dr, col + dc))
                if neighbour is not None:
                    peers[node].append(neighbour)

        expressions: Dict[str, str] = {}
        partners: Dict[str, Optional[Tuple[str, ...]]] = {}
        for region, indices in zip(regions, region_cells):
            region_type = region.get('type', 'sum')
            if region_type not in REGION_TYPES and region_type not in ('<', '>'):
                logger.warning(f"Unknown region type {region_type!r}, treating it as a sum")
            target = region.get('target')
            try:
                target = int(target) if target is not None else None
            except (TypeError, ValueError) as e:
                raise PuzzleFormatError(f"Invalid region target {target!r}") from e
            names = [cell_to_name[cell] for cell in indices]
            expression = PuzzleConverter.region_expression(names, region_type, target)

            for node in names:
                if node in expressions:
                    raise PuzzleFormatError(f"Cell of node {node} belongs to more than one region")
                expressions[node] = expression
                partners[node] = (None if region_type == 'empty'
                                  else tuple(other for other in names if other != node))

        nodes = [
            Node(name=cell_to_name[cell],
                 peers=tuple(peers[cell_to_name[cell]]),
                 expression=expressions[cell_to_name[cell]],
                 partners=partners[cell_to_name[cell]])
            for cell in cells
        ]

        try:
            dominoes = [Domino(int(a), int(b)) for a, b in raw_dominoes]
        except (TypeError, ValueError) as e:
            raise PuzzleFormatError(f"Malformed domino list: {e}") from e

        return Puzzle(nodes, dominoes, min_pip, max_pip, name=name,
                      cell_mapping={node: cell for cell, node in cell_to_name.items()})

    @staticmethod
    def convert_file(input_path: Union[str, Path], output_path: Union[str, Path],
                     difficulty: Optional[str] = None) -> Puzzle:
        """Convert a region description file into a node-graph puzzle file"""
        with open(input_path, 'r') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise PuzzleFormatError(f"Invalid JSON in {input_path}: {e}") from e

        puzzle = PuzzleConverter.from_regions(data, difficulty)
        puzzle.save(output_path)
        return puzzle

    @staticmethod
    def to_string(puzzle: Puzzle, solution: Optional[Solution] = None) -> str:
        """
        Convert puzzle to string representation.

        With a cell mapping the cells are drawn on their grid: node names, or
        pip values when a solution is given, with ``-`` and ``|`` joining the
        two halves of each placed domino. Without a mapping one line per node
        is returned.

        Args:
            puzzle: The puzzle to convert
            solution: Optional solution whose values are shown

        Returns:
            String representation of the puzzle
        """
        values = solution.assignment if solution else {}

        if not puzzle.cell_mapping:
            lines = []
            for node in puzzle.nodes:
                shown = f"={values[node.name]}" if node.name in values else ""
                lines.append(f"{node.name}{shown}  [{node.expression}]")
            return '\n'.join(lines)

        width = max(len(n) for n in puzzle.node_names)
        rows = max(r for r, _ in puzzle.cell_mapping.values()) + 1
        cols = max(c for _, c in puzzle.cell_mapping.values()) + 1

        grid = [[' ' * width for _ in range(cols * 2 - 1)] for _ in range(rows * 2 - 1)]

        for name, (row, col) in puzzle.cell_mapping.items():
            text = str(values[name]) if name in values else name
            grid[row * 2][col * 2] = text.rjust(width)

        if solution:
            for placement in solution.placements:
                if (placement.first not in puzzle.cell_mapping or
                        placement.second not in puzzle.cell_mapping):
                    continue
                r1, c1 = puzzle.cell_mapping[placement.first]
                r2, c2 = puzzle.cell_mapping[placement.second]
                if r1 == r2 and abs(c1 - c2) == 1:
                    grid[r1 * 2][min(c1, c2) * 2 + 1] = '-'.rjust(width)
                elif c1 == c2 and abs(r1 - r2) == 1:
                    grid[min(r1, r2) * 2 + 1][c1 * 2] = '|'.rjust(width)

        return '\n'.join([''.join(row).rstrip() for row in grid])


def save_solution(puzzle: Puzzle, solutions: List[Solution], filepath: Union[str, Path]):
    """Write solutions to a JSON file alongside the puzzle they solve"""
    data = {
        'puzzle': puzzle.to_dict(),
        'solutions': [s.to_dict() for s in solutions]
    }
    with open(filepath, 'w') as f:
        json.dump(data, f, indent=2)


def calculate_solution_stats(puzzle: Puzzle, solution: Solution) -> Dict[str, Any]:
    """Calculate statistics for a solved puzzle"""
    used = {p.domino_index for p in solution.placements}
    stats = {
        'num_placements': len(solution.placements),
        'dominoes_used': len(used),
        'dominoes_unused': len(puzzle.dominoes) - len(used),
        'doubles_used': sum(1 for i in used if puzzle.dominoes[i].is_double()),
        'total_pips': sum(solution.assignment.values()),
    }

    if solution.assignment:
        values = list(solution.assignment.values())
        stats['max_pip'] = max(values)
        stats['min_pip'] = min(values)
        stats['avg_pip'] = sum(values) / len(values)
    else:
        stats['max_pip'] = 0
        stats['min_pip'] = 0
        stats['avg_pip'] = 0

    # Orientation counts need grid positions
    if puzzle.cell_mapping:
        horizontal = vertical = 0
        for placement in solution.placements:
            r1, _ = puzzle.cell_mapping.get(placement.first, (None, None))
            r2, _ = puzzle.cell_mapping.get(placement.second, (None, None))
            if r1 is None or r2 is None:
                continue
            if r1 == r2:
                horizontal += 1
            else:
                vertical += 1
        stats['horizontal_dominoes'] = horizontal
        stats['vertical_dominoes'] = vertical

    return stats
