from pathlib import Path

import pytest

from pips_solver.core.puzzle import Puzzle, Node, Domino, Placement, Solution


DATA_DIR = Path(__file__).parent.parent / "data"


def make_puzzle(layout, dominoes, **kwargs):
    """Build a puzzle from {name: (peers, expression)}"""
    nodes = [Node(name, tuple(peers), expression) for name, (peers, expression) in layout.items()]
    return Puzzle(nodes, [Domino(a, b) for a, b in dominoes], **kwargs)


def open_grid(rows, cols, dominoes):
    """rows x cols grid of unconstrained cells named A, B, C... row by row"""
    names = {(r, c): chr(ord("A") + r * cols + c) for r in range(rows) for c in range(cols)}
    layout = {}
    for (r, c), name in names.items():
        peers = [names[cell] for cell in ((r - 1, c), (r + 1, c), (r, c - 1), (r, c + 1)) if cell in names]
        layout[name] = (peers, "ANY")
    return make_puzzle(layout, dominoes, cell_mapping={name: cell for cell, name in names.items()})


def grid_solution(assignment):
    """Solution of the grid fixture using the A-B, D-E, C-F tiling"""
    a, b, d, e = assignment['A'], assignment['B'], assignment['D'], assignment['E']
    ab = 0 if {a, b} == {1, 2} else 2
    de = 0 if {d, e} == {1, 2} else 2
    return Solution(dict(assignment), [
        Placement('A', 'B', a, b, ab),
        Placement('D', 'E', d, e, de),
        Placement('C', 'F', assignment['C'], assignment['F'], 1),
    ])


@pytest.fixture
def grid_puzzle():
    """
    2x3 grid with exactly two solutions:

        A B C
        D E F
    """
    return make_puzzle(
        {
            'A': (['D', 'B'], 'A=D'),
            'B': (['E', 'A', 'C'], 'B+E=6'),
            'C': (['F', 'B'], 'C>4'),
            'D': (['A', 'E'], 'A=D'),
            'E': (['B', 'D', 'F'], 'B+E=6'),
            'F': (['C', 'E'], 'F=0'),
        },
        [(1, 2), (5, 0), (1, 4)],
        name='grid',
        cell_mapping={'A': (0, 0), 'B': (0, 1), 'C': (0, 2),
                      'D': (1, 0), 'E': (1, 1), 'F': (1, 2)},
    )


@pytest.fixture
def grid_solutions():
    return [
        {'A': 1, 'B': 2, 'C': 5, 'D': 1, 'E': 4, 'F': 0},
        {'A': 1, 'B': 4, 'C': 5, 'D': 1, 'E': 2, 'F': 0},
    ]


@pytest.fixture
def pair_puzzle():
    return make_puzzle(
        {'A': (['B'], 'A+B=7'), 'B': (['A'], 'A+B=7')},
        [(3, 4)],
    )


@pytest.fixture
def impossible_pair_puzzle():
    return make_puzzle(
        {'A': (['B'], 'A+B=12'), 'B': (['A'], 'A+B=12')},
        [(3, 4)],
    )


@pytest.fixture
def sample_puzzle_file():
    return DATA_DIR / "puzzles" / "sample.json"


@pytest.fixture
def sample_regions_file():
    return DATA_DIR / "regions" / "sample_regions.json"
