import numpy as np
import pytest

from pips_solver.solvers.dlx import DancingLinks


# Knuth's example from "Dancing Links": the unique cover is rows 0, 3, 4
KNUTH_MATRIX = [
    [0, 0, 1, 0, 1, 1, 0],
    [1, 0, 0, 1, 0, 0, 1],
    [0, 1, 1, 0, 0, 1, 0],
    [1, 0, 0, 1, 0, 0, 0],
    [0, 1, 0, 0, 0, 0, 1],
    [0, 0, 0, 1, 1, 0, 1],
]


def test_single_known_solution():
    assert DancingLinks(KNUTH_MATRIX).solve() == [[0, 3, 4]]


def test_solve_first():
    assert DancingLinks(KNUTH_MATRIX).solve_first() == [0, 3, 4]


def test_no_cover():
    matrix = [
        [1, 1, 0],
        [0, 1, 1],
    ]
    dlx = DancingLinks(matrix)
    assert dlx.solve() == []
    assert dlx.solve_first() is None


def test_column_without_rows_has_no_cover():
    assert DancingLinks([[1, 0], [1, 0]]).solve() == []


def test_multiple_solutions():
    matrix = [
        [1, 0],
        [0, 1],
        [1, 1],
    ]
    solutions = DancingLinks(matrix).solve()
    assert sorted(solutions) == [[0, 1], [2]]


def test_empty_primary_set_has_the_empty_cover():
    assert DancingLinks(np.zeros((0, 0), dtype=int)).solve() == [[]]


@pytest.mark.parametrize("col", range(7))
def test_cover_uncover_restores_structure(col):
    dlx = DancingLinks(KNUTH_MATRIX)
    before = dlx.snapshot()

    dlx.cover(col)
    assert dlx.snapshot() != before
    dlx.uncover(col)

    assert dlx.snapshot() == before


def test_nested_cover_uncover_in_lifo_order():
    dlx = DancingLinks(KNUTH_MATRIX)
    before = dlx.snapshot()

    for col in (0, 3, 6):
        dlx.cover(col)
    for col in (6, 3, 0):
        dlx.uncover(col)

    assert dlx.snapshot() == before


def test_search_leaves_structure_intact():
    dlx = DancingLinks(KNUTH_MATRIX)
    before = dlx.snapshot()
    dlx.solve()
    assert dlx.snapshot() == before
    dlx.solve_first()
    assert dlx.snapshot() == before


def test_abandoned_generator_unwinds():
    matrix = [
        [1, 0],
        [0, 1],
        [1, 1],
    ]
    dlx = DancingLinks(matrix)
    before = dlx.snapshot()

    solutions = dlx.iter_solutions()
    next(solutions)
    solutions.close()

    assert dlx.snapshot() == before


def test_secondary_columns_are_used_at_most_once():
    # Column 2 is secondary: rows 0 and 1 both touch it, so they cannot be combined
    matrix = [
        [1, 0, 1],
        [0, 1, 1],
        [0, 1, 0],
        [1, 0, 0],
    ]
    solutions = DancingLinks(matrix, primary_columns=2).solve()
    assert sorted(solutions) == [[0, 2], [1, 3], [2, 3]]


def test_all_primary_requires_every_column():
    matrix = [
        [1, 0, 1],
        [0, 1, 1],
        [0, 1, 0],
        [1, 0, 0],
    ]
    assert sorted(DancingLinks(matrix).solve()) == [[0, 2], [1, 3]]


def test_step_callback_can_stop_search():
    class Stop(Exception):
        pass

    steps = []

    def callback():
        steps.append(1)
        if len(steps) > 2:
            raise Stop()

    dlx = DancingLinks(KNUTH_MATRIX, step_callback=callback)
    before = dlx.snapshot()
    with pytest.raises(Stop):
        dlx.solve()
    assert dlx.snapshot() == before


def test_column_choice_prefers_fewest_rows():
    dlx = DancingLinks(KNUTH_MATRIX)
    # Column sizes are 2,2,2,3,2,2,3; ties go to the leftmost (header id 1 is column 0)
    assert dlx._choose_column() == 1


def test_invalid_arguments():
    with pytest.raises(ValueError):
        DancingLinks([1, 0, 1])
    with pytest.raises(ValueError):
        DancingLinks([[1, 0]], primary_columns=3)
