from dataclasses import fields

import pytest

from pips_solver.solvers import (
    BacktrackingSolver, BacktrackingSolverConfig, SolveStatus, get_solver, SolverConfig
)
from pips_solver.core.validator import PuzzleValidator

from conftest import make_puzzle, open_grid


def solve(puzzle, **kwargs):
    return BacktrackingSolver(BacktrackingSolverConfig(**kwargs)).solve(puzzle)


def test_visitation_order(grid_puzzle):
    # C and F have no partners; the rest have one each and keep node order
    assert BacktrackingSolver().visitation_order(grid_puzzle) == ["C", "F", "A", "B", "D", "E"]


def test_unconstrained_nodes_go_last():
    puzzle = make_puzzle(
        {"A": (["B"], "ANY"), "B": (["A", "C"], "B+C=4"), "C": (["B", "D"], "B+C=4"),
         "D": (["C"], "D>1")},
        [(1, 3), (2, 5)],
    )
    assert BacktrackingSolver().visitation_order(puzzle) == ["D", "B", "C", "A"]


def test_first_solution(grid_puzzle, grid_solutions):
    result = solve(grid_puzzle)

    assert result.status is SolveStatus.SOLVED
    assert result.success
    assert len(result.solutions) == 1
    assert result.solution.assignment == grid_solutions[1]
    assert result.iterations > 0
    assert result.stats['visitation_order'][0] == "C"


def test_enumerate_all(grid_puzzle, grid_solutions):
    result = solve(grid_puzzle, enumerate_all=True)

    assert result.status is SolveStatus.SOLVED
    found = [s.assignment for s in result.solutions]
    assert len(found) == 2
    for expected in grid_solutions:
        assert expected in found


def test_solutions_are_valid_tilings(grid_puzzle):
    result = solve(grid_puzzle, enumerate_all=True)
    for solution in result.solutions:
        assert set(solution.assignment) == set(grid_puzzle.node_names)
        assert PuzzleValidator.validate_solution(grid_puzzle, solution)


def test_deterministic(grid_puzzle):
    first = solve(grid_puzzle, enumerate_all=True)
    second = solve(grid_puzzle, enumerate_all=True)
    assert [s.assignment for s in first.solutions] == [s.assignment for s in second.solutions]


def test_pair(pair_puzzle):
    result = solve(pair_puzzle)
    assert result.solution.assignment == {"A": 3, "B": 4}

    everything = solve(pair_puzzle, enumerate_all=True)
    assert sorted(s.assignment["A"] for s in everything.solutions) == [3, 4]


def test_no_solution(impossible_pair_puzzle):
    result = solve(impossible_pair_puzzle)
    assert result.status is SolveStatus.NO_SOLUTION
    assert result.solution is None
    assert result.solutions == []
    assert not result.success


def test_invalid_puzzle():
    puzzle = make_puzzle({"A": ([], "ANY")}, [(1, 1)])
    result = solve(puzzle)
    assert result.status is SolveStatus.INVALID_PUZZLE
    assert "Odd number of nodes" in result.message


def test_step_limit_aborts(grid_puzzle):
    result = solve(grid_puzzle, max_iterations=1)
    assert result.status is SolveStatus.ABORTED
    assert result.solutions == []


def test_depth_limit_aborts(grid_puzzle):
    result = solve(grid_puzzle, max_depth=1)
    assert result.status is SolveStatus.ABORTED
    assert "depth" in result.message


def test_aborted_search_keeps_solutions_found(grid_puzzle):
    # Enough steps to reach the first solution but not to finish enumerating
    first = solve(grid_puzzle)
    result = solve(grid_puzzle, enumerate_all=True, max_iterations=first.iterations)

    assert result.status is SolveStatus.ABORTED
    assert len(result.solutions) == 1
    assert result.solution is result.solutions[0]


OPEN_GRID_TILES = [(0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3), (4, 5), (5, 6)]


def test_time_limit_aborts_and_keeps_solutions():
    puzzle = open_grid(4, 4, OPEN_GRID_TILES)
    result = solve(puzzle, enumerate_all=True, time_limit=0.2)

    assert result.status is SolveStatus.ABORTED
    assert "Time limit" in result.message
    assert result.solutions
    assert result.solution is result.solutions[0]
    for solution in result.solutions[:20]:
        assert PuzzleValidator.validate_solution(puzzle, solution)


def test_no_time_limit_runs_until_step_limit():
    puzzle = open_grid(4, 4, OPEN_GRID_TILES)
    result = solve(puzzle, enumerate_all=True, time_limit=None, max_iterations=500)

    assert result.status is SolveStatus.ABORTED
    assert "Maximum iterations" in result.message


def test_untileable_shapes_are_invalid():
    # Star: every domino must cover the centre
    star = make_puzzle(
        {
            "A": (["B", "C", "D"], "ANY"),
            "B": (["A"], "ANY"),
            "C": (["A"], "ANY"),
            "D": (["A"], "ANY"),
        },
        [(1, 2), (3, 4)],
    )
    result = solve(star)
    assert result.status is SolveStatus.INVALID_PUZZLE
    assert "perfect matching" in result.message

    short = open_grid(2, 2, [(1, 2)])
    result = solve(short)
    assert result.status is SolveStatus.INVALID_PUZZLE
    assert "Not enough dominoes" in result.message


def test_duplicate_tiles_do_not_duplicate_solutions():
    puzzle = make_puzzle(
        {"A": (["B"], "A+B=3"), "B": (["A"], "A+B=3")},
        [(1, 2), (2, 1)],
    )
    result = solve(puzzle, enumerate_all=True)
    assert sorted(s.assignment["A"] for s in result.solutions) == [1, 2]

    unskipped = solve(puzzle, enumerate_all=True, skip_duplicate_tiles=False)
    assert len(unskipped.solutions) == 2


def test_spare_dominoes():
    puzzle = make_puzzle({"A": (["B"], "A+B=7"), "B": (["A"], "A+B=7")}, [(1, 2), (3, 4)])
    result = solve(puzzle)
    assert result.success
    assert result.solution.placements[0].domino_index == 1


def test_progress_callback(grid_puzzle):
    calls = []
    solver = BacktrackingSolver(BacktrackingSolverConfig(enumerate_all=True))
    solver.add_progress_callback(lambda iterations, stats: calls.append(stats['solutions']))
    solver.solve(grid_puzzle)
    assert calls == [1, 2]


def test_get_solver_converts_base_config():
    solver = get_solver("Backtracking", SolverConfig(enumerate_all=True, max_iterations=10))
    assert isinstance(solver, BacktrackingSolver)
    assert isinstance(solver.config, BacktrackingSolverConfig)
    assert solver.config.enumerate_all
    assert solver.config.max_iterations == 10
    assert solver.skip_duplicate_tiles


def test_get_solver_carries_every_base_field(tmp_path):
    base = SolverConfig(time_limit=5, max_iterations=10, max_depth=20, verbose=True,
                        log_file=tmp_path / "solve.log", enumerate_all=True, validate_solution=False)
    solver = get_solver("dlx", base)

    for f in fields(SolverConfig):
        assert getattr(solver.config, f.name) == getattr(base, f.name)
    assert not hasattr(solver.config, "extra_params")


def test_get_solver_unknown():
    with pytest.raises(ValueError):
        get_solver("simulated_annealing")
