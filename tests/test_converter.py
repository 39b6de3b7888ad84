import json

import pytest

from pips_solver.core.puzzle import Puzzle, PuzzleFormatError
from pips_solver.core.utils import PuzzleConverter, save_solution, calculate_solution_stats
from pips_solver.core.validator import PuzzleValidator
from pips_solver.solvers import get_solver, SolverConfig

from conftest import grid_solution


@pytest.fixture
def region_data(sample_regions_file):
    with open(sample_regions_file) as f:
        return json.load(f)


@pytest.mark.parametrize("index,name", [(0, "A"), (25, "Z"), (26, "AA"), (27, "AB"), (701, "ZZ"), (702, "AAA")])
def test_node_name(index, name):
    assert PuzzleConverter.node_name(index) == name


@pytest.mark.parametrize("names,region_type,target,expected", [
    (["A", "B"], "sum", 7, "A+B=7"),
    (["A", "B"], "less", 4, "A+B<4"),
    (["A"], "greater", 4, "A>4"),
    (["A", "B", "C"], "equals", None, "A=B=C"),
    (["A"], "equals", None, "ANY"),
    (["A", "B"], "empty", None, "ANY"),
    (["A", "B"], "product", 6, "A+B=6"),
])
def test_region_expression(names, region_type, target, expected):
    assert PuzzleConverter.region_expression(names, region_type, target) == expected


def test_region_needs_target():
    with pytest.raises(PuzzleFormatError):
        PuzzleConverter.region_expression(["A", "B"], "sum", None)


class TestFromRegions:

    def test_nodes_and_expressions(self, region_data):
        puzzle = PuzzleConverter.from_regions(region_data)

        assert puzzle.name == "hard"
        assert puzzle.node_names == ["A", "B", "C", "D", "E", "F", "G", "H"]
        assert puzzle.expression("A") == "A+E=7"
        assert puzzle.expression("C") == "B=C"
        assert puzzle.expression("D") == "D>4"
        assert puzzle.expression("H") == "F+G+H=6"
        assert puzzle.partners("G") == ("F", "H")
        assert puzzle.partners("D") == ()
        assert len(puzzle.dominoes) == 4

    def test_grid_adjacency(self, region_data):
        puzzle = PuzzleConverter.from_regions(region_data, difficulty="hard")

        assert puzzle.peers("A") == ("E", "B")
        assert puzzle.peers("F") == ("B", "E", "G")
        assert not puzzle.are_adjacent("A", "F")
        assert puzzle.cell_mapping["H"] == (1, 3)

    def test_converted_puzzle_is_valid_and_solvable(self, region_data):
        puzzle = PuzzleConverter.from_regions(region_data)
        assert PuzzleValidator.validate_puzzle_structure(puzzle)

        for algorithm in ("backtracking", "dlx"):
            result = get_solver(algorithm, SolverConfig(enumerate_all=True)).solve(puzzle)
            assert result.success
            for solution in result.solutions:
                assert PuzzleValidator.validate_solution(puzzle, solution)
                assert solution.assignment["D"] > 4

    def test_unknown_difficulty(self, region_data):
        with pytest.raises(PuzzleFormatError):
            PuzzleConverter.from_regions(region_data, difficulty="easy")

    def test_ambiguous_difficulty(self, region_data):
        data = {"easy": region_data["hard"], "hard": region_data["hard"]}
        with pytest.raises(PuzzleFormatError):
            PuzzleConverter.from_regions(data)

    def test_overlapping_regions(self):
        data = {
            "dominoes": [[1, 2]],
            "regions": [
                {"indices": [[0, 0], [0, 1]], "type": "sum", "target": 3},
                {"indices": [[0, 1]], "type": "less", "target": 3},
            ],
        }
        with pytest.raises(PuzzleFormatError):
            PuzzleConverter.from_regions(data)

    def test_malformed_regions(self):
        with pytest.raises(PuzzleFormatError):
            PuzzleConverter.from_regions({"regions": [{"type": "sum"}], "dominoes": []})


def test_convert_file(sample_regions_file, tmp_path):
    output = tmp_path / "converted.json"
    puzzle = PuzzleConverter.convert_file(sample_regions_file, output, "hard")

    loaded = Puzzle.load(output)
    assert loaded.node_names == puzzle.node_names
    assert loaded.nodes == puzzle.nodes
    assert loaded.cell_mapping == puzzle.cell_mapping


def test_to_string_grid(grid_puzzle, grid_solutions):
    assert PuzzleConverter.to_string(grid_puzzle) == "A B C\n\nD E F"

    solution = grid_solution(grid_solutions[0])
    assert PuzzleConverter.to_string(grid_puzzle, solution) == "1-2 5\n    |\n1-4 0"


def test_to_string_without_mapping(pair_puzzle):
    assert PuzzleConverter.to_string(pair_puzzle) == "A  [A+B=7]\nB  [A+B=7]"


def test_solution_stats(grid_puzzle, grid_solutions):
    stats = calculate_solution_stats(grid_puzzle, grid_solution(grid_solutions[0]))

    assert stats['num_placements'] == 3
    assert stats['dominoes_unused'] == 0
    assert stats['total_pips'] == 13
    assert (stats['min_pip'], stats['max_pip']) == (0, 5)
    assert stats['horizontal_dominoes'] == 2
    assert stats['vertical_dominoes'] == 1


def test_save_solution(grid_puzzle, grid_solutions, tmp_path):
    path = tmp_path / "solutions.json"
    save_solution(grid_puzzle, [grid_solution(a) for a in grid_solutions], path)

    with open(path) as f:
        data = json.load(f)
    assert data['puzzle']['no_of_nodes'] == 6
    assert [s['assignment'] for s in data['solutions']] == grid_solutions
