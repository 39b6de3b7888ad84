import matplotlib
matplotlib.use("Agg")

from pips_solver.visualization import PuzzleVisualizer

from conftest import make_puzzle, grid_solution


def test_visualize_saves_image(grid_puzzle, grid_solutions, tmp_path):
    path = tmp_path / "nested" / "grid.png"
    fig = PuzzleVisualizer(dpi=50).visualize(
        grid_puzzle, grid_solution(grid_solutions[0]), title="grid", save_path=path, show_plot=False)

    assert path.exists()
    assert fig.axes[0].get_title() == "grid"


def test_visualize_without_solution(grid_puzzle, tmp_path):
    path = tmp_path / "puzzle.png"
    PuzzleVisualizer(dpi=50).visualize(grid_puzzle, save_path=path, show_plot=False)
    assert path.exists()


def test_layout_without_cell_mapping(pair_puzzle):
    positions = PuzzleVisualizer()._positions(pair_puzzle)
    assert set(positions) == {"A", "B"}


def test_region_colors_follow_expressions():
    puzzle = make_puzzle(
        {"A": (["B"], "A+B=5"), "B": (["A", "C"], "A+B=5"), "C": (["B", "D"], "ANY"),
         "D": (["C"], "D>2")},
        [(1, 4), (3, 3)],
    )
    colors = PuzzleVisualizer()._region_colors(puzzle)
    assert colors["A"] == colors["B"]
    assert colors["A"] != colors["D"]


def test_comparison_plot(grid_puzzle, grid_solutions, tmp_path):
    path = tmp_path / "all.png"
    solutions = [grid_solution(a) for a in grid_solutions]
    PuzzleVisualizer(dpi=50).create_comparison_plot(grid_puzzle, solutions, save_path=path)
    assert path.exists()
