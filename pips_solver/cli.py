"""
Command line interface for the Pips solver.

Usage:
    pips-solver solve data/puzzles/sample.json --algorithm dlx --all
    pips-solver convert data/regions/sample_regions.json puzzle.json --difficulty hard
    pips-solver validate data/puzzles/sample.json
"""

import click
import sys
from pathlib import Path
import json

from .core.puzzle import Puzzle, PuzzleFormatError
from .core.validator import PuzzleValidator
from .core.utils import PuzzleConverter, setup_logger, save_solution, calculate_solution_stats
from .solvers import get_solver, SOLVER_REGISTRY, CONFIG_REGISTRY
from .config import DEFAULT_TIME_LIMIT, RESULTS_VIZ_DIR


def _load_puzzle(puzzle_file: str, index: int) -> Puzzle:
    try:
        return Puzzle.load(Path(puzzle_file), index=index)
    except (PuzzleFormatError, FileNotFoundError) as e:
        raise click.ClickException(f"Error loading puzzle: {e}")


@click.group()
@click.version_option(package_name='pips-solver')
def main():
    """Solve Pips domino placement puzzles."""


@main.command()
@click.argument('puzzle_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--algorithm', '-a', type=click.Choice(sorted(SOLVER_REGISTRY)),
              default='backtracking', help='Solving algorithm to use')
@click.option('--all', 'enumerate_all', is_flag=True,
              help='Find every solution instead of the first')
@click.option('--time-limit', '-t', type=float, default=DEFAULT_TIME_LIMIT,
              help='Time limit in seconds')
@click.option('--max-steps', type=int, default=None,
              help='Abort after this many search steps')
@click.option('--index', '-i', type=int, default=0,
              help='Which puzzle to solve when the file holds several')
@click.option('--visualize', '-v', is_flag=True,
              help='Draw the solution and save it as an image')
@click.option('--save-solution', '-s', 'solution_file', type=click.Path(dir_okay=False),
              help='Save solutions to a JSON file')
@click.option('--output-dir', '-o', type=click.Path(file_okay=False), default=str(RESULTS_VIZ_DIR),
              help='Output directory for visualizations')
@click.option('--verbose', is_flag=True, help='Enable verbose output')
def solve(puzzle_file, algorithm, enumerate_all, time_limit, max_steps, index,
          visualize, solution_file, output_dir, verbose):
    """Solve a Pips puzzle using the specified algorithm."""
    logger = setup_logger("PipsSolver", level="DEBUG" if verbose else "INFO")

    puzzle = _load_puzzle(puzzle_file, index)
    logger.info(f"Loaded puzzle from {puzzle_file}: {len(puzzle.nodes)} nodes, "
                f"{len(puzzle.dominoes)} dominoes")

    config = CONFIG_REGISTRY[algorithm](
        time_limit=time_limit,
        max_iterations=max_steps,
        verbose=verbose,
        enumerate_all=enumerate_all
    )
    solver = get_solver(algorithm, config)
    result = solver.solve(puzzle)

    # Display results
    click.echo("\n" + "=" * 50)
    click.echo(f"Algorithm: {algorithm}")
    click.echo(f"Status: {result.status.value.upper()}")
    click.echo(f"Time: {result.solve_time:.3f} seconds")
    click.echo(f"Iterations: {result.iterations}")
    click.echo(f"Solutions: {len(result.solutions)}")

    if result.message:
        click.echo(f"Message: {result.message}")

    if result.stats and verbose:
        click.echo(f"Additional stats: {json.dumps(result.stats, indent=2)}")

    click.echo("=" * 50 + "\n")

    for number, solution in enumerate(result.solutions, 1):
        click.echo(f"Solution {number}:")
        click.echo(PuzzleConverter.to_string(puzzle, solution))
        if verbose:
            click.echo(f"Stats: {calculate_solution_stats(puzzle, solution)}")
        click.echo("")

    if not result.solutions:
        click.echo("No valid solution found.")

    if solution_file and result.solutions:
        solution_path = Path(solution_file)
        solution_path.parent.mkdir(parents=True, exist_ok=True)
        save_solution(puzzle, result.solutions, solution_path)
        click.echo(f"Solutions saved to {solution_path}")

    if visualize and result.solutions:
        # Imported here so the other commands never load matplotlib
        from .visualization.static_viz import PuzzleVisualizer

        output_path = Path(output_dir)
        viz = PuzzleVisualizer()
        stem = Path(puzzle_file).stem
        image = output_path / f"{stem}_{algorithm}.png"
        viz.visualize(puzzle, result.solution,
                      title=f"Solution by {algorithm} ({result.solve_time:.2f}s)",
                      save_path=image, show_plot=False)
        if len(result.solutions) > 1:
            viz.create_comparison_plot(puzzle, result.solutions,
                                       save_path=output_path / f"{stem}_{algorithm}_all.png")
        click.echo(f"Visualizations saved to {output_path}")

    if not result.success:
        sys.exit(1)


@main.command()
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False))
@click.argument('output_file', type=click.Path(dir_okay=False))
@click.option('--difficulty', '-d', type=str, default=None,
              help='Key of the puzzle to convert when the file holds several (e.g. hard)')
def convert(input_file, output_file, difficulty):
    """Convert a region description into a node-graph puzzle file."""
    try:
        puzzle = PuzzleConverter.convert_file(input_file, output_file, difficulty)
    except PuzzleFormatError as e:
        raise click.ClickException(f"Conversion failed: {e}")

    click.echo(f"Converted {len(puzzle.nodes)} cells into {output_file}")
    click.echo(PuzzleConverter.to_string(puzzle))


@main.command()
@click.argument('puzzle_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--index', '-i', type=int, default=0,
              help='Which puzzle to validate when the file holds several')
def validate(puzzle_file, index):
    """Check a puzzle's structure and print its statistics."""
    puzzle = _load_puzzle(puzzle_file, index)
    validation = PuzzleValidator.validate_puzzle_structure(puzzle)

    for warning in validation.warnings:
        click.echo(f"Warning: {warning}")

    if not validation:
        for error in validation.errors:
            click.echo(f"Error: {error}")
        click.echo("✗ Puzzle is invalid!")
        sys.exit(1)

    click.echo("✓ Puzzle is valid!")
    stats = PuzzleValidator.get_puzzle_statistics(puzzle)
    click.echo(json.dumps(stats, indent=2, default=str))


if __name__ == '__main__':
    main()
