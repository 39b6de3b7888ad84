"""
Solvers for Pips puzzles.
"""

from .base_solver import BaseSolver, SolverConfig, SolverResult, SolveStatus, SearchAborted
from .backtracking_solver import BacktrackingSolver, BacktrackingSolverConfig
from .exact_cover import ExactCoverBuilder, ExactCoverMatrix
from .dlx import DancingLinks
from .dlx_solver import DLXSolver, DLXSolverConfig

__all__ = [
    # Base classes
    'BaseSolver',
    'SolverConfig',
    'SolverResult',
    'SolveStatus',
    'SearchAborted',

    # Backtracking
    'BacktrackingSolver',
    'BacktrackingSolverConfig',

    # Exact cover
    'ExactCoverBuilder',
    'ExactCoverMatrix',
    'DancingLinks',
    'DLXSolver',
    'DLXSolverConfig',
]


# Solver registry for easy access
SOLVER_REGISTRY = {
    'backtracking': BacktrackingSolver,
    'dlx': DLXSolver,
}

# Config registry for each solver type
CONFIG_REGISTRY = {
    'backtracking': BacktrackingSolverConfig,
    'dlx': DLXSolverConfig,
}


def get_solver(name: str, config: SolverConfig = None) -> BaseSolver:
    """
    Get a solver by name.

    Args:
        name: Solver name (backtracking, dlx)
        config: Optional solver configuration. If None, will create appropriate default config.

    Returns:
        Solver instance

    Raises:
        ValueError: If solver name is not recognized
    """
    solver_class = SOLVER_REGISTRY.get(name.lower())
    if not solver_class:
        raise ValueError(f"Unknown solver: {name}. Available: {list(SOLVER_REGISTRY.keys())}")

    expected_config_class = CONFIG_REGISTRY.get(name.lower(), SolverConfig)
    if config is None:
        config = expected_config_class()
    elif type(config) == SolverConfig and expected_config_class != SolverConfig:
        # Transfer base config parameters to the solver-specific config
        config = expected_config_class(
            time_limit=config.time_limit,
            max_iterations=config.max_iterations,
            max_depth=config.max_depth,
            verbose=config.verbose,
            log_file=config.log_file,
            enumerate_all=config.enumerate_all,
            validate_solution=config.validate_solution
        )

    return solver_class(config)
