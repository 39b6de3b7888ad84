"""
Static visualization for Pips puzzles.
"""

import matplotlib.pyplot as plt
import matplotlib.patches as patches
import networkx as nx
from typing import Optional, Tuple, List, Dict
from pathlib import Path

from ..core.puzzle import Puzzle, Solution
from ..core.validator import PuzzleValidator
from ..config import VIZ_DPI, VIZ_FIGSIZE


class PuzzleVisualizer:
    """Visualize Pips puzzles and their solutions"""

    def __init__(self, figsize: Tuple[int, int] = VIZ_FIGSIZE, dpi: int = VIZ_DPI):
        """
        Initialize visualizer.

        Args:
            figsize: Figure size in inches
            dpi: Dots per inch for saved images
        """
        self.figsize = figsize
        self.dpi = dpi

        # Visual parameters
        self.cell_size = 0.9
        self.domino_margin = 0.08
        self.domino_color = '#FDFDFD'
        self.domino_edge_color = '#424874'
        self.value_color = '#222222'
        self.label_color = '#777777'
        self.edge_color = '#C8C8C8'
        self.background_color = '#F7F7F7'
        self.region_colors = ['#F4A261', '#2A9D8F', '#E9C46A', '#8AB17D',
                              '#E76F51', '#7B9ACC', '#C77DFF', '#B5838D']

    def visualize(self, puzzle: Puzzle,
                  solution: Optional[Solution] = None,
                  title: Optional[str] = None,
                  save_path: Optional[Path] = None,
                  show_plot: bool = True) -> plt.Figure:
        """
        Create visualization of a puzzle.

        Args:
            puzzle: The puzzle to visualize
            solution: Optional solution; its dominoes and pip values are drawn
            title: Optional title for the plot
            save_path: Optional path to save the image
            show_plot: Whether to display the plot

        Returns:
            The matplotlib figure
        """
        fig, ax = plt.subplots(figsize=self.figsize)
        fig.patch.set_facecolor(self.background_color)
        self._draw(ax, puzzle, solution, title)

        # Save if requested
        if save_path:
            save_path = Path(save_path)
            save_path.parent.mkdir(parents=True, exist_ok=True)
            fig.savefig(save_path, dpi=self.dpi, bbox_inches='tight',
                        facecolor=self.background_color)

        # Show plot if requested
        if show_plot:
            plt.show()
        else:
            plt.close(fig)

        return fig

    def create_comparison_plot(self, puzzle: Puzzle, solutions: List[Solution],
                               titles: Optional[List[str]] = None,
                               save_path: Optional[Path] = None) -> plt.Figure:
        """Draw several solutions of the same puzzle side by side"""
        count = max(len(solutions), 1)
        fig, axes = plt.subplots(1, count, figsize=(self.figsize[0] * count / 2, self.figsize[1] / 2),
                                 squeeze=False)
        fig.patch.set_facecolor(self.background_color)

        for i, ax in enumerate(axes[0]):
            solution = solutions[i] if i < len(solutions) else None
            title = titles[i] if titles and i < len(titles) else f"Solution {i + 1}"
            self._draw(ax, puzzle, solution, title)

        plt.tight_layout()

        if save_path:
            save_path = Path(save_path)
            save_path.parent.mkdir(parents=True, exist_ok=True)
            fig.savefig(save_path, dpi=self.dpi, bbox_inches='tight',
                        facecolor=self.background_color)
        plt.close(fig)

        return fig

    def _draw(self, ax, puzzle: Puzzle, solution: Optional[Solution], title: Optional[str]):
        ax.set_facecolor(self.background_color)
        positions = self._positions(puzzle)

        xs = [x for x, _ in positions.values()]
        ys = [y for _, y in positions.values()]
        ax.set_xlim(min(xs) - 1, max(xs) + 1)
        ax.set_ylim(min(ys) - 1, max(ys) + 1)
        ax.set_aspect('equal')

        # Invert y-axis so row 0 is at the top
        ax.invert_yaxis()

        if not puzzle.cell_mapping:
            self._draw_peer_edges(ax, puzzle, positions)

        self._draw_cells(ax, puzzle, positions)

        if solution:
            self._draw_dominoes(ax, solution, positions)

        self._draw_values(ax, puzzle, solution, positions)

        # Remove axes
        ax.set_xticks([])
        ax.set_yticks([])
        for spine in ax.spines.values():
            spine.set_visible(False)

        if title:
            ax.set_title(title, fontsize=14, pad=12)

    def _positions(self, puzzle: Puzzle) -> Dict[str, Tuple[float, float]]:
        """(x, y) of each node: grid cells when known, else a graph layout"""
        if puzzle.cell_mapping and all(name in puzzle.cell_mapping for name in puzzle.node_names):
            return {name: (float(col), float(row)) for name, (row, col) in puzzle.cell_mapping.items()
                    if puzzle.has_node(name)}

        graph = PuzzleValidator.build_graph(puzzle)
        layout = nx.spring_layout(graph, seed=42) if len(graph) > 1 else {n: (0.0, 0.0) for n in graph}
        scale = max(len(graph) ** 0.5, 1.0)
        return {name: (float(x) * scale, float(y) * scale) for name, (x, y) in layout.items()}

    def _region_colors(self, puzzle: Puzzle) -> Dict[str, str]:
        """One colour per distinct expression; unconstrained nodes stay blank"""
        colors = {}
        palette = {}
        for node in puzzle.nodes:
            expression = node.expression.strip()
            if expression in ("", "ANY"):
                colors[node.name] = self.domino_color
                continue
            if expression not in palette:
                palette[expression] = self.region_colors[len(palette) % len(self.region_colors)]
            colors[node.name] = palette[expression]
        return colors

    def _draw_peer_edges(self, ax, puzzle: Puzzle, positions):
        for first, second in puzzle.edges():
            (x1, y1), (x2, y2) = positions[first], positions[second]
            ax.plot([x1, x2], [y1, y2], color=self.edge_color, linewidth=1, zorder=1)

    def _draw_cells(self, ax, puzzle: Puzzle, positions):
        colors = self._region_colors(puzzle)
        half = self.cell_size / 2
        for name, (x, y) in positions.items():
            cell = patches.Rectangle((x - half, y - half), self.cell_size, self.cell_size,
                                     facecolor=colors[name], edgecolor='white',
                                     alpha=0.6, zorder=2)
            ax.add_patch(cell)

    def _draw_dominoes(self, ax, solution: Solution, positions):
        half = 0.5 - self.domino_margin
        for placement in solution.placements:
            (x1, y1), (x2, y2) = positions[placement.first], positions[placement.second]
            left, right = min(x1, x2) - half, max(x1, x2) + half
            top, bottom = min(y1, y2) - half, max(y1, y2) + half
            domino = patches.FancyBboxPatch(
                (left, top), right - left, bottom - top,
                boxstyle="round,pad=0,rounding_size=0.15",
                facecolor=self.domino_color, edgecolor=self.domino_edge_color,
                linewidth=2, alpha=0.85, zorder=3)
            ax.add_patch(domino)

            # Divider between the two halves
            mx, my = (x1 + x2) / 2, (y1 + y2) / 2
            if y1 == y2:
                ax.plot([mx, mx], [my - half * 0.7, my + half * 0.7],
                        color=self.domino_edge_color, linewidth=1, zorder=4)
            else:
                ax.plot([mx - half * 0.7, mx + half * 0.7], [my, my],
                        color=self.domino_edge_color, linewidth=1, zorder=4)

    def _draw_values(self, ax, puzzle: Puzzle, solution: Optional[Solution], positions):
        values = solution.assignment if solution else {}
        for name, (x, y) in positions.items():
            ax.text(x - 0.38, y - 0.32, name, ha='left', va='center',
                    fontsize=7, color=self.label_color, zorder=5)
            if name in values:
                ax.text(x, y, str(values[name]), ha='center', va='center',
                        fontsize=16, fontweight='bold', color=self.value_color, zorder=5)
            else:
                ax.text(x, y + 0.15, puzzle.expression(name), ha='center', va='center',
                        fontsize=6, color=self.value_color, zorder=5)
