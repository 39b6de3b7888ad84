"""
Core data structures for Pips puzzles.
"""

from dataclasses import dataclass, field
from typing import List, Tuple, Optional, Dict, Iterator, Union, FrozenSet
import json
from pathlib import Path

from .expression import ExpressionEvaluator
from ..config import MIN_PIP, MAX_PIP


class PuzzleFormatError(ValueError):
    """Raised when a puzzle file or dictionary is malformed"""


@dataclass(frozen=True)
class Node:
    """A puzzle cell with its adjacent peers and constraint expression"""
    name: str
    peers: Tuple[str, ...] = ()
    expression: str = "ANY"
    partners: Optional[Tuple[str, ...]] = None  # nodes named in the expression, if given

    def __post_init__(self):
        # Accept lists from callers but store tuples
        object.__setattr__(self, 'peers', tuple(self.peers))
        if self.partners is not None:
            object.__setattr__(self, 'partners', tuple(self.partners))

    def __repr__(self):
        return f"Node({self.name}, peers={list(self.peers)}, expr={self.expression!r})"


@dataclass(frozen=True, eq=False)
class Domino:
    """A domino tile; (2,5) and (5,2) are the same tile"""
    first: int
    second: int

    @property
    def pips(self) -> Tuple[int, int]:
        return (self.first, self.second)

    @property
    def key(self) -> Tuple[int, int]:
        """Orientation-independent identity"""
        return (min(self.first, self.second), max(self.first, self.second))

    def is_double(self) -> bool:
        return self.first == self.second

    def other(self, pip: int) -> int:
        """The pip on the opposite half from `pip`"""
        if pip == self.first:
            return self.second
        if pip == self.second:
            return self.first
        raise ValueError(f"{self} has no half with {pip} pips")

    def __eq__(self, other):
        if isinstance(other, Domino):
            return self.key == other.key
        return False

    def __hash__(self):
        return hash(self.key)

    def __repr__(self):
        return f"Domino({self.first},{self.second})"


@dataclass(frozen=True)
class Placement:
    """A domino instance laid across two adjacent nodes"""
    first: str
    second: str
    first_pip: int
    second_pip: int
    domino_index: int

    @property
    def nodes(self) -> Tuple[str, str]:
        return (self.first, self.second)

    def __repr__(self):
        return (f"Placement({self.first}={self.first_pip}, {self.second}={self.second_pip}, "
                f"domino#{self.domino_index})")


@dataclass
class Solution:
    """A total node -> pip assignment and the placements that produced it"""
    assignment: Dict[str, int]
    placements: List[Placement] = field(default_factory=list)

    def sorted_placements(self) -> List[Placement]:
        return sorted(self.placements, key=lambda p: (p.first, p.second))

    def tiling_key(self) -> FrozenSet:
        """Identity of the tiling, ignoring placement order and which identical tile was used"""
        return frozenset(
            frozenset(((p.first, p.first_pip), (p.second, p.second_pip)))
            for p in self.placements
        )

    def to_dict(self) -> dict:
        return {
            'assignment': dict(sorted(self.assignment.items())),
            'placements': [
                {
                    'nodes': [p.first, p.second],
                    'pips': [p.first_pip, p.second_pip],
                    'domino_index': p.domino_index
                }
                for p in self.sorted_placements()
            ]
        }

    def __repr__(self):
        return f"Solution({dict(sorted(self.assignment.items()))})"


class DominoPool:
    """
    Dominoes still available along one search branch.

    Instances are referred to by their index in the puzzle inventory and are
    bucketed by pip value. `consume` returns a new pool and shares every
    bucket it does not touch with the parent.
    """

    def __init__(self, inventory: List[Domino],
                 by_pip: Optional[Dict[int, Tuple[int, ...]]] = None,
                 available: int = None):
        self.inventory = inventory
        if by_pip is None:
            buckets: Dict[int, List[int]] = {}
            for index, domino in enumerate(inventory):
                buckets.setdefault(domino.first, []).append(index)
                if not domino.is_double():
                    buckets.setdefault(domino.second, []).append(index)
            by_pip = {pip: tuple(indices) for pip, indices in buckets.items()}
            available = len(inventory)
        self._by_pip = by_pip
        self._available = available

    def candidates(self, pip: int) -> Tuple[int, ...]:
        """Instance indices of the remaining dominoes showing `pip`"""
        return self._by_pip.get(pip, ())

    def domino(self, index: int) -> Domino:
        return self.inventory[index]

    def consume(self, index: int) -> 'DominoPool':
        """Return a pool without instance `index`"""
        domino = self.inventory[index]
        if index not in self.candidates(domino.first):
            raise ValueError(f"Domino #{index} {domino} is not available")

        by_pip = dict(self._by_pip)
        for pip in set(domino.pips):
            by_pip[pip] = tuple(i for i in by_pip[pip] if i != index)
        return DominoPool(self.inventory, by_pip, self._available - 1)

    def remaining(self) -> List[int]:
        """Indices of every remaining instance, in inventory order"""
        indices = set()
        for bucket in self._by_pip.values():
            indices.update(bucket)
        return sorted(indices)

    def __len__(self):
        return self._available

    def __repr__(self):
        return f"DominoPool({[self.inventory[i] for i in self.remaining()]})"


class Puzzle:
    """A Pips puzzle: a graph of constrained nodes plus a domino inventory"""

    def __init__(self, nodes: List[Node], dominoes: List[Domino],
                 min_pip: int = MIN_PIP, max_pip: int = MAX_PIP,
                 name: Optional[str] = None,
                 cell_mapping: Optional[Dict[str, Tuple[int, int]]] = None):
        """
        Initialize a Pips puzzle.

        Args:
            nodes: Puzzle cells in a stable order
            dominoes: Domino inventory; duplicates are distinct instances
            min_pip: Smallest pip value on a domino half
            max_pip: Largest pip value on a domino half
            name: Optional puzzle name
            cell_mapping: Optional grid position (row, col) of each node
        """
        self.nodes: Tuple[Node, ...] = tuple(nodes)
        self.dominoes: Tuple[Domino, ...] = tuple(dominoes)
        self.min_pip = min_pip
        self.max_pip = max_pip
        self.name = name
        self.cell_mapping: Dict[str, Tuple[int, int]] = dict(cell_mapping or {})

        self._node_map: Dict[str, Node] = {}
        for node in self.nodes:
            if node.name in self._node_map:
                raise ValueError(f"Duplicate node name: {node.name}")
            self._node_map[node.name] = node

        # Precompute partner lists
        self._partners: Dict[str, Tuple[str, ...]] = {}
        self._compute_partners()

    def _compute_partners(self):
        """Nodes each expression depends on, other than the node itself"""
        for node in self.nodes:
            if node.partners is not None:
                self._partners[node.name] = node.partners
                continue
            names = ExpressionEvaluator.variables(node.expression)
            self._partners[node.name] = tuple(
                n.name for n in self.nodes if n.name in names and n.name != node.name
            )

    @property
    def node_names(self) -> List[str]:
        return [node.name for node in self.nodes]

    @property
    def pip_range(self) -> range:
        return range(self.min_pip, self.max_pip + 1)

    def node(self, name: str) -> Node:
        return self._node_map[name]

    def has_node(self, name: str) -> bool:
        return name in self._node_map

    def peers(self, name: str) -> Tuple[str, ...]:
        return self._node_map[name].peers

    def expression(self, name: str) -> str:
        return self._node_map[name].expression

    def partners(self, name: str) -> Tuple[str, ...]:
        return self._partners[name]

    def are_adjacent(self, first: str, second: str) -> bool:
        return second in self._node_map[first].peers

    def edges(self) -> Iterator[Tuple[str, str]]:
        """Each unordered adjacent pair once, in node then peer order"""
        seen = set()
        for node in self.nodes:
            for peer in node.peers:
                pair = frozenset((node.name, peer))
                if pair in seen or peer not in self._node_map:
                    continue
                seen.add(pair)
                yield node.name, peer

    def domino_pool(self) -> DominoPool:
        return DominoPool(list(self.dominoes))

    def to_dict(self) -> dict:
        """Convert puzzle to the node-graph dictionary format"""
        details = {}
        for node in self.nodes:
            detail = {
                'peers': list(node.peers),
                'expression': node.expression
            }
            if node.partners is not None:
                detail['partners_in_expression'] = list(node.partners)
            details[node.name] = detail

        data = {
            'no_of_nodes': len(self.nodes),
            'nodes': self.node_names,
            'node_details': details,
            'dominoes': [list(d.pips) for d in self.dominoes],
        }
        if self.name:
            data['name'] = self.name
        if (self.min_pip, self.max_pip) != (MIN_PIP, MAX_PIP):
            data['pip_range'] = [self.min_pip, self.max_pip]
        if self.cell_mapping:
            data['cell_mapping'] = {n: f"{r},{c}" for n, (r, c) in self.cell_mapping.items()}
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'Puzzle':
        """Create puzzle from the node-graph dictionary format"""
        try:
            details = data['node_details']
            order = data.get('nodes') or list(details.keys())

            nodes = []
            for name in order:
                detail = details[name]
                partners = detail.get('partners_in_expression')
                nodes.append(Node(
                    name=name,
                    peers=tuple(detail.get('peers', [])),
                    expression=detail.get('expression', 'ANY'),
                    partners=tuple(partners) if partners is not None else None
                ))

            dominoes = []
            for pips in data['dominoes']:
                if len(pips) != 2:
                    raise PuzzleFormatError(f"Domino must have two halves: {pips}")
                dominoes.append(Domino(int(pips[0]), int(pips[1])))

            min_pip, max_pip = data.get('pip_range', (MIN_PIP, MAX_PIP))

            cell_mapping = {}
            for name, cell in data.get('cell_mapping', {}).items():
                row, col = (int(part) for part in str(cell).split(','))
                cell_mapping[name] = (row, col)

        except (KeyError, TypeError) as e:
            raise PuzzleFormatError(f"Malformed puzzle data: missing or invalid {e}") from e
        except ValueError as e:
            if isinstance(e, PuzzleFormatError):
                raise
            raise PuzzleFormatError(f"Malformed puzzle data: {e}") from e

        try:
            return cls(nodes, dominoes, int(min_pip), int(max_pip),
                       name=data.get('name'), cell_mapping=cell_mapping)
        except ValueError as e:
            raise PuzzleFormatError(str(e)) from e

    def save(self, filepath: Union[str, Path]):
        """Save puzzle to JSON file"""
        with open(filepath, 'w') as f:
            json.dump({'pips_medium_puzzles': [self.to_dict()]}, f, indent=2)

    @classmethod
    def load(cls, filepath: Union[str, Path], index: int = 0) -> 'Puzzle':
        """
        Load a puzzle from a JSON file.

        The file holds either a single puzzle dictionary or a list of them
        under a ``*_puzzles`` key; `index` selects one from the list.
        """
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        with open(filepath, 'r') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise PuzzleFormatError(f"Invalid JSON in {filepath}: {e}") from e

        if not isinstance(data, dict):
            raise PuzzleFormatError(f"Expected a JSON object in {filepath}")

        if 'node_details' in data:
            return cls.from_dict(data)

        for key, value in data.items():
            if key.endswith('puzzles') and isinstance(value, list):
                if not 0 <= index < len(value):
                    raise PuzzleFormatError(
                        f"Puzzle index {index} out of range: {filepath} holds {len(value)} puzzles")
                return cls.from_dict(value[index])

        raise PuzzleFormatError(f"No puzzle found in {filepath}")

    def __str__(self):
        lines = [f"{node.name}: {node.expression}  peers={','.join(node.peers)}"
                 for node in self.nodes]
        lines.append(f"dominoes: {' '.join(f'{d.first}|{d.second}' for d in self.dominoes)}")
        return '\n'.join(lines)

    def __repr__(self):
        label = f"{self.name}, " if self.name else ""
        return f"Puzzle({label}nodes={len(self.nodes)}, dominoes={len(self.dominoes)})"
