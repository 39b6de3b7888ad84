"""
Dancing Links (DLX) for exact cover problems.

Knuth's Algorithm X over a toroidal doubly linked list. The links live in
parallel integer lists indexed by node id: id 0 is the root header, ids
``1..n`` are the column headers and the remaining ids are the 1-entries of
the matrix, added row by row.
"""

from typing import Callable, Iterator, List, Optional, Tuple

import numpy as np

ROOT = 0


class DancingLinks:
    """
    Exact cover solver.

    Columns at or beyond `primary_columns` are secondary: each must be
    covered at most once, and they are never chosen for branching.
    """

    def __init__(self, matrix, primary_columns: Optional[int] = None,
                 step_callback: Optional[Callable[[], None]] = None):
        """
        Args:
            matrix: 2-D array-like of 0/1 values
            primary_columns: Number of leading columns that must be covered
                exactly once; defaults to all of them
            step_callback: Called once per search step, may raise to stop
        """
        array = np.asarray(matrix)
        if array.ndim != 2:
            raise ValueError(f"Expected a 2-D matrix, got shape {array.shape}")

        self.num_rows, self.num_columns = array.shape
        if primary_columns is None:
            primary_columns = self.num_columns
        if not 0 <= primary_columns <= self.num_columns:
            raise ValueError(f"primary_columns must be within 0..{self.num_columns}")
        self.primary_columns = primary_columns
        self.step_callback = step_callback
        self.updates = 0

        count = self.num_columns + 1
        self.left: List[int] = list(range(count))
        self.right: List[int] = list(range(count))
        self.up: List[int] = list(range(count))
        self.down: List[int] = list(range(count))
        self.column: List[int] = list(range(count))
        self.row: List[int] = [-1] * count
        self.size: List[int] = [0] * count

        # Header ring holds the root and the primary columns only
        ring = [ROOT] + list(range(1, primary_columns + 1))
        for position, node in enumerate(ring):
            self.left[node] = ring[position - 1]
            self.right[node] = ring[(position + 1) % len(ring)]

        for r in range(self.num_rows):
            self._add_row(r, np.flatnonzero(array[r]))

    def _add_row(self, r: int, columns):
        first = None
        for c in columns:
            header = int(c) + 1
            node = len(self.left)
            self.left.append(node)
            self.right.append(node)
            self.column.append(header)
            self.row.append(r)

            # Append at the bottom of the column
            self.up.append(self.up[header])
            self.down.append(header)
            self.down[self.up[header]] = node
            self.up[header] = node
            self.size[header] += 1

            if first is None:
                first = node
            else:
                self.left[node] = self.left[first]
                self.right[node] = first
                self.right[self.left[first]] = node
                self.left[first] = node

    def cover(self, col: int):
        """Cover column `col` (zero-based)"""
        self._cover(col + 1)

    def uncover(self, col: int):
        """Undo `cover(col)`; covers must be undone in reverse order"""
        self._uncover(col + 1)

    def _cover(self, c: int):
        left, right, up, down = self.left, self.right, self.up, self.down
        right[left[c]] = right[c]
        left[right[c]] = left[c]

        i = down[c]
        while i != c:
            j = right[i]
            while j != i:
                down[up[j]] = down[j]
                up[down[j]] = up[j]
                self.size[self.column[j]] -= 1
                self.updates += 1
                j = right[j]
            i = down[i]

    def _uncover(self, c: int):
        left, right, up, down = self.left, self.right, self.up, self.down
        i = up[c]
        while i != c:
            j = left[i]
            while j != i:
                self.size[self.column[j]] += 1
                down[up[j]] = j
                up[down[j]] = j
                j = left[j]
            i = up[i]

        right[left[c]] = c
        left[right[c]] = c

    def _choose_column(self) -> int:
        """Live column with the fewest rows, leftmost on ties"""
        best, best_size = ROOT, None
        c = self.right[ROOT]
        while c != ROOT:
            if best_size is None or self.size[c] < best_size:
                best, best_size = c, self.size[c]
                if best_size == 0:
                    break
            c = self.right[c]
        return best

    def _select(self, r: int):
        j = self.right[r]
        while j != r:
            self._cover(self.column[j])
            j = self.right[j]

    def _unselect(self, r: int):
        j = self.left[r]
        while j != r:
            self._uncover(self.column[j])
            j = self.left[j]

    def iter_solutions(self) -> Iterator[List[int]]:
        """
        Yield each exact cover as a sorted list of row indices.

        The search keeps an explicit stack of ``[column, row node]`` levels
        instead of recursing. Closing the generator early restores the links
        to their initial state.
        """
        stack: List[List[int]] = []
        try:
            while True:
                if self.step_callback is not None:
                    self.step_callback()

                if self.right[ROOT] == ROOT:
                    yield sorted(self.row[r] for _, r in stack)
                else:
                    c = self._choose_column()
                    self._cover(c)
                    stack.append([c, c])

                # Move to the next untried row, backing out of exhausted columns
                while stack:
                    level = stack[-1]
                    c, r = level
                    if r != c:
                        self._unselect(r)
                    r = self.down[r]
                    if r == c:
                        self._uncover(c)
                        stack.pop()
                        continue
                    level[1] = r
                    self._select(r)
                    break
                else:
                    return
        finally:
            while stack:
                c, r = stack.pop()
                if r != c:
                    self._unselect(r)
                self._uncover(c)

    def solve(self) -> List[List[int]]:
        """All exact covers"""
        return list(self.iter_solutions())

    def solve_first(self) -> Optional[List[int]]:
        """The first exact cover found, or None"""
        solutions = self.iter_solutions()
        try:
            return next(solutions, None)
        finally:
            solutions.close()

    def snapshot(self) -> Tuple[Tuple[int, ...], ...]:
        """The complete link structure, for comparing states"""
        return (tuple(self.left), tuple(self.right), tuple(self.up), tuple(self.down),
                tuple(self.column), tuple(self.row), tuple(self.size))

    def __repr__(self):
        return (f"DancingLinks(rows={self.num_rows}, columns={self.num_columns}, "
                f"primary={self.primary_columns})")
