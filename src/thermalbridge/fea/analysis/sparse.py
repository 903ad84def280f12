from __future__ import annotations

from typing import TYPE_CHECKING, Iterator

import numpy as np
import scipy as sp

if TYPE_CHECKING:
    import numpy.typing as npt


class SparseConductanceMap:
    """
    Global conductance matrix stored as a mapping (row, column) -> coefficient.

    Inserting into an existing entry accumulates. Whole rows and columns can
    be deleted, which the Dirichlet elimination relies on. Rows are kept as
    dicts and every column keeps the set of rows holding an entry in it, so
    both deletions only touch the stored entries.
    """

    def __init__(self, size: int) -> None:
        self.size = size
        self._rows: list[dict[int, float]] = [{} for _ in range(size)]
        self._columns: list[set[int]] = [set() for _ in range(size)]

    def __len__(self) -> int:
        """Number of stored entries."""
        return sum(len(row) for row in self._rows)

    def __contains__(self, key: tuple[int, int]) -> bool:
        i, j = key
        return j in self._rows[i]

    def __getitem__(self, key: tuple[int, int]) -> float:
        i, j = key
        return self._rows[i][j]

    def add(self, i: int, j: int, value: float) -> None:
        """Accumulate ``value`` into entry (i, j)."""
        row = self._rows[i]
        if j in row:
            row[j] += value
        else:
            row[j] = value
            self._columns[j].add(i)

    def column(self, j: int) -> Iterator[tuple[int, float]]:
        """Entries of column ``j`` as (row, coefficient), in ascending row order."""
        for i in sorted(self._columns[j]):
            yield i, self._rows[i][j]

    def delete_row(self, i: int) -> None:
        for j in self._rows[i]:
            self._columns[j].discard(i)
        self._rows[i].clear()

    def delete_column(self, j: int) -> None:
        for i in self._columns[j]:
            del self._rows[i][j]
        self._columns[j].clear()

    def to_csr(self) -> sp.sparse.csr_matrix:
        """
        Convert to CSR with column indices sorted within each row.

        Explicitly stored zeros are kept.
        """
        indptr: npt.NDArray[np.int64] = np.zeros(self.size + 1, dtype=np.int64)
        indices: list[int] = []
        data: list[float] = []
        for i, row in enumerate(self._rows):
            for j in sorted(row):
                indices.append(j)
                data.append(row[j])
            indptr[i + 1] = len(indices)

        return sp.sparse.csr_matrix(
            (
                np.array(data, dtype=np.float64),
                np.array(indices, dtype=np.int64),
                indptr,
            ),
            shape=(self.size, self.size),
        )
