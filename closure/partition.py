"""
Partition of a finite universe {0, ..., n-1}.

Union-find with union by size and path halving. Lifecycle is
build → close → freeze: once frozen, the partition is read-only and is
what reporting consumes.
"""

from __future__ import annotations

import numpy as np


class Partition:
    """Disjoint sets over a dense index range."""

    def __init__(self, n: int):
        if n < 0:
            raise ValueError(f"universe size must be non-negative, got {n}")
        self.n = n
        self.parent = list(range(n))
        self.size = [1] * n
        self.num_classes = n
        self.frozen = False

    def check_index(self, i: int) -> None:
        if not 0 <= i < self.n:
            raise ValueError(f"index must be in 0..{self.n - 1}, got {i}")

    def find(self, i: int) -> int:
        self.check_index(i)
        parent = self.parent
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    def same(self, i: int, j: int) -> bool:
        return self.find(i) == self.find(j)

    def union(self, i: int, j: int) -> bool:
        """Merge the classes of i and j. Returns True if the partition changed."""
        if self.frozen:
            raise RuntimeError("partition is frozen")
        ri, rj = self.find(i), self.find(j)
        if ri == rj:
            return False
        if self.size[ri] < self.size[rj]:
            ri, rj = rj, ri
        self.parent[rj] = ri
        self.size[ri] += self.size[rj]
        self.num_classes -= 1
        return True

    def freeze(self) -> "Partition":
        # Compress fully so roots() is a single lookup per index.
        for i in range(self.n):
            self.parent[i] = self.find(i)
        self.frozen = True
        return self

    def roots(self) -> np.ndarray:
        """Array mapping every index to the root of its class."""
        return np.array([self.find(i) for i in range(self.n)], dtype=np.int64)

    def classes(self) -> list[list[int]]:
        """Classes as sorted member lists, ordered by smallest member."""
        by_root: dict[int, list[int]] = {}
        for i in range(self.n):
            by_root.setdefault(self.find(i), []).append(i)
        return sorted(by_root.values(), key=lambda members: members[0])

    def class_ids(self) -> np.ndarray:
        """Dense class id per index, numbered in ``classes()`` order."""
        ids = np.empty(self.n, dtype=np.int64)
        for cid, members in enumerate(self.classes()):
            ids[members] = cid
        return ids

    def class_of(self, i: int) -> list[int]:
        self.check_index(i)
        roots = self.roots()
        return np.nonzero(roots == roots[i])[0].tolist()

    def __len__(self) -> int:
        return self.num_classes

    def __repr__(self) -> str:
        state = "frozen" if self.frozen else "open"
        return f"Partition(n={self.n}, classes={self.num_classes}, {state})"
