"""pyobstacle.utils.bitset"""
from __future__ import annotations

from hashlib import blake2b
from typing import Iterable
import numpy as np


def _bitset_cache_token(mask: np.ndarray) -> str:
    """Stable token for a boolean mask, used to compare active sets cheaply."""
    arr = np.asarray(mask, dtype=np.bool_, order="C")
    h = blake2b(digest_size=16)
    shape_arr = np.asarray(arr.shape, dtype=np.int64)
    h.update(shape_arr.tobytes())
    h.update(arr.view(np.uint8).tobytes())
    return h.hexdigest()


class BitSet:
    def __init__(self, mask):
        self.mask = np.asarray(mask, dtype=bool)
        self._cache_token = _bitset_cache_token(self.mask)

    def cardinality(self): return int(self.mask.sum())
    def to_indices(self): return np.flatnonzero(self.mask)
    def __len__(self): return len(self.mask)
    def __repr__(self): return f'<{type(self).__name__} {self.cardinality()}/{len(self)}>'

    def __contains__(self, idx):     # idx in BitSet
        return bool(self.mask[idx])

    def __iter__(self):
        return iter(int(i) for i in self.to_indices())

    def __eq__(self, other):
        if not isinstance(other, BitSet):
            return NotImplemented
        return self.mask.shape == other.mask.shape and self._cache_token == other._cache_token

    def __hash__(self):
        return hash(self._cache_token)


class ActiveSet(BitSet):
    """
    Set of unknowns pinned to the obstacle.

    Iteration yields the member indices in increasing order, so anything
    built from an active set is independent of how the set was produced.
    """

    @classmethod
    def empty(cls, n: int) -> "ActiveSet":
        return cls(np.zeros(n, dtype=bool))

    @classmethod
    def from_indices(cls, n: int, indices: Iterable[int]) -> "ActiveSet":
        mask = np.zeros(n, dtype=bool)
        idx = np.fromiter((int(i) for i in indices), dtype=int)
        if idx.size and (idx.min() < 0 or idx.max() >= n):
            raise IndexError(f"Active index out of range for {n} unknowns.")
        mask[idx] = True
        return cls(mask)

    def indicator(self) -> np.ndarray:
        """0/1 float vector over all unknowns (output only)."""
        return self.mask.astype(float)
