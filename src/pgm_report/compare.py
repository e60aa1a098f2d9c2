from __future__ import annotations
from typing import Iterable, List


def missing_stores(
    distributed_stores: Iterable[str],
    retrieved_stores: Iterable[str],
) -> List[str]:
    """Return stores distributed successfully but never retrieved.

    Keeps the first-seen order of ``distributed_stores`` and drops duplicates.
    """

    retrieved = set(retrieved_stores)

    missing: List[str] = []
    seen: set[str] = set()
    for store in distributed_stores:
        if store in retrieved or store in seen:
            continue
        seen.add(store)
        missing.append(store)

    return missing


def batched(values: List[str], size: int) -> Iterable[List[str]]:
    """Yield consecutive slices of ``values`` holding at most ``size`` items."""

    if size < 1:
        raise ValueError(f"batch size must be positive: {size}")
    for start in range(0, len(values), size):
        yield values[start : start + size]


__all__ = ["batched", "missing_stores"]
