"""
core.rng
Deterministic RNG helpers that do NOT rely on Python's built-in hash().

Goal:
- Same (base_seed + inputs) => same Random stream across platforms & runs.
- A replayed run (same seed, same directives) produces the same years.
"""

from __future__ import annotations

import hashlib
import json
import random
from typing import Any, Sequence, Tuple, TypeVar

T = TypeVar("T")


def stable_int_seed(*parts: Any, salt: str = "nexus-wargame") -> int:
    """Return a stable 32-bit integer seed derived from arbitrary inputs.

    Uses SHA-256 over a canonical JSON representation of `parts`.
    `default=str` lets enums and other non-JSON types participate.
    """
    payload = json.dumps(parts, sort_keys=True, ensure_ascii=False, separators=(",", ":"), default=str)
    h = hashlib.sha256((salt + "|" + payload).encode("utf-8")).digest()
    return int.from_bytes(h[:4], "big", signed=False)


def rng_from(*parts: Any, base_seed: int) -> random.Random:
    """Create a Random instance from (base_seed + parts)."""
    seed = stable_int_seed(base_seed, *parts)
    return random.Random(seed)


def uniform_rounded(rng: random.Random, lo: float, hi: float, decimals: int = 0) -> float:
    """Uniform draw in [lo, hi] rounded to `decimals` places."""
    factor = 10 ** int(decimals)
    return round(rng.uniform(float(lo), float(hi)) * factor) / factor


def weighted_pick(rng: random.Random, items: Sequence[Tuple[T, float]]) -> T:
    if not items:
        raise ValueError("weighted_pick needs at least one item")
    total = float(sum(max(0.0, float(w)) for _, w in items))
    r = rng.random() * total
    for item, w in items:
        w = max(0.0, float(w))
        if r < w:
            return item
        r -= w
    return items[0][0]
