"""
Seeded linear-congruential generator used for bootstrap sampling.

    value = (value * 9301 + 49297) mod 233280
    random() = value / 233280          # in [0, 1)

This is not a statistical-quality or cryptographic generator.  It exists so
that forests built from the same series and seed are identical across runs
and across host applications that use the same recurrence.  Each
``build_forest`` call creates its own instance; instances are never shared
between concurrent calls.
"""

from __future__ import annotations

LCG_MULTIPLIER = 9301
LCG_INCREMENT = 49297
LCG_MODULUS = 233280


class LinearCongruentialGenerator:
    """Deterministic ``[0, 1)`` stream from an integer seed."""

    def __init__(self, seed: int) -> None:
        self._value = int(seed)

    def random(self) -> float:
        self._value = (self._value * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return self._value / LCG_MODULUS

    def randrange(self, n: int) -> int:
        """Integer in ``[0, n)``; ``n`` must be >= 1."""
        return int(self.random() * n)

    def sample_indices(self, population: int, k: int) -> list[int]:
        """``k`` distinct indices from ``range(population)``, ascending.

        Partial Fisher–Yates shuffle driven by this generator.
        """
        pool = list(range(population))
        k = min(k, population)
        for i in range(k):
            j = i + self.randrange(population - i)
            pool[i], pool[j] = pool[j], pool[i]
        return sorted(pool[:k])
