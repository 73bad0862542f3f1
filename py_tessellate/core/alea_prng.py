"""
Seeded Alea pseudo-random generator.

Johannes Baagøe's Alea algorithm: small state, fast, and reproducible across
platforms for the same seed. Seeds may be ints, strings or sequences of
either; every part is mashed into the three-word state.
"""

from typing import Sequence, TypeVar

T = TypeVar("T")

TWO_POW_32 = 0x100000000
TWO_POW_NEG_32 = 2.3283064365386963e-10


def _uint32(n) -> int:
    return int(n) & 0xFFFFFFFF


class Mash:
    """String hash used to spread a seed over the generator state."""

    def __init__(self):
        self.n = 0xEFC8249D

    def __call__(self, data) -> float:
        for char in str(data):
            self.n += ord(char)
            h = 0.02519603282416938 * self.n
            self.n = _uint32(h)
            h -= self.n
            h *= self.n
            self.n = _uint32(h)
            h -= self.n
            self.n += h * TWO_POW_32
        return _uint32(self.n) * TWO_POW_NEG_32


class AleaPRNG:
    """Deterministic random source for point sampling and perturbation."""

    def __init__(self, seed):
        self.call_count = 0
        parts = list(seed) if isinstance(seed, (list, tuple)) else [seed]

        mash = Mash()
        self.s0 = mash(" ")
        self.s1 = mash(" ")
        self.s2 = mash(" ")
        self.c = 1

        for part in parts:
            self.s0 = self._absorb(self.s0, mash(part))
            self.s1 = self._absorb(self.s1, mash(part))
            self.s2 = self._absorb(self.s2, mash(part))

    @staticmethod
    def _absorb(state: float, value: float) -> float:
        state -= value
        return state + 1 if state < 0 else state

    def random(self) -> float:
        """Next value in [0, 1)."""
        self.call_count += 1
        t = 2091639 * self.s0 + self.c * TWO_POW_NEG_32
        self.s0 = self.s1
        self.s1 = self.s2
        self.c = int(t)
        self.s2 = t - self.c
        return self.s2

    def uniform(self, low: float, high: float) -> float:
        return low + (high - low) * self.random()

    def randint(self, low: int, high: int) -> int:
        """Integer in [low, high], both ends inclusive."""
        if high < low:
            raise ValueError(f"Empty range [{low}, {high}]")
        return low + int(self.random() * (high - low + 1))

    def choice(self, seq: Sequence[T]) -> T:
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[int(self.random() * len(seq))]
