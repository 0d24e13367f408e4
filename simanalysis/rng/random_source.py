"""Seedable random streams."""

from typing import List, Optional, Union

import numpy as np

SeedLike = Union[None, int, np.random.SeedSequence]


class RandomSource:
    """Uniform random stream backed by a numpy ``Generator``.

    Child streams created with ``spawn`` are statistically independent of
    each other and of the parent, which is what independent replications
    need.
    """

    def __init__(self, seed: SeedLike = None):
        """Initialize random source.

        Args:
            seed: Integer seed, SeedSequence, or None for OS entropy
        """
        if isinstance(seed, np.random.SeedSequence):
            self.seed_sequence = seed
        else:
            self.seed_sequence = np.random.SeedSequence(seed)
        self.generator = np.random.default_rng(self.seed_sequence)

    @property
    def seed(self) -> Optional[int]:
        return self.seed_sequence.entropy

    def uniform(self) -> float:
        """Draw from the open interval (0, 1)."""
        u = self.generator.random()
        while u == 0.0:
            u = self.generator.random()
        return float(u)

    def spawn(self, n: int) -> List["RandomSource"]:
        """Create ``n`` independent child streams."""
        return [RandomSource(child) for child in self.seed_sequence.spawn(n)]

    def __repr__(self) -> str:
        return f"RandomSource(entropy={self.seed_sequence.entropy}, spawn_key={self.seed_sequence.spawn_key})"
