"""Random number providers for the pull engine.

The engine never constructs its own randomness: callers pass one of these
providers into every draw. Every derived helper (``random_int``, ``pick``,
``shuffle``) is built on ``random()`` alone, so two providers producing the
same ``random()`` stream produce identical picks and shuffles.
"""

import math
import random as _random
from typing import Optional, Protocol, Sequence, TypeVar

T = TypeVar("T")


class RNGProvider(Protocol):
    """Interface consumed by the pull engine."""

    def random(self) -> float:
        """Return a float in [0, 1)."""
        ...

    def random_int(self, min_value: int, max_value: int) -> int:
        """Return an integer in [min_value, max_value)."""
        ...

    def pick(self, items: Sequence[T]) -> Optional[T]:
        """Return one element of items uniformly, or None if empty."""
        ...

    def shuffle(self, items: Sequence[T]) -> list[T]:
        """Return a shuffled copy of items."""
        ...


class _BaseRNG:
    """Shared helpers on top of a single ``random()`` source."""

    def __init__(self, seed: Optional[int] = None):
        self._random = _random.Random(seed)

    def random(self) -> float:
        return self._random.random()

    def random_int(self, min_value: int, max_value: int) -> int:
        if max_value <= min_value:
            raise ValueError(
                f"Empty range: [{min_value}, {max_value}) contains no integers"
            )
        value = math.floor(self.random() * (max_value - min_value)) + min_value
        # random() < 1.0, but guard the upper bound against rounding anyway
        return min(value, max_value - 1)

    def pick(self, items: Sequence[T]) -> Optional[T]:
        if not items:
            return None
        return items[self.random_int(0, len(items))]

    def shuffle(self, items: Sequence[T]) -> list[T]:
        # Fisher-Yates from the end
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = self.random_int(0, i + 1)
            result[i], result[j] = result[j], result[i]
        return result


class DefaultRNG(_BaseRNG):
    """Production provider backed by an unseeded generator."""

    def __init__(self):
        super().__init__(seed=None)


class SeededRNG(_BaseRNG):
    """Deterministic provider for tests and replays.

    Two instances built with the same seed yield the same stream.
    """

    def __init__(self, seed: int):
        super().__init__(seed=seed)
        self.seed = seed

    def reset(self, seed: Optional[int] = None) -> None:
        """Restart the stream, optionally from a different seed."""
        if seed is not None:
            self.seed = seed
        self._random.seed(self.seed)
