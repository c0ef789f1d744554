"""
Short-code generation for shortlink_registry.

Provided strategy:
- RandomStrategy: `length` independent uniform draws from a fixed alphabet of
  letters and digits with the look-alike characters (0 O 1 I l) removed.

Codes are not secret and carry no meaning; uniqueness is the storage layer's
job (unique index on `code`), and the registry retries a bounded number of
times when a generated code collides.

Configuration (via shortlink_registry.config.settings):
- CODE_LENGTH: default code length (7)

Collision math:
- The keyspace at length 7 is 57**7 (about 1.95e12), so a collision on a
  fresh draw is rare until the table holds billions of rows. The registry
  still treats exhaustion as a real outcome (CodeExhausted).
"""

import random
from dataclasses import dataclass, field
from typing import Optional

from ..config import settings

ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz23456789"
DEFAULT_LENGTH = 7


@dataclass(frozen=True)
class RandomStrategy:
    """Random fixed-alphabet codes; `rng` can be swapped for a seeded Random in tests."""

    length: int = DEFAULT_LENGTH
    rng: random.Random = field(default_factory=random.SystemRandom, compare=False, repr=False)

    def generate(self, length: Optional[int] = None) -> str:
        n = self.length if length is None else int(length)
        return "".join(self.rng.choice(ALPHABET) for _ in range(n))

    def __call__(self, length: Optional[int] = None) -> str:
        return self.generate(length)


def get_strategy_from_config() -> RandomStrategy:
    """Build the code generator with the configured default length."""
    return RandomStrategy(length=int(getattr(settings, "CODE_LENGTH", DEFAULT_LENGTH)))


def generate_code(length: int = DEFAULT_LENGTH) -> str:
    """
    Facade used by the rest of the app.

    >>> len(generate_code())
    7
    """
    return RandomStrategy(length=length).generate()
