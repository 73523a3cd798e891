"""Deterministic splittable RNG streams and the dice service built on them."""

from __future__ import annotations

from dataclasses import dataclass
import hashlib

import numpy as np


def _normalize_seed(seed: int) -> int:
    return int(seed) & ((1 << 64) - 1)


def derive_seed(parent_seed: int, key: str, *, namespace: str = "icomap-v1") -> int:
    """Derive a deterministic child seed from a parent seed and label."""

    payload = f"{namespace}:{_normalize_seed(parent_seed)}:{key}".encode("utf-8")
    digest = hashlib.blake2b(payload, digest_size=8, person=b"icofork00").digest()
    return int.from_bytes(digest, byteorder="big", signed=False)


@dataclass(frozen=True)
class RngStream:
    """Immutable RNG stream that can be forked by deterministic stage names."""

    seed: int
    namespace: str = "icomap-v1"

    def fork(self, key: str) -> "RngStream":
        if not key:
            raise ValueError("fork key must be non-empty")
        return RngStream(derive_seed(self.seed, key, namespace=self.namespace), self.namespace)

    def generator(self) -> np.random.Generator:
        return np.random.Generator(np.random.PCG64(np.uint64(_normalize_seed(self.seed))))


class Dice:
    """Tabletop-style dice rolled from a numpy generator.

    All results are plain ints. A die of size zero or less always rolls 0,
    which lets callers pass a decayed variation straight through.
    """

    def __init__(self, generator: np.random.Generator) -> None:
        self._generator = generator

    @classmethod
    def from_stream(cls, stream: RngStream, key: str | None = None) -> "Dice":
        if key is not None:
            stream = stream.fork(key)
        return cls(stream.generator())

    @classmethod
    def seeded(cls, seed: int) -> "Dice":
        return cls.from_stream(RngStream(seed))

    def die(self, size: int) -> int:
        """Roll one die: uniform in 1..size."""

        if size <= 0:
            return 0
        return int(self._generator.integers(1, size + 1))

    def dice(self, size: int, number: int) -> int:
        return sum(self.die(size) for _ in range(number))

    def die_v(self, size: int) -> int:
        """Signed variance roll in -(size-1)..+(size-1)."""

        return self.die(size) - self.die(size)

    def die_v_array(self, size: int, count: int) -> np.ndarray:
        """`count` independent variance rolls as an int64 array."""

        if size <= 0:
            return np.zeros(count, dtype=np.int64)
        first = self._generator.integers(1, size + 1, size=count)
        second = self._generator.integers(1, size + 1, size=count)
        return (first - second).astype(np.int64)

    def die_array(self, size: int, count: int) -> np.ndarray:
        if size <= 0:
            return np.zeros(count, dtype=np.int64)
        return self._generator.integers(1, size + 1, size=count).astype(np.int64)

    def roll_zero(self, size: int) -> int:
        """Uniform in 0..size-1."""

        if size <= 0:
            return 0
        return int(self._generator.integers(0, size))

    def d3(self) -> int:
        return self.die(3)

    def d6(self) -> int:
        return self.die(6)

    def d100(self) -> int:
        return self.die(100)
