"""Seed parsing, canonicalization, and hashing utilities."""

from __future__ import annotations

from dataclasses import dataclass
import hashlib
import re

_EXAMPLE_SEEDS = ["1234", "Foo I", "Tau Ceti IV", "Selene"]
_INT_RE = re.compile(r"^[0-9]+$")
_SPACE_RE = re.compile(r"\s+")


class SeedParseError(ValueError):
    """Raised when a seed is missing or blank."""


@dataclass(frozen=True)
class ParsedSeed:
    """Validated seed and its deterministic hash."""

    original: str
    canonical: str
    seed_hash: int


def canonical_seed(seed_text: str) -> str:
    """Return the canonical form of a world name: trimmed, single-spaced, lowercase."""

    return _SPACE_RE.sub(" ", seed_text.strip()).lower()


def seed_hash64(seed: str) -> int:
    """Hash a canonical seed to a deterministic unsigned 64-bit integer."""

    digest = hashlib.blake2b(
        seed.encode("utf-8"),
        digest_size=8,
        person=b"icomapv1",
    ).digest()
    return int.from_bytes(digest, byteorder="big", signed=False)


def parse_seed(seed_text: str | None) -> ParsedSeed:
    """Parse `seed_text` as either a decimal integer or a free-text world name."""

    if seed_text is None:
        raise SeedParseError(_error_message("Seed is required."))

    raw = seed_text.strip()
    if not raw:
        raise SeedParseError(_error_message("Seed cannot be empty."))

    if _INT_RE.fullmatch(raw):
        value = int(raw) & ((1 << 64) - 1)
        return ParsedSeed(raw, str(value), value)

    canonical = canonical_seed(raw)
    return ParsedSeed(raw, canonical, seed_hash64(canonical))


def directory_name(parsed: ParsedSeed) -> str:
    """Filesystem-safe directory name for a parsed seed."""

    return re.sub(r"[^a-z0-9]+", "-", parsed.canonical).strip("-") or "seed"


def _error_message(reason: str) -> str:
    examples = ", ".join(repr(s) for s in _EXAMPLE_SEEDS)
    return f"{reason} Examples: {examples}"
