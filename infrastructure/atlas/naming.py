"""
Default names and name allocation for Atlas resources.

When the caller does not name the project or the cluster, a name is built
from a static prefix and a numeric suffix. The suffix source is pluggable so
names can be random (one draw per synth) or derived from a stable seed.
"""

import hashlib
import random
from typing import Optional, Protocol

PROJECT_NAME_PREFIX = "atlas-project-"
CLUSTER_NAME_PREFIX = "atlas-cluster-"
CLUSTER_TYPE = "REPLICASET"

DB_USER_AUTH_DATABASE = "admin"
DB_USER_DEFAULT_ROLES = (
    {"role_name": "atlasAdmin", "database_name": "admin"},
)

SUFFIX_MIN = 10
SUFFIX_MAX = 9_999_999


def random_suffix(rng: Optional[random.Random] = None) -> int:
    """
    Draw a suffix uniformly from [SUFFIX_MIN, SUFFIX_MAX].

    Args:
        rng: Optional random source, mainly for tests.

    Returns:
        int: The drawn suffix.
    """
    return (rng or random).randint(SUFFIX_MIN, SUFFIX_MAX)


class NameAllocator(Protocol):
    def allocate(self, prefix: str) -> str: ...


class RandomNameAllocator:
    """Appends a fresh random suffix on every call. Not collision-proof."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng

    def allocate(self, prefix: str) -> str:
        return f"{prefix}{random_suffix(self._rng)}"


class StableNameAllocator:
    """
    Derives the suffix from a SHA-256 of the seed and the prefix.

    The same seed always produces the same name, so a redeploy from a fresh
    checkout does not rename (and therefore replace) existing resources.
    """

    def __init__(self, seed: str) -> None:
        if not seed:
            raise ValueError("StableNameAllocator requires a non-empty seed")
        self._seed = seed

    def allocate(self, prefix: str) -> str:
        digest = hashlib.sha256(f"{self._seed}:{prefix}".encode("utf-8")).digest()
        span = SUFFIX_MAX - SUFFIX_MIN + 1
        suffix = SUFFIX_MIN + int.from_bytes(digest[:8], "big") % span
        return f"{prefix}{suffix}"


def resolve_name(
    explicit: Optional[str], prefix: str, allocator: NameAllocator
) -> str:
    """
    Return the explicit name when given, otherwise allocate one from the prefix.

    The allocator is consulted at most once per call.
    """
    if explicit:
        return explicit
    return allocator.allocate(prefix)
