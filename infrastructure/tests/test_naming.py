"""
Unit tests for default names and name allocation.
"""

import random

import pytest

from infrastructure.atlas.naming import (
    CLUSTER_NAME_PREFIX,
    PROJECT_NAME_PREFIX,
    SUFFIX_MAX,
    SUFFIX_MIN,
    RandomNameAllocator,
    StableNameAllocator,
    random_suffix,
    resolve_name,
)


class TestRandomSuffix:
    def test_suffix_within_range(self):
        rng = random.Random(7)
        for _ in range(1000):
            assert SUFFIX_MIN <= random_suffix(rng) <= SUFFIX_MAX

    def test_seeded_rng_is_reproducible(self):
        assert random_suffix(random.Random(42)) == random_suffix(random.Random(42))


class TestAllocators:
    def test_random_allocator_uses_prefix(self):
        name = RandomNameAllocator(random.Random(1)).allocate(PROJECT_NAME_PREFIX)
        assert name.startswith(PROJECT_NAME_PREFIX)
        suffix = int(name[len(PROJECT_NAME_PREFIX):])
        assert SUFFIX_MIN <= suffix <= SUFFIX_MAX

    def test_stable_allocator_is_deterministic(self):
        first = StableNameAllocator("AtlasClusterStack/MongoDBCluster")
        second = StableNameAllocator("AtlasClusterStack/MongoDBCluster")
        assert first.allocate(CLUSTER_NAME_PREFIX) == second.allocate(CLUSTER_NAME_PREFIX)

    def test_stable_allocator_differs_per_prefix_and_seed(self):
        allocator = StableNameAllocator("seed-a")
        assert allocator.allocate(PROJECT_NAME_PREFIX)[len(PROJECT_NAME_PREFIX):] != (
            allocator.allocate(CLUSTER_NAME_PREFIX)[len(CLUSTER_NAME_PREFIX):]
        )
        assert allocator.allocate(PROJECT_NAME_PREFIX) != StableNameAllocator(
            "seed-b"
        ).allocate(PROJECT_NAME_PREFIX)

    def test_stable_allocator_suffix_within_range(self):
        for index in range(200):
            name = StableNameAllocator(f"seed-{index}").allocate(PROJECT_NAME_PREFIX)
            assert SUFFIX_MIN <= int(name[len(PROJECT_NAME_PREFIX):]) <= SUFFIX_MAX

    def test_stable_allocator_requires_seed(self):
        with pytest.raises(ValueError):
            StableNameAllocator("")


class CountingAllocator:
    def __init__(self):
        self.calls = 0

    def allocate(self, prefix):
        self.calls += 1
        return f"{prefix}{self.calls}"


class TestResolveName:
    def test_explicit_name_wins(self):
        allocator = CountingAllocator()
        assert resolve_name("my-app-project", PROJECT_NAME_PREFIX, allocator) == "my-app-project"
        assert allocator.calls == 0

    @pytest.mark.parametrize("explicit", [None, ""])
    def test_missing_name_is_allocated_once(self, explicit):
        allocator = CountingAllocator()
        assert resolve_name(explicit, CLUSTER_NAME_PREFIX, allocator) == "atlas-cluster-1"
        assert allocator.calls == 1
