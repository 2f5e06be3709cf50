"""Tests for profile filtering."""

import pytest

from docmigrate.framework.filtering import filter_eligible, is_eligible, normalize_profiles
from docmigrate.framework.registry import MigrationDescriptor


def _descriptor(version, profiles=()):
    return MigrationDescriptor(version=version, factory=object, profiles=frozenset(profiles), name=f"M{version}")


class TestIsEligible:
    @pytest.mark.parametrize(
        "migration_profiles, run_profiles, expected",
        [
            ((), (), True),
            ((), ("prod",), True),
            (("prod",), (), False),
            (("prod",), ("prod",), True),
            (("prod",), ("PROD",), True),
            (("prod", "eu"), ("eu",), True),
            (("prod",), ("dev",), False),
        ],
    )
    def test_rules(self, migration_profiles, run_profiles, expected):
        assert is_eligible(_descriptor(1, migration_profiles), run_profiles) is expected


class TestFilterEligible:
    def test_keeps_order(self):
        descriptors = [_descriptor(3), _descriptor(1, ["prod"]), _descriptor(2)]
        assert [d.version for d in filter_eligible(descriptors, [])] == [3, 2]

    def test_normalize_profiles(self):
        assert normalize_profiles("Prod") == frozenset({"prod"})
        assert normalize_profiles(["A", "a"]) == frozenset({"a"})
