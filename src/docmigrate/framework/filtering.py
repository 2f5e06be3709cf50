"""Profile filter: which discovered migrations belong to this run."""

from __future__ import annotations

from collections.abc import Iterable

from docmigrate.framework.registry import MigrationDescriptor


def normalize_profiles(profiles: Iterable[str]) -> frozenset[str]:
    """Case-folded profile names; a bare string counts as one profile."""
    if isinstance(profiles, str):
        profiles = (profiles,)
    return frozenset(p.casefold() for p in profiles)


def is_eligible(descriptor: MigrationDescriptor, run_profiles: Iterable[str]) -> bool:
    """True if ``descriptor`` runs under ``run_profiles``.

    A migration without profiles belongs to every profile. Otherwise it
    needs at least one profile in common with the run, compared
    case-insensitively.
    """
    if not descriptor.profiles:
        return True
    return not normalize_profiles(descriptor.profiles).isdisjoint(normalize_profiles(run_profiles))


def filter_eligible(
    descriptors: Iterable[MigrationDescriptor],
    run_profiles: Iterable[str],
) -> list[MigrationDescriptor]:
    """Eligible descriptors, discovery order preserved."""
    run_profiles = normalize_profiles(run_profiles)
    return [d for d in descriptors if is_eligible(d, run_profiles)]


__all__ = ["filter_eligible", "is_eligible", "normalize_profiles"]
