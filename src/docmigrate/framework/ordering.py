"""Ordering: sort eligible migrations for a run direction.

Up runs ascend by version, Down runs descend. Equal versions keep their
discovery order in both directions (``sorted`` is stable, including with
``reverse=True``), so repeated runs over the same sources are reproducible.
"""

from __future__ import annotations

from collections.abc import Iterable

from docmigrate.core.enums import Direction
from docmigrate.framework.registry import MigrationDescriptor


def order_descriptors(
    descriptors: Iterable[MigrationDescriptor],
    direction: Direction | str = Direction.UP,
) -> list[MigrationDescriptor]:
    """Return ``descriptors`` in execution order for ``direction``."""
    direction = Direction.parse(direction)
    return sorted(
        descriptors,
        key=lambda d: d.version,
        reverse=direction is Direction.DOWN,
    )


__all__ = ["order_descriptors"]
