"""
Shared enums for docmigrate.

STDLIB ONLY - NO PYDANTIC.
"""

from enum import Enum


class Direction(str, Enum):
    """
    Direction of a migration run.

    UP applies pending migrations in ascending version order.
    DOWN reverts migrations in descending version order, so the most
    recently applied migration is reverted first.
    """

    UP = "up"
    DOWN = "down"

    @classmethod
    def parse(cls, value: "Direction | str") -> "Direction":
        """Accept an enum member or its case-insensitive string value."""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())
