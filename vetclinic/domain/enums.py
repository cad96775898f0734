"""Enumerations for the clinic record registry.

The registry validates categorical fields against these enums but keeps the
value exactly as the operator typed it (e.g. "Dog" stays "Dog"), so the enums
are used for membership checks rather than as the stored type.
"""

from enum import Enum
from typing import Optional


class _CaseInsensitiveEnum(str, Enum):
    """String enum whose lookups ignore case."""

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["_CaseInsensitiveEnum"]:
        """Return the member matching value (ignoring case), or None.

        Parameters:
            value: Raw input string

        Returns:
            Matching enum member, or None if value is not a legal value
        """
        if not isinstance(value, str):
            return None
        folded = value.casefold()
        for member in cls:
            if member.value == folded:
                return member
        return None

    @classmethod
    def is_valid(cls, value: Optional[str]) -> bool:
        """Check whether value names a member (ignoring case)."""
        return cls.parse(value) is not None

    @classmethod
    def choices(cls) -> list[str]:
        """Legal values in declaration order."""
        return [member.value for member in cls]


class Specialisation(_CaseInsensitiveEnum):
    """Animal category a doctor treats."""
    DOG = "dog"
    CAT = "cat"


class PetType(_CaseInsensitiveEnum):
    """Animal category a pet belongs to."""
    DOG = "dog"
    CAT = "cat"


class PetSize(_CaseInsensitiveEnum):
    """Pet size class, used for the overweight thresholds."""
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class ConflictResolution(str, Enum):
    """Caller decision for an imported record that collides with an existing one."""
    MERGE = "merge"
    SKIP = "skip"
