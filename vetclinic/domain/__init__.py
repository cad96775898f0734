"""Domain layer for the clinic registry.

This module contains the record models, the Registry that enforces the
integrity rules between them, and the ports the adapters implement.
"""

from .enums import ConflictResolution, PetSize, PetType, Specialisation
from .records import Doctor, Pet
from .registry import Registry

__all__ = [
    "ConflictResolution",
    "Doctor",
    "Pet",
    "PetSize",
    "PetType",
    "Registry",
    "Specialisation",
]
