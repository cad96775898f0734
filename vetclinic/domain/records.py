"""Doctor and Pet record models.

Both models are Pydantic V2 models with assignment validation, so an attempt
to assign an illegal value raises and leaves the previous value in place.
Every field starts unset (None) and only becomes set once a legal value is
assigned.

Architecture:
    - Pure domain models with no infrastructure dependencies
    - Categorical fields are validated against the enums but stored exactly as
      provided, so exported files keep the operator's casing
    - Names are compared case-insensitively through `name_key`
    - A pet refers to its doctor by name only; the Registry owns both
      collections and keeps the reference valid
"""

import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from vetclinic.domain.enums import PetSize, PetType, Specialisation

logger = logging.getLogger(__name__)


# Weight (kg) above which a pet counts as overweight, per type and size.
OVERWEIGHT_THRESHOLDS: dict[tuple[PetType, PetSize], float] = {
    (PetType.CAT, PetSize.SMALL): 4.0,
    (PetType.CAT, PetSize.MEDIUM): 6.0,
    (PetType.CAT, PetSize.LARGE): 8.0,
    (PetType.DOG, PetSize.SMALL): 6.0,
    (PetType.DOG, PetSize.MEDIUM): 9.0,
    (PetType.DOG, PetSize.LARGE): 12.0,
}


# Doctor value written for an unassigned pet; never a legal doctor name.
NO_DOCTOR_ASSIGNED = "no doctor assigned"

def fold_name(name: Optional[str]) -> Optional[str]:
    """Case-folded lookup key for a record name."""
    return name.casefold() if isinstance(name, str) else None


def _fold(value: Optional[str]) -> Optional[str]:
    return value.casefold() if isinstance(value, str) else value


def _require_name(v: Any) -> str:
    if not isinstance(v, str) or not v.strip():
        raise ValueError("Name must be a non-empty string")
    return v


class _Record(BaseModel):
    """Shared behaviour for registry records."""

    model_config = ConfigDict(validate_assignment=True)

    name: Optional[str] = Field(None, description="Display name, unique ignoring case")

    # Key the owning Registry files this record under; None while unregistered.
    _locked_key: Optional[str] = PrivateAttr(default=None)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Any) -> str:
        """Reject blank names (the stored value keeps its original casing)."""
        return _require_name(v)

    def __setattr__(self, name: str, value: Any) -> None:
        # A registered record may change the casing of its name, nothing more.
        if name == "name" and self._locked_key is not None and fold_name(value) != self._locked_key:
            raise ValueError(
                f"Cannot rename registered record '{self.name}' to {value!r}; "
                "only the casing of its name may change"
            )
        super().__setattr__(name, value)

    @property
    def name_key(self) -> Optional[str]:
        """Case-folded name used for identity and lookups."""
        return fold_name(self.name)

    @property
    def is_registered(self) -> bool:
        return self._locked_key is not None

    def lock_name(self) -> None:
        """Pin the case-folded name; called by the Registry on insertion."""
        self._locked_key = self.name_key

    def unlock_name(self) -> None:
        """Release the name again; called by the Registry on removal."""
        self._locked_key = None

    def try_set(self, field_name: str, value: Any) -> bool:
        """Assign a field, keeping the previous value if the new one is illegal.

        Parameters:
            field_name: Model field to assign
            value: Candidate value

        Returns:
            bool: True if the value was accepted, False if it was rejected
        """
        try:
            setattr(self, field_name, value)
        except ValueError:
            logger.debug(f"Rejected value {value!r} for {type(self).__name__}.{field_name}")
            return False
        return True

    def set_name(self, name: Any) -> bool:
        """Set the name if it is non-blank (and, once registered, only re-cased)."""
        return self.try_set("name", name)


class Doctor(_Record):
    """A doctor at the clinic.

    Parameters:
        name: Doctor name, unique within a registry ignoring case
        specialisation: "dog" or "cat" (any casing), stored as given
    """

    specialisation: Optional[str] = Field(None, description="Animal category treated (dog or cat)")

    @field_validator("specialisation")
    @classmethod
    def validate_specialisation(cls, v: Any) -> str:
        """Only accept dog/cat, ignoring case."""
        if not Specialisation.is_valid(v):
            raise ValueError(f"Specialisation must be one of {Specialisation.choices()}. Got: {v!r}")
        return v

    @classmethod
    def create(cls, name: Optional[str] = None, specialisation: Optional[str] = None) -> "Doctor":
        """Build a doctor, leaving any illegal field unset instead of raising."""
        doctor = cls()
        if name is not None:
            doctor.set_name(name)
        if specialisation is not None:
            doctor.set_specialisation(specialisation)
        return doctor

    def set_specialisation(self, specialisation: Any) -> bool:
        return self.try_set("specialisation", specialisation)

    def treats(self, pet_type: Optional[str]) -> bool:
        """Whether this doctor's specialisation matches the given pet type."""
        if self.specialisation is None or pet_type is None:
            return False
        return _fold(self.specialisation) == _fold(pet_type)

    def to_display_dict(self) -> dict[str, Any]:
        return {
            "Name": self.name,
            "Specialisation": self.specialisation,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Doctor):
            return NotImplemented
        return (
            _fold(self.name) == _fold(other.name)
            and _fold(self.specialisation) == _fold(other.specialisation)
        )


class Pet(_Record):
    """A pet registered at the clinic.

    Parameters:
        name: Pet name, unique within a registry ignoring case
        size: "small", "medium" or "large" (any casing), stored as given
        type: "dog" or "cat" (any casing), stored as given
        age: Age in whole years, zero or more
        weight: Weight in kilograms, strictly positive
        doctor: Name of the assigned doctor, or None when unassigned
    """

    size: Optional[str] = Field(None, description="Size class (small, medium, large)")
    type: Optional[str] = Field(None, description="Animal category (dog or cat)")
    age: Optional[int] = Field(None, description="Age in years")
    weight: Optional[float] = Field(None, description="Weight in kilograms")
    doctor: Optional[str] = Field(None, description="Assigned doctor name (reference, not ownership)")

    @field_validator("size")
    @classmethod
    def validate_size(cls, v: Any) -> str:
        if not PetSize.is_valid(v):
            raise ValueError(f"Size must be one of {PetSize.choices()}. Got: {v!r}")
        return v

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: Any) -> str:
        if not PetType.is_valid(v):
            raise ValueError(f"Type must be one of {PetType.choices()}. Got: {v!r}")
        return v

    @field_validator("age")
    @classmethod
    def validate_age(cls, v: Optional[int]) -> int:
        if v is None or v < 0:
            raise ValueError(f"Age must be zero or a positive number of years. Got: {v!r}")
        return v

    @field_validator("weight")
    @classmethod
    def validate_weight(cls, v: Optional[float]) -> float:
        if v is None or not v > 0:
            raise ValueError(f"Weight must be greater than zero. Got: {v!r}")
        return v

    @field_validator("doctor")
    @classmethod
    def validate_doctor(cls, v: Optional[str]) -> Optional[str]:
        """None unassigns; otherwise the reference must be a usable name."""
        if v is None:
            return v
        return _require_name(v)

    @classmethod
    def create(
        cls,
        name: Optional[str] = None,
        size: Optional[str] = None,
        type: Optional[str] = None,
        age: Optional[int] = None,
        weight: Optional[float] = None,
        doctor: Optional[str] = None,
    ) -> "Pet":
        """Build a pet, leaving any illegal field unset instead of raising."""
        pet = cls()
        for field_name, value in (
            ("name", name),
            ("size", size),
            ("type", type),
            ("age", age),
            ("weight", weight),
            ("doctor", doctor),
        ):
            if value is not None:
                pet.try_set(field_name, value)
        return pet

    def set_size(self, size: Any) -> bool:
        return self.try_set("size", size)

    def set_type(self, pet_type: Any) -> bool:
        return self.try_set("type", pet_type)

    def set_age(self, age: Any) -> bool:
        return self.try_set("age", age)

    def set_weight(self, weight: Any) -> bool:
        return self.try_set("weight", weight)

    def set_doctor(self, doctor_name: Optional[str]) -> bool:
        """Point this pet at a doctor by name (None unassigns)."""
        return self.try_set("doctor", doctor_name)

    @property
    def doctor_key(self) -> Optional[str]:
        """Case-folded name of the assigned doctor."""
        return fold_name(self.doctor)

    def has_doctor(self) -> bool:
        return self.doctor is not None

    def is_assigned_to(self, doctor_name: Optional[str]) -> bool:
        """Whether this pet's doctor reference matches doctor_name, ignoring case."""
        return self.doctor is not None and self.doctor_key == fold_name(doctor_name)

    def is_overweight(self) -> bool:
        """Whether the pet's weight exceeds the threshold for its type and size.

        Returns:
            bool: False when type, size or weight is unset
        """
        pet_type = PetType.parse(self.type)
        pet_size = PetSize.parse(self.size)
        if pet_type is None or pet_size is None or self.weight is None:
            return False
        return self.weight > OVERWEIGHT_THRESHOLDS[(pet_type, pet_size)]

    def to_display_dict(self) -> dict[str, Any]:
        return {
            "Name": self.name,
            "Size": self.size,
            "Type": self.type,
            "Age": self.age,
            "Weight": f"{self.weight}kg" if self.weight is not None else None,
            "Doctor": self.doctor if self.doctor is not None else "none assigned",
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Pet):
            return NotImplemented
        return (
            _fold(self.name) == _fold(other.name)
            and _fold(self.size) == _fold(other.size)
            and _fold(self.type) == _fold(other.type)
            and self.age == other.age
            and self.weight == other.weight
            and self.doctor_key == other.doctor_key
        )

