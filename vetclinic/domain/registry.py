"""Record Registry - the authoritative store of doctors and pets.

The Registry owns both collections for the lifetime of a session and enforces
the integrity rules at every mutating operation:

    - No two doctors (or two pets) share a name, ignoring case
    - A pet's doctor reference always names a doctor in the registry; removing
      a doctor unassigns every pet that referenced it in the same call
    - Categorical fields only ever hold legal values (enforced by the models)
    - A registered record keeps its case-folded name; only its casing may change

Expected failures come back as Result values (DuplicateNameError,
RecordNotFoundError, IncompleteRecordError, InvalidValueError); nothing here
prints or prompts.

Architecture:
    - Pure domain component; an explicit Registry value is passed to the codec
      and the CLI instead of any process-wide state
    - Records are keyed by their case-folded name, with insertion-ordered dicts
      serving as storage order
"""

import logging
from typing import Optional

from vetclinic.domain.ports import (
    DuplicateNameError,
    IncompleteRecordError,
    InvalidValueError,
    RecordNotFoundError,
    Result,
)
from vetclinic.domain.records import NO_DOCTOR_ASSIGNED, Doctor, Pet, fold_name
from vetclinic.domain.services import AssignmentGuard

logger = logging.getLogger(__name__)


class Registry:
    """In-memory owner of all Doctor and Pet records.

    Example Usage:
        ```python
        registry = Registry()
        registry.add_doctor(Doctor.create("Bob", "cat"))
        registry.add_pet(Pet.create("Whiskers", "small", "cat", 2, 3.5))
        registry.assign_doctor("whiskers", "bob")
        registry.remove_doctor("BOB")      # Whiskers is now unassigned
        ```
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._doctors: dict[str, Doctor] = {}
        self._pets: dict[str, Pet] = {}

    # ------------------------------------------------------------------
    # Counts and lookups
    # ------------------------------------------------------------------

    @property
    def doctor_count(self) -> int:
        return len(self._doctors)

    @property
    def pet_count(self) -> int:
        return len(self._pets)

    def is_empty(self) -> bool:
        return not self._doctors and not self._pets

    def has_doctor(self, name: Optional[str]) -> bool:
        return fold_name(name) in self._doctors

    def has_pet(self, name: Optional[str]) -> bool:
        return fold_name(name) in self._pets

    def find_doctor(self, name: Optional[str]) -> Optional[Doctor]:
        """Look up a doctor by exact name, ignoring case."""
        return self._doctors.get(fold_name(name))

    def find_pet(self, name: Optional[str]) -> Optional[Pet]:
        """Look up a pet by exact name, ignoring case."""
        return self._pets.get(fold_name(name))

    def doctor_of(self, pet_name: str) -> Optional[Doctor]:
        """The doctor assigned to a pet, or None if the pet is unknown or unassigned."""
        pet = self.find_pet(pet_name)
        if pet is None or not pet.has_doctor():
            return None
        return self.find_doctor(pet.doctor)

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    def list_doctors(self, sort: bool = False) -> list[Doctor]:
        """All doctors, in storage order or sorted by case-folded name.

        Parameters:
            sort: Sort ascending by name, ignoring case (stable for equal keys)

        Returns:
            list[Doctor]: A new list; the records themselves are live
        """
        doctors = list(self._doctors.values())
        if sort:
            doctors.sort(key=lambda doctor: doctor.name_key)
        return doctors

    def list_pets(self, sort: bool = False) -> list[Pet]:
        """All pets, in storage order or sorted by case-folded name."""
        pets = list(self._pets.values())
        if sort:
            pets.sort(key=lambda pet: pet.name_key)
        return pets

    def pets_of(self, doctor_name: str) -> list[Pet]:
        """Pets whose doctor reference matches doctor_name, in storage order."""
        return [pet for pet in self._pets.values() if pet.is_assigned_to(doctor_name)]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_doctor(self, doctor: Doctor) -> Result[Doctor]:
        """Insert a doctor unless the name is unset or already taken.

        Returns:
            Result[Doctor]: The inserted doctor, or a failure with error_type
            IncompleteRecordError, InvalidValueError (reserved name) or
            DuplicateNameError (registry unchanged)
        """
        if doctor.name_key is None:
            return Result.failure_result(IncompleteRecordError("Doctor has no name"))
        if doctor.name_key == NO_DOCTOR_ASSIGNED:
            return Result.failure_result(
                InvalidValueError(f"'{doctor.name}' is reserved and cannot be used as a doctor name", fields=["name"])
            )
        if doctor.name_key in self._doctors:
            return Result.failure_result(
                DuplicateNameError(f"There is already a doctor named '{doctor.name}'", name=doctor.name)
            )

        doctor.lock_name()
        self._doctors[doctor.name_key] = doctor
        logger.debug(f"Added doctor '{doctor.name}'")
        return Result.success_result(doctor)

    def add_pet(self, pet: Pet) -> Result[Pet]:
        """Insert a pet unless the name is unset or taken, or its doctor is unknown.

        Returns:
            Result[Pet]: The inserted pet, or a failure with error_type
            IncompleteRecordError, DuplicateNameError or RecordNotFoundError
        """
        if pet.name_key is None:
            return Result.failure_result(IncompleteRecordError("Pet has no name"))
        if pet.name_key in self._pets:
            return Result.failure_result(
                DuplicateNameError(f"There is already a pet named '{pet.name}'", name=pet.name)
            )
        if pet.has_doctor():
            doctor = self.find_doctor(pet.doctor)
            if doctor is None:
                return Result.failure_result(
                    RecordNotFoundError(f"There are no doctors named '{pet.doctor}'", name=pet.doctor, kind="doctor")
                )
            pet.set_doctor(doctor.name)

        pet.lock_name()
        self._pets[pet.name_key] = pet
        logger.debug(f"Added pet '{pet.name}'")
        return Result.success_result(pet)

    def remove_doctor(self, name: str) -> Result[Doctor]:
        """Remove a doctor and unassign it from every pet that referenced it.

        Returns:
            Result[Doctor]: The removed doctor, or a
            RecordNotFoundError failure
        """
        key = fold_name(name)
        doctor = self._doctors.pop(key, None)
        if doctor is None:
            return Result.failure_result(
                RecordNotFoundError(f"There are no doctors named '{name}'", name=name, kind="doctor")
            )
        doctor.unlock_name()

        unassigned = 0
        for pet in self._pets.values():
            if pet.doctor_key == key:
                pet.set_doctor(None)
                unassigned += 1

        logger.debug(f"Removed doctor '{doctor.name}', unassigned {unassigned} pet(s)")
        return Result.success_result(doctor)

    def remove_pet(self, name: str) -> Result[Pet]:
        """Remove a pet; doctors are unaffected."""
        pet = self._pets.pop(fold_name(name), None)
        if pet is None:
            return Result.failure_result(
                RecordNotFoundError(f"There are no pets named '{name}'", name=name, kind="pet")
            )
        pet.unlock_name()

        logger.debug(f"Removed pet '{pet.name}'")
        return Result.success_result(pet)

    def assign_doctor(self, pet_name: str, doctor_name: str) -> Result[Pet]:
        """Point a pet at a doctor, replacing any previous assignment.

        Confirmation (existing doctor, specialisation mismatch) is the caller's
        job; see AssignmentGuard.

        Returns:
            Result[Pet]: The updated pet, or a RecordNotFoundError failure naming
            whichever record is missing
        """
        pet = self.find_pet(pet_name)
        if pet is None:
            return Result.failure_result(
                RecordNotFoundError(f"There are no pets named '{pet_name}'", name=pet_name, kind="pet")
            )
        doctor = self.find_doctor(doctor_name)
        if doctor is None:
            return Result.failure_result(
                RecordNotFoundError(f"There are no doctors named '{doctor_name}'", name=doctor_name, kind="doctor")
            )

        pet.set_doctor(doctor.name)
        logger.debug(f"Assigned pet '{pet.name}' to doctor '{doctor.name}'")
        return Result.success_result(pet)

    def unassign_pet(self, pet_name: str) -> Result[Pet]:
        """Clear a pet's doctor reference."""
        pet = self.find_pet(pet_name)
        if pet is None:
            return Result.failure_result(
                RecordNotFoundError(f"There are no pets named '{pet_name}'", name=pet_name, kind="pet")
            )
        pet.set_doctor(None)
        return Result.success_result(pet)

    def update_pet(
        self,
        name: str,
        size: Optional[str] = None,
        type: Optional[str] = None,
        age: Optional[int] = None,
        weight: Optional[float] = None,
    ) -> Result[Pet]:
        """Edit a pet's attributes; None leaves a field at its previous value.

        Either every supplied value is applied or none is.

        Returns:
            Result[Pet]: The updated pet, or a RecordNotFoundError /
            InvalidValueError failure (pet unchanged)
        """
        pet = self.find_pet(name)
        if pet is None:
            return Result.failure_result(
                RecordNotFoundError(f"There are no pets named '{name}'", name=name, kind="pet")
            )

        changes = {
            field_name: value
            for field_name, value in (("size", size), ("type", type), ("age", age), ("weight", weight))
            if value is not None
        }
        candidate = pet.model_copy()
        rejected = [field_name for field_name, value in changes.items() if not candidate.try_set(field_name, value)]
        if rejected:
            return Result.failure_result(
                InvalidValueError(f"Invalid value for {', '.join(rejected)}", fields=rejected)
            )

        for field_name, value in changes.items():
            pet.try_set(field_name, value)
        logger.debug(f"Updated pet '{pet.name}': {sorted(changes)}")
        return Result.success_result(pet)

    def merge_doctor(self, incoming: Doctor) -> Result[Doctor]:
        """Overwrite the matching doctor's fields with incoming's values.

        Illegal incoming values (left unset by the lenient constructor) keep
        the existing value. Pets assigned to the doctor follow a change of
        name casing.
        """
        existing = self.find_doctor(incoming.name)
        if existing is None:
            return Result.failure_result(
                RecordNotFoundError(f"There are no doctors named '{incoming.name}'", name=incoming.name, kind="doctor")
            )

        existing.set_name(incoming.name)
        if incoming.specialisation is not None:
            existing.set_specialisation(incoming.specialisation)
        for pet in self.pets_of(existing.name):
            pet.set_doctor(existing.name)

        logger.debug(f"Merged doctor '{existing.name}'")
        return Result.success_result(existing)

    def merge_pet(self, incoming: Pet, guard: Optional[AssignmentGuard] = None) -> Result[Pet]:
        """Overwrite the matching pet's fields with incoming's values.

        The doctor link is replaced too: an unassigned incoming pet clears it,
        and a change of doctor goes through the guard's confirmations (after
        the new type is applied). A declined change keeps the previous link
        while the other fields are still merged.

        Returns:
            Result[Pet]: The merged pet, or a RecordNotFoundError failure if the
            pet, or the incoming doctor reference, is not registered
        """
        existing = self.find_pet(incoming.name)
        if existing is None:
            return Result.failure_result(
                RecordNotFoundError(f"There are no pets named '{incoming.name}'", name=incoming.name, kind="pet")
            )
        target = None
        if incoming.has_doctor():
            target = self.find_doctor(incoming.doctor)
            if target is None:
                return Result.failure_result(
                    RecordNotFoundError(
                        f"There are no doctors named '{incoming.doctor}'", name=incoming.doctor, kind="doctor"
                    )
                )

        existing.set_name(incoming.name)
        for field_name in ("size", "type", "age", "weight"):
            value = getattr(incoming, field_name)
            if value is not None:
                existing.try_set(field_name, value)

        guard = guard or AssignmentGuard()
        if target is None:
            existing.set_doctor(None)
        elif existing.is_assigned_to(target.name) or guard.approve(existing, target):
            existing.set_doctor(target.name)

        logger.debug(f"Merged pet '{existing.name}'")
        return Result.success_result(existing)
