"""Assignment confirmation service.

Assigning a pet to a doctor can need the operator's approval twice: once when
the pet already has a different doctor, and once when the doctor does not
specialise in the pet's type. The Registry itself assigns unconditionally; the
interactive layer and the import merge run the checks here first.

Architecture:
    - Pure domain service with zero infrastructure dependencies
    - The confirmation oracle is injected (Rich prompt in the CLI, a stub in tests)
"""

import logging
from typing import Optional

from vetclinic.domain.ports import ConfirmCallback, always_confirm
from vetclinic.domain.records import Doctor, Pet

logger = logging.getLogger(__name__)


class AssignmentGuard:
    """Runs the reassignment and specialisation confirmations for a pet/doctor pair.

    Example Usage:
        ```python
        guard = AssignmentGuard(confirm=lambda prompt: Confirm.ask(prompt))
        if guard.approve(pet, doctor):
            registry.assign_doctor(pet.name, doctor.name)
        ```
    """

    def __init__(self, confirm: Optional[ConfirmCallback] = None):
        """Initialize the guard.

        Parameters:
            confirm: Yes/no oracle; approves everything when None
        """
        self.confirm = confirm or always_confirm

    @staticmethod
    def reassignment_prompt(pet: Pet, doctor: Doctor) -> Optional[str]:
        """Prompt to show when the pet already has another doctor, else None."""
        if pet.has_doctor() and not pet.is_assigned_to(doctor.name):
            return (
                f"'{pet.name}' is currently assigned to Doctor {pet.doctor}. "
                "Are you sure that you want to change doctors?"
            )
        return None

    @staticmethod
    def specialisation_prompt(pet: Pet, doctor: Doctor) -> Optional[str]:
        """Prompt to show when the doctor does not treat the pet's type, else None."""
        if pet.type is None or doctor.specialisation is None or doctor.treats(pet.type):
            return None
        return (
            f"Doctor {doctor.name} does not specialise in {pet.type}s. "
            "Are you sure that you want to switch to this doctor?"
        )

    def confirm_reassignment(self, pet: Pet, doctor: Doctor) -> bool:
        prompt = self.reassignment_prompt(pet, doctor)
        return prompt is None or self.confirm(prompt)

    def confirm_specialisation(self, pet: Pet, doctor: Doctor) -> bool:
        prompt = self.specialisation_prompt(pet, doctor)
        return prompt is None or self.confirm(prompt)

    def approve(self, pet: Pet, doctor: Doctor) -> bool:
        """Run both confirmations in order, stopping at the first refusal.

        Returns:
            bool: True if the assignment may proceed
        """
        if not self.confirm_reassignment(pet, doctor):
            logger.info(f"Reassignment of '{pet.name}' to '{doctor.name}' declined")
            return False
        if not self.confirm_specialisation(pet, doctor):
            logger.info(f"Assignment of '{pet.name}' to non-specialist '{doctor.name}' declined")
            return False
        return True
