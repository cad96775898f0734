"""Tests for AssignmentGuard."""

from unittest.mock import Mock

from vetclinic.domain.records import Doctor, Pet
from vetclinic.domain.services import AssignmentGuard


class TestAssignmentGuard:
    """Test suite for the assignment confirmations."""

    def test_no_prompts_for_fresh_matching_assignment(self):
        confirm = Mock(return_value=False)
        guard = AssignmentGuard(confirm)
        assert guard.approve(Pet.create("Rex", "large", "dog", 4, 30.0), Doctor.create("Alice", "Dog"))
        confirm.assert_not_called()

    def test_reassignment_prompt(self):
        pet = Pet.create("Rex", "large", "dog", 4, 30.0, doctor="Alice")
        prompt = AssignmentGuard.reassignment_prompt(pet, Doctor.create("Bob", "dog"))
        assert "currently assigned to Doctor Alice" in prompt
        assert AssignmentGuard.reassignment_prompt(pet, Doctor.create("alice", "dog")) is None

    def test_specialisation_prompt(self):
        pet = Pet.create("Tom", "small", "cat", 1, 2.0)
        prompt = AssignmentGuard.specialisation_prompt(pet, Doctor.create("Alice", "dog"))
        assert "does not specialise in cats" in prompt
        assert AssignmentGuard.specialisation_prompt(pet, Doctor.create("Bob", "CAT")) is None

    def test_specialisation_unset_skips_prompt(self):
        assert AssignmentGuard.specialisation_prompt(Pet.create("Tom"), Doctor.create("Alice", "dog")) is None
        assert AssignmentGuard.specialisation_prompt(
            Pet.create("Tom", type="cat"), Doctor.create("Alice")
        ) is None

    def test_declined_reassignment_stops_before_specialisation(self):
        confirm = Mock(return_value=False)
        guard = AssignmentGuard(confirm)
        pet = Pet.create("Tom", "small", "cat", 1, 2.0, doctor="Bob")
        assert not guard.approve(pet, Doctor.create("Alice", "dog"))
        confirm.assert_called_once()

    def test_both_confirmations_accepted(self):
        confirm = Mock(return_value=True)
        guard = AssignmentGuard(confirm)
        pet = Pet.create("Tom", "small", "cat", 1, 2.0, doctor="Bob")
        assert guard.approve(pet, Doctor.create("Alice", "dog"))
        assert confirm.call_count == 2

    def test_default_oracle_approves(self):
        pet = Pet.create("Tom", "small", "cat", 1, 2.0, doctor="Bob")
        assert AssignmentGuard().approve(pet, Doctor.create("Alice", "dog"))
