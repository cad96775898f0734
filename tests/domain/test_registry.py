"""Tests for the Registry.

These tests verify name uniqueness, referential integrity between pets and
doctors, listings and the merge operations used by import.
"""

import pytest
from unittest.mock import Mock

from vetclinic.domain.records import Doctor, Pet
from vetclinic.domain.registry import Registry
from vetclinic.domain.services import AssignmentGuard


@pytest.fixture
def registry():
    """Registry with two doctors and three pets."""
    reg = Registry()
    reg.add_doctor(Doctor.create("Alice", "dog"))
    reg.add_doctor(Doctor.create("Bob", "cat"))
    reg.add_pet(Pet.create("Rex", "large", "dog", 4, 30.0, doctor="alice"))
    reg.add_pet(Pet.create("Fido", "small", "dog", 2, 5.0, doctor="Alice"))
    reg.add_pet(Pet.create("Tom", "medium", "cat", 3, 5.5))
    return reg


class TestAddAndLookup:
    """Test suite for insertion and lookup."""

    def test_add_doctor(self):
        reg = Registry()
        result = reg.add_doctor(Doctor.create("Alice", "dog"))
        assert result.is_success()
        assert reg.doctor_count == 1
        assert reg.find_doctor("ALICE").name == "Alice"

    def test_duplicate_doctor_rejected_ignoring_case(self, registry):
        result = registry.add_doctor(Doctor.create("alice", "cat"))
        assert result.is_failure()
        assert result.error_type == "DuplicateNameError"
        assert registry.doctor_count == 2
        assert registry.find_doctor("Alice").specialisation == "dog"

    def test_duplicate_pet_rejected(self, registry):
        result = registry.add_pet(Pet.create("REX", "small", "dog", 1, 2.0))
        assert result.error_type == "DuplicateNameError"
        assert registry.find_pet("rex").size == "large"

    def test_nameless_records_rejected(self):
        reg = Registry()
        assert reg.add_doctor(Doctor.create()).error_type == "IncompleteRecordError"
        assert reg.add_pet(Pet.create(size="small")).error_type == "IncompleteRecordError"
        assert reg.is_empty()

    def test_sentinel_doctor_name_rejected(self, registry):
        result = registry.add_doctor(Doctor.create("No Doctor Assigned", "dog"))
        assert result.error_type == "InvalidValueError"
        assert result.error_details["fields"] == ["name"]
        assert registry.doctor_count == 2

    def test_pet_with_unknown_doctor_rejected(self, registry):
        result = registry.add_pet(Pet.create("Ghost", "small", "cat", 1, 2.0, doctor="Nobody"))
        assert result.error_type == "RecordNotFoundError"
        assert not registry.has_pet("Ghost")

    def test_doctor_reference_normalised_to_stored_name(self, registry):
        assert registry.find_pet("Rex").doctor == "Alice"
        assert registry.doctor_of("rex").name == "Alice"

    def test_doctor_of_unassigned_pet(self, registry):
        assert registry.doctor_of("Tom") is None
        assert registry.doctor_of("Nobody") is None


class TestListings:
    """Test suite for listing operations."""

    def test_storage_order(self, registry):
        assert [pet.name for pet in registry.list_pets()] == ["Rex", "Fido", "Tom"]

    def test_sorted_ignoring_case(self):
        reg = Registry()
        for name in ("charlie", "Alpha", "bravo"):
            reg.add_doctor(Doctor.create(name, "dog"))
        assert [d.name for d in reg.list_doctors(sort=True)] == ["Alpha", "bravo", "charlie"]
        # Sorting returns a new list; storage order is untouched
        assert [d.name for d in reg.list_doctors()] == ["charlie", "Alpha", "bravo"]

    def test_pets_of(self, registry):
        assert [pet.name for pet in registry.pets_of("ALICE")] == ["Rex", "Fido"]
        assert registry.pets_of("Bob") == []


class TestRemoval:
    """Test suite for removal and cascade unassignment."""

    def test_remove_doctor_unassigns_pets(self, registry):
        result = registry.remove_doctor("alice")
        assert result.is_success()
        assert not registry.has_doctor("Alice")
        assert registry.find_pet("Rex").doctor is None
        assert registry.find_pet("Fido").doctor is None
        assert registry.pet_count == 3

    def test_remove_doctor_leaves_other_assignments(self, registry):
        registry.assign_doctor("Tom", "Bob")
        registry.remove_doctor("Alice")
        assert registry.find_pet("Tom").doctor == "Bob"
        assert [pet.name for pet in registry.pets_of("Bob")] == ["Tom"]
        assert all(not pet.is_assigned_to("Alice") for pet in registry.list_pets())

    def test_remove_unknown_doctor(self, registry):
        result = registry.remove_doctor("Nobody")
        assert result.error_type == "RecordNotFoundError"
        assert result.error_details["kind"] == "doctor"
        assert registry.doctor_count == 2

    def test_remove_pet_leaves_doctors(self, registry):
        assert registry.remove_pet("REX").is_success()
        assert not registry.has_pet("Rex")
        assert registry.doctor_count == 2

    def test_remove_unknown_pet(self, registry):
        assert registry.remove_pet("Nobody").error_type == "RecordNotFoundError"


class TestNameLock:
    """Test suite for renaming records that are already registered."""

    def test_registered_pet_cannot_be_renamed(self, registry):
        pet = registry.find_pet("rex")
        assert pet.set_name("Max") is False
        assert pet.name == "Rex"

        assert registry.add_pet(Pet.create("Max", "small", "dog", 1, 3.0)).is_success()
        assert sorted(p.name for p in registry.list_pets()) == ["Fido", "Max", "Rex", "Tom"]

    def test_direct_rename_raises(self, registry):
        pet = registry.find_pet("Rex")
        with pytest.raises(ValueError):
            pet.name = "Max"
        assert registry.find_pet("Rex") is pet

    def test_registered_doctor_cannot_be_renamed(self, registry):
        doctor = registry.find_doctor("bob")
        assert doctor.set_name("Robert") is False
        assert registry.find_doctor("Bob") is doctor
        assert registry.find_doctor("Robert") is None

    def test_casing_change_allowed(self, registry):
        pet = registry.find_pet("Rex")
        assert pet.set_name("REX")
        assert registry.find_pet("rex").name == "REX"

    def test_removed_record_can_be_renamed(self, registry):
        pet = registry.remove_pet("Rex").value
        assert pet.set_name("Max")
        assert registry.add_pet(pet).is_success()
        assert registry.find_pet("Max") is pet

    def test_unregistered_record_can_be_renamed(self):
        doctor = Doctor.create("Alice", "dog")
        assert not doctor.is_registered
        assert doctor.set_name("Alicia")


class TestAssignment:
    """Test suite for assigning and unassigning doctors."""

    def test_assign_doctor(self, registry):
        result = registry.assign_doctor("tom", "BOB")
        assert result.is_success()
        assert registry.find_pet("Tom").doctor == "Bob"

    def test_assign_replaces_previous_doctor(self, registry):
        registry.assign_doctor("Rex", "Bob")
        assert registry.find_pet("Rex").doctor == "Bob"
        assert [pet.name for pet in registry.pets_of("Alice")] == ["Fido"]

    def test_assign_unknown_records(self, registry):
        pet_result = registry.assign_doctor("Nobody", "Alice")
        assert pet_result.error_details["kind"] == "pet"
        doctor_result = registry.assign_doctor("Tom", "Nobody")
        assert doctor_result.error_details["kind"] == "doctor"
        assert registry.find_pet("Tom").doctor is None

    def test_unassign_pet(self, registry):
        assert registry.unassign_pet("Rex").is_success()
        assert registry.find_pet("Rex").doctor is None


class TestUpdatePet:
    """Test suite for editing pet attributes."""

    def test_update_fields(self, registry):
        result = registry.update_pet("Tom", size="large", age=4, weight=9.0)
        assert result.is_success()
        pet = registry.find_pet("Tom")
        assert (pet.size, pet.type, pet.age, pet.weight) == ("large", "cat", 4, 9.0)

    def test_none_keeps_previous_value(self, registry):
        registry.update_pet("Tom")
        pet = registry.find_pet("Tom")
        assert (pet.size, pet.age, pet.weight) == ("medium", 3, 5.5)

    def test_invalid_value_applies_nothing(self, registry):
        result = registry.update_pet("Tom", size="large", weight=-1.0)
        assert result.error_type == "InvalidValueError"
        assert result.error_details["fields"] == ["weight"]
        assert registry.find_pet("Tom").size == "medium"

    def test_update_unknown_pet(self, registry):
        assert registry.update_pet("Nobody", age=1).error_type == "RecordNotFoundError"


class TestMerge:
    """Test suite for merging imported records into existing ones."""

    def test_merge_doctor_updates_fields_and_pet_references(self, registry):
        result = registry.merge_doctor(Doctor.create("ALICE", "cat"))
        assert result.is_success()
        doctor = registry.find_doctor("alice")
        assert doctor.name == "ALICE"
        assert doctor.specialisation == "cat"
        assert registry.find_pet("Rex").doctor == "ALICE"

    def test_merge_doctor_keeps_value_for_unset_field(self, registry):
        registry.merge_doctor(Doctor.create("Bob"))
        assert registry.find_doctor("Bob").specialisation == "cat"

    def test_merge_pet_replaces_fields(self, registry):
        registry.merge_pet(Pet.create("rex", "small", "dog", 5, 7.0, doctor="Alice"))
        pet = registry.find_pet("Rex")
        assert (pet.name, pet.size, pet.age, pet.weight, pet.doctor) == ("rex", "small", 5, 7.0, "Alice")

    def test_merge_pet_without_doctor_clears_link(self, registry):
        registry.merge_pet(Pet.create("Rex", "large", "dog", 4, 30.0))
        assert registry.find_pet("Rex").doctor is None

    def test_merge_pet_doctor_change_confirmed(self, registry):
        confirm = Mock(return_value=True)
        registry.merge_pet(Pet.create("Rex", "large", "dog", 4, 30.0, doctor="Bob"), AssignmentGuard(confirm))
        assert registry.find_pet("Rex").doctor == "Bob"
        # Reassignment and specialisation mismatch are both asked
        assert confirm.call_count == 2

    def test_merge_pet_doctor_change_declined(self, registry):
        confirm = Mock(return_value=False)
        registry.merge_pet(Pet.create("Rex", "large", "dog", 6, 30.0, doctor="Bob"), AssignmentGuard(confirm))
        pet = registry.find_pet("Rex")
        assert pet.doctor == "Alice"
        assert pet.age == 6
        confirm.assert_called_once()

    def test_merge_pet_same_doctor_not_confirmed(self, registry):
        confirm = Mock(return_value=False)
        registry.merge_pet(Pet.create("Rex", "large", "dog", 4, 30.0, doctor="ALICE"), AssignmentGuard(confirm))
        assert registry.find_pet("Rex").doctor == "Alice"
        confirm.assert_not_called()

    def test_merge_pet_unknown_doctor(self, registry):
        result = registry.merge_pet(Pet.create("Rex", "large", "dog", 9, 30.0, doctor="Nobody"))
        assert result.error_type == "RecordNotFoundError"
        assert registry.find_pet("Rex").age == 4

    def test_merge_unknown_records(self, registry):
        assert registry.merge_doctor(Doctor.create("Zed", "dog")).is_failure()
        assert registry.merge_pet(Pet.create("Zed")).is_failure()
