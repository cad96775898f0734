"""Tests for RegistryPersistence."""

import pytest
from unittest.mock import Mock

from vetclinic.adapters.storage import FileLineStore, RegistryPersistence
from vetclinic.domain.ports import always_skip
from vetclinic.domain.records import Doctor, Pet
from vetclinic.domain.registry import Registry


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "HospitalManagement.txt"


@pytest.fixture
def persistence(data_file):
    store = FileLineStore(path=data_file)
    return RegistryPersistence(store, store)


@pytest.fixture
def registry():
    reg = Registry()
    reg.add_doctor(Doctor.create("Bob", "cat"))
    reg.add_pet(Pet.create("Whiskers", "small", "cat", 2, 3.5, doctor="Bob"))
    return reg


class TestSave:
    """Test suite for writing a registry to disk."""

    def test_save_writes_export(self, persistence, registry, data_file):
        result = persistence.save(registry)
        assert result.is_success()
        assert result.value.pets_exported == 1
        assert result.value.doctors_exported == 1
        assert data_file.read_text(encoding="utf-8") == persistence.codec.export(registry)

    def test_save_empty_registry(self, persistence, data_file):
        result = persistence.save(Registry())
        assert result.error_type == "EmptySourceError"
        assert not data_file.exists()

    def test_confirm_not_asked_for_new_file(self, persistence, registry):
        confirm = Mock(return_value=False)
        assert persistence.save(registry, confirm_overwrite=confirm).is_success()
        confirm.assert_not_called()

    def test_overwrite_declined(self, persistence, registry, data_file):
        data_file.write_text("keep me\n", encoding="utf-8")
        confirm = Mock(return_value=False)
        result = persistence.save(registry, confirm_overwrite=confirm)
        assert result.error_type == "SaveCancelled"
        confirm.assert_called_once()
        assert data_file.read_text(encoding="utf-8") == "keep me\n"

    def test_overwrite_accepted(self, persistence, registry, data_file):
        data_file.write_text("old\n", encoding="utf-8")
        result = persistence.save(registry, confirm_overwrite=Mock(return_value=True))
        assert result.is_success()
        assert data_file.read_text(encoding="utf-8").startswith("Pets\n")


class TestLoad:
    """Test suite for reading a registry from disk."""

    def test_load_round_trip(self, persistence, registry):
        persistence.save(registry)
        restored = Registry()
        result = persistence.load(restored)
        assert result.is_success()
        assert restored.list_pets() == registry.list_pets()
        assert restored.list_doctors() == registry.list_doctors()
        assert restored.find_pet("whiskers").doctor == "Bob"

    def test_load_missing_file(self, persistence):
        result = persistence.load(Registry())
        assert result.error_type == "SourceNotFoundError"

    def test_load_blank_file(self, persistence, data_file):
        data_file.write_text("\n", encoding="utf-8")
        assert persistence.load(Registry()).error_type == "EmptySourceError"

    def test_load_malformed_file_reports_source(self, persistence, data_file):
        data_file.write_text("Doctors\nname Bob\n", encoding="utf-8")
        reg = Registry()
        result = persistence.load(reg)
        assert result.error_type == "MalformedRecordError"
        assert result.error_details["source"] == str(data_file)
        assert result.error_details["line_number"] == 3
        assert reg.is_empty()

    def test_load_into_populated_registry_with_skip(self, persistence, registry):
        persistence.save(registry)
        registry.update_pet("Whiskers", age=9)
        result = persistence.load(registry, on_conflict=always_skip)
        assert result.value.pets_skipped == 1
        assert registry.find_pet("Whiskers").age == 9
