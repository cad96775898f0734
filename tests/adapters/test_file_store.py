"""Tests for FileLineStore."""

import pytest

from vetclinic.adapters.storage import FileLineStore
from vetclinic.infrastructure.config_manager import StorageConfig


class TestFileLineStore:
    """Test suite for the flat-file line store."""

    def test_requires_config_or_path(self):
        with pytest.raises(ValueError):
            FileLineStore()

    def test_from_storage_config(self, tmp_path):
        config = StorageConfig(data_file=str(tmp_path / "clinic.txt"), encoding="latin-1")
        store = FileLineStore(storage_config=config)
        assert store.path == tmp_path / "clinic.txt"
        assert store.encoding == "latin-1"

    def test_missing_file(self, tmp_path):
        store = FileLineStore(path=tmp_path / "missing.txt")
        result = store.read_lines()
        assert result.error_type == "SourceNotFoundError"
        assert result.error_details["source"] == str(tmp_path / "missing.txt")
        assert store.is_blank()

    def test_blank_file(self, tmp_path):
        data_file = tmp_path / "blank.txt"
        data_file.write_text("\n   \n", encoding="utf-8")
        store = FileLineStore(path=data_file)
        assert store.read_lines().error_type == "EmptySourceError"
        assert store.is_blank()

    def test_write_then_read(self, tmp_path):
        data_file = tmp_path / "clinic.txt"
        store = FileLineStore(path=data_file)

        write_result = store.write_lines(["Pets", "Doctors"])
        assert write_result.is_success()
        assert write_result.value == 2
        assert data_file.read_text(encoding="utf-8") == "Pets\nDoctors\n"

        read_result = store.read_lines()
        assert read_result.value == ["Pets", "Doctors"]
        assert not store.is_blank()

    def test_write_replaces_content(self, tmp_path):
        data_file = tmp_path / "clinic.txt"
        data_file.write_text("old content\nmore\n", encoding="utf-8")
        FileLineStore(path=data_file).write_lines(["Pets"])
        assert data_file.read_text(encoding="utf-8") == "Pets\n"

    def test_write_failure(self, tmp_path):
        store = FileLineStore(path=tmp_path / "no_such_dir" / "clinic.txt")
        result = store.write_lines(["Pets"])
        assert result.error_type == "PersistenceError"

    def test_describe(self, tmp_path):
        assert FileLineStore(path=tmp_path / "clinic.txt").describe() == str(tmp_path / "clinic.txt")
