"""Storage adapters for the clinic registry.

This module contains the file-backed implementation of the line source/sink
ports and the service that loads and saves a Registry through them.
"""

from vetclinic.adapters.storage.file_store import FileLineStore
from vetclinic.adapters.storage.persistence import ExportSummary, RegistryPersistence

__all__ = ["ExportSummary", "FileLineStore", "RegistryPersistence"]
