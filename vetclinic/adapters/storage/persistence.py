"""Registry persistence service.

Glues the TextCodec to a line source/sink: `load` reads the snapshot and
merges it into a registry, `save` writes the registry out. Missing and blank
files come back as Result failures the caller reports; nothing here prompts
except through the callbacks it is given.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from vetclinic.adapters.text_codec import ImportSummary, TextCodec
from vetclinic.domain.ports import (
    ConfirmCallback,
    ConflictCallback,
    EmptySourceError,
    LineSinkPort,
    LineSourcePort,
    PersistenceError,
    Result,
    always_merge,
)
from vetclinic.domain.registry import Registry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportSummary:
    """Counts from one save."""
    pets_exported: int
    doctors_exported: int


class RegistryPersistence:
    """Loads and saves a Registry through a line source/sink.

    Parameters:
        source: Where snapshots are read from
        sink: Where snapshots are written to (often the same object as source)
        codec: Text codec (a default TextCodec when None)

    Example Usage:
        ```python
        store = FileLineStore(path="HospitalManagement.txt")
        persistence = RegistryPersistence(store, store)
        result = persistence.load(registry, on_conflict=ask_operator, confirm=ask_yes_no)
        ```
    """

    def __init__(self, source: LineSourcePort, sink: LineSinkPort, codec: Optional[TextCodec] = None):
        self.source = source
        self.sink = sink
        self.codec = codec or TextCodec()

    def load(
        self,
        registry: Registry,
        on_conflict: ConflictCallback = always_merge,
        confirm: Optional[ConfirmCallback] = None,
    ) -> Result[ImportSummary]:
        """Read the snapshot and merge it into the registry.

        Returns:
            Result[ImportSummary]: Counts, or the source's failure
            (SourceNotFoundError, EmptySourceError, PersistenceError) or the
            codec's MalformedRecordError
        """
        read_result = self.source.read_lines()
        if read_result.is_failure():
            logger.info(f"Nothing loaded from {self.source.describe()}: {read_result.error}")
            return read_result

        result = self.codec.import_lines(read_result.value, registry, on_conflict, confirm)
        if result.is_failure():
            details = dict(result.error_details or {})
            details["source"] = self.source.describe()
            return Result.failure_result(result.error, error_type=result.error_type, error_details=details)
        return result

    def save(
        self,
        registry: Registry,
        confirm_overwrite: Optional[ConfirmCallback] = None,
    ) -> Result[ExportSummary]:
        """Write the registry, replacing the sink's content.

        Parameters:
            registry: Registry to write
            confirm_overwrite: Asked before replacing a non-blank file; declining
                aborts the save. Overwrites silently when None.

        Returns:
            Result[ExportSummary]: Counts, or a failure with error_type
            EmptySourceError (nothing to write), PersistenceError (declined or
            write failed)
        """
        if registry.is_empty():
            return Result.failure_result(
                EmptySourceError("There isn't any data which can be written to file")
            )

        if (
            confirm_overwrite is not None
            and isinstance(self.sink, LineSourcePort)
            and not self.sink.is_blank()
        ):
            prompt = (
                f"Any data already in {self.sink.describe()} will be overwritten. "
                "Would you like to proceed?"
            )
            if not confirm_overwrite(prompt):
                return Result.failure_result(
                    PersistenceError("Save cancelled; existing data was kept", source=self.sink.describe()),
                    error_type="SaveCancelled",
                )

        write_result = self.sink.write_lines(self.codec.export_lines(registry))
        if write_result.is_failure():
            return write_result

        summary = ExportSummary(pets_exported=registry.pet_count, doctors_exported=registry.doctor_count)
        logger.info(f"Saved {summary.pets_exported} pet(s) and {summary.doctors_exported} doctor(s)")
        return Result.success_result(summary)
