"""Line-oriented text codec for registry snapshots.

Serializes a Registry to the clinic's flat text format and merges that format
back into a Registry.

Format:
    Pets
    type <dog|cat>
    size <small|medium|large>
    name <string>
    weight <decimal>
    age <integer>
    doctor <doctor-name>|no doctor assigned
    ...
    Doctors
    name <string>
    specialisation <dog|cat>
    ...

Each field is one `key value` line (single space, value unescaped), records
follow each other with no blank lines, and the `Pets` / `Doctors` headers are
exact tokens on their own line. Unset fields are written with an empty value.

Import policy:
    - The whole document is parsed before the registry is touched, so a
      malformed record fails the import with nothing applied
    - Doctors are applied before pets so pet doctor references resolve
    - A blank line, a section header, or any line that does not start a record
      ends the current section without error
    - A record whose name is already registered is handed to the caller's
      conflict callback (merge or skip); skipped records are not counted
    - Unrecognised categorical values and unknown doctor names are tolerated
      (field left unset) and logged as warnings
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from vetclinic.domain.enums import ConflictResolution
from vetclinic.domain.ports import (
    ConfirmCallback,
    ConflictCallback,
    EmptySourceError,
    MalformedRecordError,
    Result,
    always_merge,
)
from vetclinic.domain.records import NO_DOCTOR_ASSIGNED, Doctor, Pet
from vetclinic.domain.registry import Registry
from vetclinic.domain.services import AssignmentGuard

logger = logging.getLogger(__name__)

PETS_HEADER = "Pets"
DOCTORS_HEADER = "Doctors"
SECTION_HEADERS = (PETS_HEADER, DOCTORS_HEADER)

PET_KEYS = ("type", "size", "name", "weight", "age", "doctor")
DOCTOR_KEYS = ("name", "specialisation")


@dataclass
class ImportSummary:
    """Counts from one import.

    Attributes:
        doctors_imported: Doctors inserted or merged
        pets_imported: Pets inserted or merged
        doctors_skipped: Colliding doctors the caller chose to skip
        pets_skipped: Colliding pets the caller chose to skip
        doctors_rejected: Doctors the registry refused (reserved name, etc.)
        pets_rejected: Pets the registry refused
    """
    doctors_imported: int = 0
    pets_imported: int = 0
    doctors_skipped: int = 0
    pets_skipped: int = 0
    doctors_rejected: int = 0
    pets_rejected: int = 0

    @property
    def total_imported(self) -> int:
        return self.doctors_imported + self.pets_imported


@dataclass
class _RawRecord:
    """Field values of one record as read from the text, before conversion."""
    fields: dict[str, str]
    line_number: int


def _format_weight(weight: Optional[float]) -> str:
    return "" if weight is None else repr(float(weight))


def _format_optional(value) -> str:
    return "" if value is None else str(value)


class TextCodec:
    """Encoder/decoder between a Registry and the flat text format.

    Example Usage:
        ```python
        codec = TextCodec()
        text = codec.export(registry)

        restored = Registry()
        result = codec.import_text(text, restored, on_conflict=always_merge)
        if result.is_success():
            print(result.value.pets_imported)
        ```
    """

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_lines(self, registry: Registry) -> list[str]:
        """Render the registry as lines (no trailing newlines), pets first."""
        lines = [PETS_HEADER]
        for pet in registry.list_pets():
            lines.extend(self._pet_lines(pet, registry))
        lines.append(DOCTORS_HEADER)
        for doctor in registry.list_doctors():
            lines.extend(self._doctor_lines(doctor))
        return lines

    def export(self, registry: Registry) -> str:
        """Render the registry as a newline-terminated document."""
        text = "\n".join(self.export_lines(registry)) + "\n"
        logger.info(f"Exported {registry.pet_count} pet(s) and {registry.doctor_count} doctor(s)")
        return text

    @staticmethod
    def _pet_lines(pet: Pet, registry: Registry) -> list[str]:
        doctor = registry.find_doctor(pet.doctor) if pet.has_doctor() else None
        return [
            f"type {_format_optional(pet.type)}",
            f"size {_format_optional(pet.size)}",
            f"name {_format_optional(pet.name)}",
            f"weight {_format_weight(pet.weight)}",
            f"age {_format_optional(pet.age)}",
            f"doctor {doctor.name if doctor is not None else NO_DOCTOR_ASSIGNED}",
        ]

    @staticmethod
    def _doctor_lines(doctor: Doctor) -> list[str]:
        return [
            f"name {_format_optional(doctor.name)}",
            f"specialisation {_format_optional(doctor.specialisation)}",
        ]

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def import_text(
        self,
        text: str,
        registry: Registry,
        on_conflict: ConflictCallback = always_merge,
        confirm: Optional[ConfirmCallback] = None,
    ) -> Result[ImportSummary]:
        """Parse a document and merge its records into the registry.

        Parameters:
            text: Document in the flat text format
            registry: Registry to merge into
            on_conflict: Called once per record whose name is already registered
            confirm: Yes/no oracle for doctor reassignment during a pet merge

        Returns:
            Result[ImportSummary]: Counts on success, or a failure with error_type
            EmptySourceError (blank text) or MalformedRecordError (nothing applied)
        """
        return self.import_lines(text.splitlines(), registry, on_conflict, confirm)

    def import_lines(
        self,
        lines: Iterable[str],
        registry: Registry,
        on_conflict: ConflictCallback = always_merge,
        confirm: Optional[ConfirmCallback] = None,
    ) -> Result[ImportSummary]:
        """Line-sequence variant of import_text."""
        lines = [line.rstrip("\r\n") for line in lines]
        if not any(line.strip() for line in lines):
            return Result.failure_result(EmptySourceError("There is no data to import"))

        try:
            raw_doctors = self._parse_section(lines, DOCTORS_HEADER, DOCTOR_KEYS)
            raw_pets = self._parse_section(lines, PETS_HEADER, PET_KEYS)
            doctors = [self._build_doctor(raw) for raw in raw_doctors]
            pet_values = [self._convert_pet(raw) for raw in raw_pets]
        except MalformedRecordError as e:
            logger.error(f"Import abandoned: {e} (line {e.line_number})")
            return Result.failure_result(e)

        summary = ImportSummary()
        for doctor in doctors:
            self._apply_doctor(doctor, registry, on_conflict, summary)

        guard = AssignmentGuard(confirm)
        for values, line_number in pet_values:
            pet = self._build_pet(values, line_number, registry)
            self._apply_pet(pet, registry, on_conflict, guard, summary)

        logger.info(
            f"Imported {summary.pets_imported} pet(s) and {summary.doctors_imported} doctor(s) "
            f"({summary.pets_skipped + summary.doctors_skipped} skipped)"
        )
        return Result.success_result(summary)

    @staticmethod
    def _parse_section(lines: list[str], header: str, keys: tuple[str, ...]) -> list[_RawRecord]:
        """Collect the raw records that follow a section header.

        Raises:
            MalformedRecordError: If a record is cut short or a line carries the
                wrong key
        """
        try:
            index = lines.index(header) + 1
        except ValueError:
            logger.debug(f"No '{header}' section found")
            return []

        records: list[_RawRecord] = []
        while index < len(lines):
            line = lines[index]
            if not line.strip() or line in SECTION_HEADERS or line.partition(" ")[0] != keys[0]:
                break

            fields: dict[str, str] = {}
            for offset, expected_key in enumerate(keys):
                line_number = index + offset + 1
                if index + offset >= len(lines):
                    raise MalformedRecordError(
                        f"Record in '{header}' ends after {offset} of {len(keys)} lines",
                        line_number=line_number,
                        section=header,
                    )
                key, separator, value = lines[index + offset].partition(" ")
                if key != expected_key or not separator:
                    raise MalformedRecordError(
                        f"Expected '{expected_key}' line in '{header}', found {lines[index + offset]!r}",
                        line_number=line_number,
                        section=header,
                    )
                fields[key] = value

            records.append(_RawRecord(fields=fields, line_number=index + 1))
            index += len(keys)

        return records

    @staticmethod
    def _parse_number(raw: _RawRecord, key: str, convert, section: str):
        """Convert a numeric field; an empty value means unset."""
        value = raw.fields[key]
        if value == "":
            return None
        try:
            return convert(value)
        except ValueError:
            raise MalformedRecordError(
                f"Invalid {key} {value!r} in '{section}'",
                line_number=raw.line_number + PET_KEYS.index(key),
                section=section,
            )

    @staticmethod
    def _require_name(raw: _RawRecord, keys: tuple[str, ...], section: str) -> str:
        name = raw.fields["name"]
        if not name.strip():
            raise MalformedRecordError(
                f"Record in '{section}' has no name",
                line_number=raw.line_number + keys.index("name"),
                section=section,
            )
        return name

    def _build_doctor(self, raw: _RawRecord) -> Doctor:
        name = self._require_name(raw, DOCTOR_KEYS, DOCTORS_HEADER)
        specialisation = raw.fields["specialisation"]
        doctor = Doctor.create(name=name, specialisation=specialisation)
        if doctor.specialisation is None and specialisation:
            logger.warning(f"Ignoring unrecognised specialisation {specialisation!r} for doctor '{name}'")
        return doctor

    def _convert_pet(self, raw: _RawRecord) -> tuple[dict, int]:
        """Validate the pet's name and numeric lines; doctor resolution waits for the apply phase."""
        values = {
            "name": self._require_name(raw, PET_KEYS, PETS_HEADER),
            "size": raw.fields["size"],
            "type": raw.fields["type"],
            "age": self._parse_number(raw, "age", int, PETS_HEADER),
            "weight": self._parse_number(raw, "weight", float, PETS_HEADER),
            "doctor": raw.fields["doctor"],
        }
        return values, raw.line_number

    @staticmethod
    def _build_pet(values: dict, line_number: int, registry: Registry) -> Pet:
        doctor_name: Optional[str] = values["doctor"]
        if not doctor_name.strip() or doctor_name.casefold() == NO_DOCTOR_ASSIGNED:
            doctor_name = None
        elif not registry.has_doctor(doctor_name):
            logger.warning(
                f"Pet '{values['name']}' (line {line_number}) refers to unknown doctor '{doctor_name}'; "
                "importing it unassigned"
            )
            doctor_name = None

        pet = Pet.create(
            name=values["name"],
            size=values["size"],
            type=values["type"],
            age=values["age"],
            weight=values["weight"],
            doctor=doctor_name,
        )
        for field_name in ("size", "type", "age", "weight"):
            if getattr(pet, field_name) is None and values[field_name] not in (None, ""):
                logger.warning(f"Ignoring invalid {field_name} {values[field_name]!r} for pet '{pet.name}'")
        return pet

    @staticmethod
    def _record_outcome(result: Result, kind: str, name: Optional[str], summary: ImportSummary) -> None:
        if result.is_success():
            setattr(summary, f"{kind}s_imported", getattr(summary, f"{kind}s_imported") + 1)
            return
        logger.warning(f"Could not import {kind} '{name}': {result.error}")
        setattr(summary, f"{kind}s_rejected", getattr(summary, f"{kind}s_rejected") + 1)

    def _apply_doctor(
        self,
        doctor: Doctor,
        registry: Registry,
        on_conflict: ConflictCallback,
        summary: ImportSummary,
    ) -> None:
        existing = registry.find_doctor(doctor.name)
        if existing is None:
            self._record_outcome(registry.add_doctor(doctor), "doctor", doctor.name, summary)
            return

        if on_conflict(existing, doctor) == ConflictResolution.MERGE:
            self._record_outcome(registry.merge_doctor(doctor), "doctor", doctor.name, summary)
        else:
            logger.info(f"Information for doctor '{doctor.name}' was ignored")
            summary.doctors_skipped += 1

    def _apply_pet(
        self,
        pet: Pet,
        registry: Registry,
        on_conflict: ConflictCallback,
        guard: AssignmentGuard,
        summary: ImportSummary,
    ) -> None:
        existing = registry.find_pet(pet.name)
        if existing is None:
            self._record_outcome(registry.add_pet(pet), "pet", pet.name, summary)
            return

        if on_conflict(existing, pet) == ConflictResolution.MERGE:
            self._record_outcome(registry.merge_pet(pet, guard), "pet", pet.name, summary)
        else:
            logger.info(f"Information for pet '{pet.name}' was ignored")
            summary.pets_skipped += 1
