"""Domain Ports - Result type, error taxonomy and persistence contracts.

The Registry and the persistence adapters report expected failures (duplicate
names, missing records, missing or blank files, malformed files) as Result
values rather than exceptions. The exceptions below name the failure kinds;
adapters raise them internally and convert them to Result failures at the
operation boundary, so callers branch on `error_type`.

Architecture:
    - Pure abstract interfaces with zero infrastructure dependencies
    - Adapters (file store, text codec) implement or consume these ports
    - The interactive layer supplies the confirmation callbacks
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar, Union, TYPE_CHECKING

from vetclinic.domain.enums import ConflictResolution

if TYPE_CHECKING:
    from vetclinic.domain.records import Doctor, Pet

T = TypeVar('T')


# ============================================================================
# Result Type for Success/Failure Communication
# ============================================================================

@dataclass(frozen=True)
class Result(Generic[T]):
    """Result type for communicating success or failure without exceptions.

    Attributes:
        success: True if the operation succeeded, False otherwise
        value: The successful result value (only present if success=True)
        error: Error message (only present if success=False)
        error_type: Name of the error kind (DuplicateNameError, RecordNotFoundError, etc.)
        error_details: Additional error context (name, line_number, source, etc.)

    Example:
        ```python
        result = registry.add_doctor(Doctor.create("Alice", "dog"))
        if result.is_failure() and result.error_type == "DuplicateNameError":
            console.print(result.error)
        ```
    """

    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    error_details: Optional[dict] = None

    @classmethod
    def success_result(cls, value: T = None) -> 'Result[T]':
        """Create a successful result.

        Parameters:
            value: The successful result value

        Returns:
            Result: Success result with the value
        """
        return cls(
            success=True,
            value=value,
            error=None,
            error_type=None,
            error_details=None
        )

    @classmethod
    def failure_result(
        cls,
        error: Union[str, Exception],
        error_type: Optional[str] = None,
        error_details: Optional[dict] = None
    ) -> 'Result[T]':
        """Create a failure result.

        Parameters:
            error: Error message or exception
            error_type: Name of the error kind (defaults to the exception class name)
            error_details: Additional context

        Returns:
            Result: Failure result with error information
        """
        error_message = str(error) if isinstance(error, Exception) else error
        error_type_name = error_type or (type(error).__name__ if isinstance(error, Exception) else "UnknownError")
        if error_details is None and isinstance(error, VetClinicError):
            error_details = error.details

        return cls(
            success=False,
            value=None,
            error=error_message,
            error_type=error_type_name,
            error_details=error_details or {}
        )

    def is_success(self) -> bool:
        """Check if result is successful."""
        return self.success

    def is_failure(self) -> bool:
        """Check if result is a failure."""
        return not self.success


# ============================================================================
# Custom Exception Hierarchy
# ============================================================================

class VetClinicError(Exception):
    """Base exception for registry and persistence errors.

    Attributes:
        details: Context for the failure (record name, line number, etc.)
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.details = details or {}


class DuplicateNameError(VetClinicError):
    """A record with the same name (ignoring case) is already registered."""

    def __init__(self, message: str, name: Optional[str] = None):
        super().__init__(message, {"name": name})
        self.name = name


class RecordNotFoundError(VetClinicError):
    """A lookup, removal or assignment referenced a name that is not registered."""

    def __init__(self, message: str, name: Optional[str] = None, kind: Optional[str] = None):
        super().__init__(message, {"name": name, "kind": kind})
        self.name = name
        self.kind = kind


class IncompleteRecordError(VetClinicError):
    """A record without a name was offered to the registry."""
    pass


class InvalidValueError(VetClinicError):
    """An edit supplied a value outside a field's legal range."""

    def __init__(self, message: str, fields: Optional[list[str]] = None):
        super().__init__(message, {"fields": fields or []})
        self.fields = fields or []


class SourceNotFoundError(VetClinicError):
    """The persistence source does not exist.

    Attributes:
        source: The source identifier that was not found
    """

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message, {"source": source})
        self.source = source


class EmptySourceError(VetClinicError):
    """The persistence source, or the registry being saved, holds no data."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message, {"source": source})
        self.source = source


class MalformedRecordError(VetClinicError):
    """A record in the persisted text could not be parsed.

    Raised for a record cut short, a field line carrying the wrong key, or a
    numeric field whose value does not parse.

    Attributes:
        line_number: 1-based line where parsing failed
        section: Section being parsed ("Pets" or "Doctors")
    """

    def __init__(self, message: str, line_number: Optional[int] = None, section: Optional[str] = None):
        super().__init__(message, {"line_number": line_number, "section": section})
        self.line_number = line_number
        self.section = section


class PersistenceError(VetClinicError):
    """Reading or writing the persistence file failed at the OS level."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message, {"source": source})
        self.source = source


# ============================================================================
# Callback contracts supplied by the interactive layer
# ============================================================================

# Ask the operator a yes/no question; True means proceed.
ConfirmCallback = Callable[[str], bool]

# Decide what to do with an imported record whose name is already registered.
ConflictCallback = Callable[[Union["Doctor", "Pet"], Union["Doctor", "Pet"]], ConflictResolution]


def always_confirm(prompt: str) -> bool:
    """Confirmation oracle that approves everything."""
    return True


def always_merge(existing, incoming) -> ConflictResolution:
    """Conflict resolver that merges every colliding record."""
    return ConflictResolution.MERGE


def always_skip(existing, incoming) -> ConflictResolution:
    """Conflict resolver that keeps every existing record untouched."""
    return ConflictResolution.SKIP


# ============================================================================
# Line-oriented persistence ports
# ============================================================================

class LineSourcePort(ABC):
    """Abstract contract for reading a persisted snapshot as lines."""

    @abstractmethod
    def read_lines(self) -> Result[list[str]]:
        """Read every line of the source.

        Returns:
            Result[list[str]]: Lines without trailing newlines, or a failure with
            error_type SourceNotFoundError, EmptySourceError or PersistenceError
        """
        pass

    @abstractmethod
    def is_blank(self) -> bool:
        """Whether the source is missing or contains only whitespace."""
        pass

    def describe(self) -> str:
        """Human-readable identifier of the source, used in messages."""
        return type(self).__name__


class LineSinkPort(ABC):
    """Abstract contract for writing a snapshot as lines."""

    @abstractmethod
    def write_lines(self, lines: list[str]) -> Result[int]:
        """Replace the sink's content with the given lines.

        Parameters:
            lines: Lines without trailing newlines

        Returns:
            Result[int]: Number of lines written, or a PersistenceError failure
        """
        pass
