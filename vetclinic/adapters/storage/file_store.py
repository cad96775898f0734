"""Flat-file Storage Adapter.

Implements the line source/sink ports on top of a single text file. Every read
and write opens the file in a `with` block, so the handle is released on all
exit paths.

Architecture:
    - Implements LineSourcePort and LineSinkPort (Hexagonal Architecture)
    - Knows nothing about records; the TextCodec owns the format
"""

import logging
from pathlib import Path
from typing import Optional, Union

from vetclinic.domain.ports import (
    EmptySourceError,
    LineSinkPort,
    LineSourcePort,
    PersistenceError,
    Result,
    SourceNotFoundError,
)
from vetclinic.infrastructure.config_manager import StorageConfig

logger = logging.getLogger(__name__)


class FileLineStore(LineSourcePort, LineSinkPort):
    """Reads and writes the snapshot file as a sequence of lines.

    Parameters:
        storage_config: StorageConfig from the configuration manager (preferred)
        path: Path to the snapshot file (used when no config is given)
        encoding: Text encoding (used when no config is given)

    Example Usage:
        ```python
        store = FileLineStore(path="HospitalManagement.txt")
        result = store.read_lines()
        if result.is_failure() and result.error_type == "SourceNotFoundError":
            ...
        ```
    """

    def __init__(
        self,
        storage_config: Optional[StorageConfig] = None,
        path: Optional[Union[str, Path]] = None,
        encoding: str = "utf-8",
    ):
        if storage_config is not None:
            self.path = storage_config.path
            self.encoding = storage_config.encoding
        elif path is not None:
            self.path = Path(path)
            self.encoding = encoding
        else:
            raise ValueError("FileLineStore requires either storage_config or path")

    def describe(self) -> str:
        return str(self.path)

    def exists(self) -> bool:
        return self.path.is_file()

    def is_blank(self) -> bool:
        """Whether the file is missing or holds only whitespace."""
        if not self.exists():
            return True
        try:
            with open(self.path, 'r', encoding=self.encoding) as f:
                return all(not line.strip() for line in f)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not inspect {self.path}: {str(e)}")
            return False

    def read_lines(self) -> Result[list[str]]:
        """Read the whole file.

        Returns:
            Result[list[str]]: Lines without newlines, or a failure with
            error_type SourceNotFoundError, EmptySourceError or PersistenceError
        """
        source = str(self.path)
        if not self.exists():
            return Result.failure_result(
                SourceNotFoundError(f"'{source}' was not found", source=source)
            )

        try:
            with open(self.path, 'r', encoding=self.encoding) as f:
                lines = f.read().splitlines()
        except (OSError, UnicodeDecodeError) as e:
            error_msg = f"Cannot read {source}: {str(e)}"
            logger.error(error_msg)
            return Result.failure_result(PersistenceError(error_msg, source=source))

        if not any(line.strip() for line in lines):
            return Result.failure_result(
                EmptySourceError(f"There isn't anything in {source}", source=source)
            )

        logger.debug(f"Read {len(lines)} line(s) from {source}")
        return Result.success_result(lines)

    def write_lines(self, lines: list[str]) -> Result[int]:
        """Replace the file's content, one newline-terminated line per entry."""
        source = str(self.path)
        try:
            with open(self.path, 'w', encoding=self.encoding, newline='\n') as f:
                for line in lines:
                    f.write(line + "\n")
        except OSError as e:
            error_msg = f"An error occurred while writing data to {source}: {str(e)}"
            logger.error(error_msg)
            return Result.failure_result(PersistenceError(error_msg, source=source))

        logger.debug(f"Wrote {len(lines)} line(s) to {source}")
        return Result.success_result(len(lines))
