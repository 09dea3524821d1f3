"""YAML seed file loading for the content store."""
from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from cms_search.content.schemas import ContentEntity

logger = structlog.get_logger()


class FileSystemError(Exception):
    """Raised when file operations fail."""

    def __init__(self, message: str, path: str, code: str | None = None) -> None:
        """Initialize filesystem error.

        Args:
            message: Error description.
            path: Path that caused the error.
            code: Optional error code (e.g., ENOENT).
        """
        super().__init__(message)
        self.path = path
        self.code = code


class ContentValidationError(Exception):
    """Raised when a seed file does not describe valid content."""

    def __init__(
        self,
        message: str,
        path: str,
        validation_error: ValidationError | None = None,
    ) -> None:
        """Initialize validation error.

        Args:
            message: Error description.
            path: Path of the invalid file.
            validation_error: Pydantic validation error details, if any.
        """
        super().__init__(message)
        self.path = path
        self.validation_error = validation_error


def load_content_file(filepath: Path) -> list[ContentEntity]:
    """Read a YAML list of content entities.

    The file holds either a top-level list or a mapping with a ``content``
    list; each item is validated as a ``ContentEntity``.

    Args:
        filepath: Path to the YAML seed file.

    Returns:
        Validated entities in file order.

    Raises:
        FileSystemError: If the file cannot be read.
        ContentValidationError: If the YAML or any entity is invalid.
    """
    try:
        raw = filepath.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise FileSystemError(
            f"File not found: {filepath}",
            str(filepath),
            "ENOENT",
        ) from e
    except OSError as e:
        raise FileSystemError(
            f"Failed to read file: {e}",
            str(filepath),
            getattr(e, "errno", None),
        ) from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ContentValidationError(f"Invalid YAML in {filepath}: {e}", str(filepath)) from e

    if isinstance(data, dict):
        data = data.get("content")
    if data is None:
        return []
    if not isinstance(data, list):
        raise ContentValidationError(
            f"Expected a list of content entities in {filepath}",
            str(filepath),
        )

    entities: list[ContentEntity] = []
    for position, item in enumerate(data):
        try:
            entities.append(ContentEntity.model_validate(item))
        except ValidationError as e:
            raise ContentValidationError(
                f"Invalid content entity #{position} in {filepath}",
                str(filepath),
                e,
            ) from e

    logger.info("content_file_loaded", path=str(filepath), entity_count=len(entities))
    return entities
