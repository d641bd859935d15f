"""Application exceptions."""


class AppError(Exception):
    """Base exception for application errors."""


class ModelError(AppError):
    """Base exception for model/database operations."""


class RecordNotFoundError(ModelError):
    """Raised when a record is not found in the database."""

    def __init__(self, model_name: str, record_id: int):
        self.model_name = model_name
        self.record_id = record_id
        super().__init__(f"{model_name} with id={record_id} not found")


class RelatedRecordNotFoundError(ModelError):
    """Raised when a related record (FK) is not found."""

    def __init__(self, field: str, record_id: int):
        self.field = field
        self.record_id = record_id
        super().__init__(f"Related record for '{field}' with id={record_id} not found")


class DuplicateRecordError(ModelError):
    """Raised when a record with the same natural key already exists."""

    def __init__(self, model_name: str, detail: str):
        self.model_name = model_name
        self.detail = detail
        super().__init__(detail)


class DatabaseConnectionError(ModelError):
    """Raised when database connection fails."""


class InvalidFilterError(ModelError):
    """Raised when invalid filter is provided."""


class InvalidFileTypeError(AppError):
    """Raised when uploaded file type is not allowed."""

    def __init__(self, allowed_types: list[str], received_type: str):
        self.allowed_types = allowed_types
        self.received_type = received_type
        super().__init__(
            f"Invalid file type '{received_type}'. Allowed: {', '.join(allowed_types)}"
        )


class FileTooLargeError(AppError):
    """Raised when an uploaded file exceeds the size limit."""

    def __init__(self, size_bytes: int, limit_bytes: int):
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        super().__init__(
            f"File too large. Maximum size is {limit_bytes / 1024 / 1024:.0f}MB, "
            f"got {size_bytes / 1024 / 1024:.2f}MB"
        )


class StorageError(AppError):
    """Raised when a file storage operation fails."""


class ImportAbortedError(AppError):
    """Raised when a bulk import cannot run at all.

    Per-row problems never raise; they are reported in the import summary.
    """


class ArchiveError(ImportAbortedError):
    """Raised when the uploaded archive cannot be extracted safely."""
