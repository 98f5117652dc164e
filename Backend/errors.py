"""
Error taxonomy for the document service.

Each error carries the HTTP status it maps to. Extraction and summarization
failures are deliberately absent: they are absorbed and stored as empty fields.
"""


class DocumentServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthorizationError(DocumentServiceError):
    status_code = 403


class ValidationError(DocumentServiceError):
    status_code = 400


class PayloadTooLargeError(DocumentServiceError):
    status_code = 413


class DocumentNotFoundError(DocumentServiceError):
    status_code = 404


class StorageError(DocumentServiceError):
    """Blob storage rejected or failed a write."""


class PersistenceError(DocumentServiceError):
    """The datastore rejected or failed a read or write."""
