from __future__ import annotations


class RegistryError(Exception):
    """Base class for every failure the API converts into a JSON error body."""

    status_code: int = 500
    default_message: str = "Server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(RegistryError):
    status_code = 400
    default_message = "Missing required field(s)"


class DuplicateKey(RegistryError):
    status_code = 400
    default_message = "Student id already exists"


class NotFound(RegistryError):
    status_code = 404
    default_message = "Student not found"


class Forbidden(RegistryError):
    status_code = 403
    default_message = "Forbidden. Admins only."


class StoreError(RegistryError):
    status_code = 500
    default_message = "Server error"


class UpstreamUnavailable(StoreError):
    """The record store cannot be reached or the handle is disconnected."""

    default_message = "Record store unavailable"


class BulkImportError(RegistryError):
    status_code = 500
    default_message = "Error processing CSV file"
