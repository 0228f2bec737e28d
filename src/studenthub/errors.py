"""Error taxonomy shared by the services, the HTTP layer and the CLI.

Every service raises one of these; the API maps ``http_status`` onto the
response and ``code`` into the body so clients get stable identifiers.
"""

from __future__ import annotations


class StudentHubError(Exception):
    code = "error"
    http_status = 400

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class Unauthorized(StudentHubError):
    code = "unauthorized"
    http_status = 403


class NotFound(StudentHubError):
    code = "not_found"
    http_status = 404


class InvalidTransition(StudentHubError):
    code = "invalid_transition"
    http_status = 409


class ValidationError(StudentHubError):
    code = "validation_error"
    http_status = 422


class StorageError(StudentHubError):
    code = "storage_error"
    http_status = 502


class StorageCleanupFailed(StorageError):
    code = "storage_cleanup_failed"

    def __init__(self, locator: str, reason: str = ""):
        super().__init__(f"could not remove stored file '{locator}': {reason}".rstrip(": "))
        self.locator = locator
        self.reason = reason
