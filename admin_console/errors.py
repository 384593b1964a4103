"""Error taxonomy shared by services and routes.

Services raise these; ``main.py`` maps each class to an HTTP status and a
``{"success": false, "error": ...}`` body.
"""

class ConsoleError(Exception):
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__

class NotFound(ConsoleError):
    status_code = 404

class ValidationFailure(ConsoleError):
    status_code = 422

class ReservedCategory(ValidationFailure):
    """The synthetic "all" category was used as a write target."""

class DuplicateSlug(ValidationFailure):
    status_code = 409

class CategoryInUse(ValidationFailure):
    status_code = 409

class PermissionDenied(ConsoleError):
    status_code = 403

class RemoteOperationFailure(ConsoleError):
    """A consumed endpoint answered ``success: false`` or a non-2xx status."""
    status_code = 502

class NetworkFailure(ConsoleError):
    """The request never got an answer (connection error or timeout)."""
    status_code = 504
