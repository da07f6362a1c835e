"""Domain error taxonomy.

Services raise these; ``main.py`` turns them into ``{"message": ...}`` JSON
responses with the class' ``status_code``.
"""


class DomainError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    status_code = 400
    default_message = "Invalid request"


class Forbidden(DomainError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(DomainError):
    status_code = 404
    default_message = "Not found"


class InvalidTransition(DomainError):
    status_code = 400
    default_message = "Invalid status transition"


class InvalidState(DomainError):
    status_code = 400
    default_message = "Invalid state for this operation"


class BudgetExceeded(DomainError):
    status_code = 400
    default_message = "Phase budget exceeded"


class Conflict(DomainError):
    status_code = 409
    default_message = "Record was modified concurrently, reload and retry"
