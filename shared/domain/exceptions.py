"""
Domain Errors

Every rental operation reports failure through one of these types. They
carry no HTTP knowledge; the API layer maps them to responses in
``shared.infrastructure.exception_handler``.
"""


class DomainError(Exception):
    """Base class for per-request domain failures."""

    code = 'domain_error'

    def __init__(self, message: str = '', **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self):
        return self.message


class ValidationError(DomainError, ValueError):
    """Malformed, missing or out-of-range input. Never retried."""

    code = 'validation_error'


class ConflictError(DomainError):
    """An active booking already holds the equipment for those dates."""

    code = 'conflict'


class InvalidTransitionError(DomainError):
    """The requested lifecycle event is not allowed from the current state."""

    code = 'invalid_transition'


class NotFoundError(DomainError, LookupError):
    """Unknown booking, equipment or user id."""

    code = 'not_found'
