"""Error hierarchy for IPT.

Error layers:
- IPTError: Base class for all IPT errors
- DomainError: Business rule violations, rejected operations on a resource
- InfrastructureError: Failures of external collaborators (registry, storage, configuration)

Domain errors are raised before any mutation of the aggregate takes place.
"""


class IPTError(Exception):
    """Base class for all IPT errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors (business logic violations)
# =============================================================================


class DomainError(IPTError):
    """Base class for domain/business errors."""


class NotFoundError(DomainError):
    """Resource not found."""


class ValidationError(DomainError):
    """Rejected operation: an argument is not acceptable in the current state."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class InvalidStateError(DomainError):
    """Operation not allowed in current state."""


class ConflictError(DomainError):
    """Resource already exists or version conflict."""


class AlreadyExistsError(ConflictError):
    """An item with the same identity is already present."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="ALREADY_EXISTS")


# =============================================================================
# Infrastructure Errors (system-level failures)
# =============================================================================


class InfrastructureError(IPTError):
    """Base class for infrastructure/system errors."""


class ExternalServiceError(InfrastructureError):
    """External service (DOI registration agency, registry) is unavailable or failed."""


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""
