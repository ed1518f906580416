"""Domain-specific exceptions"""

from typing import Dict, List, Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class AuthenticationError(DomainException):
    """No authenticated session, or the session's user no longer exists"""

    pass


class ValidationError(DomainException):
    """Payload violates an entity's field constraints or lifecycle rules"""

    def __init__(self, message: str, errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, [{"field": field, "message": message}])


class NotFoundError(DomainException):
    """Record does not exist or is not owned by the caller"""

    pass


class ConflictError(DomainException):
    """Write would violate a uniqueness constraint"""

    pass
