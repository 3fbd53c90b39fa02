"""
Domain exceptions for the storefront.

Every error raised by the store carries a message and a details dict so the
HTTP layer can render it without knowing the concrete type.
"""


class ApplicationError(Exception):
    """Base exception for all storefront errors"""

    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(ApplicationError):
    """Raised when the runtime configuration is unusable"""

    def __init__(self, message: str, keys: list[str] | None = None):
        super().__init__(message, {"keys": keys} if keys else {})


class NotFound(ApplicationError):
    """Raised when a referenced entity does not exist"""

    status_code = 404

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found", {"entity": entity, "id": entity_id})


class ValidationError(ApplicationError):
    """Raised when a write would break a field constraint"""

    status_code = 422

    def __init__(self, message: str, invalid_fields: dict | None = None):
        super().__init__(message, {"invalid_fields": invalid_fields} if invalid_fields else {})


class ConflictError(ApplicationError):
    """Raised when a write collides with existing rows"""

    status_code = 409


class StoreUnavailable(ApplicationError):
    """Raised on transient storage failures (connection loss, lock or statement timeout)"""

    status_code = 503

    def __init__(self, operation: str, message: str | None = None):
        super().__init__(message or f"Store unavailable during {operation}", {"operation": operation})


class AccessDenied(ApplicationError):
    """Raised when the access policy refuses an operation"""

    status_code = 403

    def __init__(self, actor: str, operation: str, entity: str):
        super().__init__(
            f"{actor} may not {operation} {entity}",
            {"actor": actor, "operation": operation, "entity": entity},
        )
