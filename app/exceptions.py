from typing import Any, Mapping, Optional


class ServiceValidationError(Exception):
    """Raised when input data is invalid or a precondition for a service call is not met.

    Attributes:
        message: human-readable message
        details: optional mapping with extra context (field errors, validation info)
        code: optional machine-readable error code
        http_status: suggested HTTP status code for handlers (400)
    """

    http_status = 400

    def __init__(self, message: str = "Invalid input", details: Optional[Mapping[str, Any]] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        self.code = code

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"message": self.message}
        if self.code:
            payload["code"] = self.code
        if self.details:
            payload["details"] = self.details
        return payload

    def __str__(self) -> str:
        return self.message


class NotFoundError(ServiceValidationError):
    """Raised when a container or master ingredient does not exist. http_status is 404."""

    http_status = 404

    def __init__(self, message: str = "Not found", details: Optional[Mapping[str, Any]] = None, code: Optional[str] = None):
        super().__init__(message, details, code)


class InvalidOperationError(ServiceValidationError):
    """Raised when an operation is not allowed in the current ledger state.

    Examples: merging containers of different ingredients, touching an EMPTY or
    DELETED container, moving a container backwards in its lifecycle, or
    rewriting the transaction log. http_status is 409.
    """

    http_status = 409

    def __init__(self, message: str = "Invalid operation", details: Optional[Mapping[str, Any]] = None, code: Optional[str] = None):
        super().__init__(message, details, code)


class ConcurrencyConflictError(ServiceValidationError):
    """Raised when a row changed underneath a mutation (stale version). http_status is 409."""

    http_status = 409

    def __init__(self, message: str = "Concurrent modification", details: Optional[Mapping[str, Any]] = None, code: Optional[str] = None):
        super().__init__(message, details, code)


class ConversionUnavailableError(Exception):
    """Raised by the strict unit converter when no factor links two units.

    Ledger operations recover from it by using the unconverted quantity and
    reporting a warning.
    """

    def __init__(self, from_unit: str, to_unit: str):
        super().__init__(f"No conversion from '{from_unit}' to '{to_unit}'")
        self.from_unit = from_unit
        self.to_unit = to_unit
