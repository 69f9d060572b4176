"""
Custom Exception Classes for the trigger service.
Provides a unified error taxonomy with stable error codes and structured details.
"""

from typing import Any, Dict, Optional


class TriggerException(Exception):
    """
    Base exception class for all trigger service exceptions.
    Provides a consistent error shape for logs.
    """

    def __init__(
        self,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# ==================== Missing Data Exceptions ====================


class MissingDataException(TriggerException):
    """Raised when a required field or document is absent; handlers abort early."""

    def __init__(
        self,
        resource: str,
        field: Optional[str] = None,
        error_code: str = "missing_data",
    ):
        details: Dict[str, Any] = {"resource": resource}
        message = f"{resource} is missing"
        if field:
            details["field"] = field
            message = f"{resource} has no {field}"
        super().__init__(error_code=error_code, message=message, details=details)


class LookupFailureException(MissingDataException):
    """Raised when a related document or push token could not be found."""

    def __init__(self, resource: str, identifier: Optional[Any] = None):
        super().__init__(resource, error_code="lookup_failure")
        if identifier is not None:
            self.details["identifier"] = str(identifier)
            self.message = f"{resource} not found: {identifier}"
            self.args = (self.message,)


# ==================== External Service Exceptions ====================


class DeliveryFailureException(TriggerException):
    """Raised when the push transport rejects or fails to deliver a message."""

    def __init__(
        self,
        recipient: Optional[str] = None,
        message: Optional[str] = None,
        service_name: str = "fcm",
    ):
        details: Dict[str, Any] = {"service": service_name}
        if recipient:
            details["recipient"] = recipient
        super().__init__(
            error_code="delivery_failure",
            message=message or f"{service_name} delivery failed",
            details=details,
        )


class SyncCommitFailureException(TriggerException):
    """Raised when the batched mirror update could not be committed."""

    def __init__(self, request_id: str, count: int, message: Optional[str] = None):
        super().__init__(
            error_code="sync_commit_failure",
            message=message or f"Failed to sync status for request {request_id}",
            details={"request_id": request_id, "conversations": count},
        )


# ==================== Routing Exceptions ====================


class RouteNotFoundException(TriggerException):
    """Raised when a trigger name is not registered."""

    def __init__(self, name: str):
        super().__init__(
            error_code="route_not_found",
            message=f"No trigger registered under {name!r}",
            details={"trigger": name},
        )


class DuplicateTriggerException(TriggerException):
    """Raised when the same trigger name is registered twice."""

    def __init__(self, name: str):
        super().__init__(
            error_code="duplicate_trigger",
            message=f"Trigger {name!r} is already registered",
            details={"trigger": name},
        )


class InvalidPathPatternException(TriggerException):
    """Raised when a document path pattern cannot be compiled."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(
            error_code="invalid_path_pattern",
            message=f"Invalid document path pattern {pattern!r}: {reason}",
            details={"pattern": pattern},
        )


# ==================== Helper Functions ====================


def raise_missing(resource: str, field: Optional[str] = None):
    """Helper function to raise MissingDataException."""
    raise MissingDataException(resource, field)


def raise_lookup_failure(resource: str, identifier: Optional[Any] = None):
    """Helper function to raise LookupFailureException."""
    raise LookupFailureException(resource, identifier)
