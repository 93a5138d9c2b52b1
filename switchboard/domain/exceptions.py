"""Domain exceptions for the Switchboard application.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns. Presentation
layer maps them to HTTP responses in exception handlers.
"""

from typing import Any


class SwitchboardException(Exception):
    """Base exception for all Switchboard errors.

    Presentation layer maps these to HTTP responses using message,
    error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON error responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(SwitchboardException):
    """Raised when input validation fails (e.g. invalid format or range)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthenticationException(SwitchboardException):
    """Raised when authentication fails (e.g. missing or invalid API key)."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message, "AUTHENTICATION_ERROR")


class TenantNotFoundException(SwitchboardException):
    """Raised when a requested tenant is not found."""

    def __init__(self, tenant_id: str) -> None:
        super().__init__(
            f"Tenant not found: {tenant_id}",
            "TENANT_NOT_FOUND",
            {"tenant_id": tenant_id},
        )


class ResourceNotFoundException(SwitchboardException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'thread', 'message', 'task').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class SqlNotConfiguredException(SwitchboardException):
    """Raised when an operation requires Postgres but the backend is not configured."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )


class InvalidKeyError(SwitchboardException):
    """Raised when a thread key part (tenant, workflow, participant) is empty."""

    def __init__(self, part: str) -> None:
        super().__init__(
            f"Thread key part '{part}' must be a non-empty string",
            "INVALID_KEY",
            {"part": part},
        )


class TenantMismatchError(SwitchboardException):
    """Raised when the authenticated tenant differs from the tenant addressed."""

    def __init__(self, expected_tenant_id: str, actual_tenant_id: str) -> None:
        super().__init__(
            "Authenticated tenant does not match the requested tenant",
            "TENANT_MISMATCH",
            {
                "expected_tenant_id": expected_tenant_id,
                "actual_tenant_id": actual_tenant_id,
            },
        )


class WorkflowNotFoundError(SwitchboardException):
    """Raised when a workflow type or short name cannot be resolved to one definition."""

    def __init__(self, workflow: str, reason: str = "not registered") -> None:
        """Initialize with the workflow reference and why resolution failed.

        Args:
            workflow: Workflow type (Agent:Workflow) or short name as given.
            reason: 'not registered', 'ambiguous', or a similar short reason.
        """
        super().__init__(
            f"Workflow '{workflow}' {reason}",
            "WORKFLOW_NOT_FOUND",
            {"workflow": workflow, "reason": reason},
        )


class DuplicateResponseError(SwitchboardException):
    """Raised on a second webhook response for the same request id."""

    def __init__(self, request_id: str) -> None:
        super().__init__(
            f"A response was already sent for request {request_id}",
            "DUPLICATE_RESPONSE",
            {"request_id": request_id},
        )


class InvalidActionError(SwitchboardException):
    """Raised when a task action is not in the task's allowed action set."""

    def __init__(self, task_id: str, action: str, allowed: list[str]) -> None:
        super().__init__(
            f"Action '{action}' is not allowed for task {task_id}",
            "INVALID_ACTION",
            {"task_id": task_id, "action": action, "allowed_actions": allowed},
        )


class AlreadyCompletedError(SwitchboardException):
    """Raised when acting on a task that already reached a terminal state."""

    def __init__(self, task_id: str, state: str) -> None:
        super().__init__(
            f"Task {task_id} is already {state}",
            "ALREADY_COMPLETED",
            {"task_id": task_id, "state": state},
        )


class DeliveryError(SwitchboardException):
    """Raised when the transport failed to deliver a persisted message.

    The message stays persisted; its delivery record is marked failed.
    """

    def __init__(self, message_id: str, reason: str, attempts: int = 1) -> None:
        super().__init__(
            f"Delivery of message {message_id} failed: {reason}",
            "DELIVERY_ERROR",
            {"message_id": message_id, "reason": reason, "attempts": attempts},
        )


class CancellationError(SwitchboardException):
    """Raised to a waiter whose durable wait was cancelled with its parent workflow."""

    def __init__(self, task_id: str, parent_instance_id: str | None = None) -> None:
        super().__init__(
            f"Wait on task {task_id} was cancelled",
            "WAIT_CANCELLED",
            {"task_id": task_id, "parent_instance_id": parent_instance_id},
        )
