"""
SharedBooks - Domain Errors
===========================
Three kinds of failure leave the core:

    ValidationError     bad input, rejected before any write
    AuthorizationError  capability missing or role transition refused
    storage errors      whatever the store raises, propagated untouched

ValidationError and AuthorizationError are deterministic and safe to show
to the user as-is. Storage errors are never wrapped here.
"""

from __future__ import annotations

from typing import Any, Optional


class ReasonCode:
    """
    Machine-readable error codes.

    Convention: SCREAMING_SNAKE_CASE.
    """

    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_ROLE_CHANGE = "INVALID_ROLE_CHANGE"

    MEMBER_NOT_FOUND = "MEMBER_NOT_FOUND"
    BUSINESS_NOT_FOUND = "BUSINESS_NOT_FOUND"

    PERMISSION_DENIED = "PERMISSION_DENIED"
    ROLE_ASSIGNMENT_DENIED = "ROLE_ASSIGNMENT_DENIED"

    BALANCE_CHANGED = "BALANCE_CHANGED"


class SharedBooksError(Exception):
    """Base class for every business-rule failure raised by the core."""

    code: str = ReasonCode.INVALID_REQUEST

    def __init__(self, message: str, *, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


class ValidationError(SharedBooksError):
    """Input rejected before any write. Safe to retry after correction."""

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message, code=code)
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["field"] = self.field
        return data


class NotFoundError(ValidationError):
    """Referenced membership or business does not exist in this business."""

    code = ReasonCode.MEMBER_NOT_FOUND


class AuthorizationError(SharedBooksError):
    """
    Acting membership may not perform the action.

    Names either the missing capability or the refused role transition
    so callers can render a precise message.
    """

    code = ReasonCode.PERMISSION_DENIED

    def __init__(
        self,
        message: str,
        *,
        capability: Optional[str] = None,
        assigner_role: Optional[str] = None,
        target_role: Optional[str] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message, code=code)
        self.capability = capability
        self.assigner_role = assigner_role
        self.target_role = target_role

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.capability is not None:
            data["capability"] = self.capability
        if self.assigner_role is not None:
            data["assigner_role"] = self.assigner_role
            data["target_role"] = self.target_role
        return data


class ConflictError(SharedBooksError):
    """State moved under the caller; re-read and retry."""

    code = ReasonCode.BALANCE_CHANGED
