"""
Result objects shared by the services.

Every service operation returns a ServiceResult: ``success`` plus either the
produced value or a typed error from produce_trading.domain.errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, List, Optional, TypeVar

from pydantic import ValidationError as PydanticValidationError

from produce_trading.domain.errors import FieldError, PermissionDenied, ServiceError, ValidationFailed
from produce_trading.domain.principal import Operation, Principal, is_permitted

T = TypeVar("T")


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """
    Result of a service call.

    success: True if the operation completed
    value: the produced value (None on failure, and for deletions)
    error: typed error (None on success)
    """
    success: bool
    value: Optional[T] = None
    error: Optional[ServiceError] = None

    @classmethod
    def ok(cls, value: Optional[T] = None) -> "ServiceResult[T]":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: ServiceError) -> "ServiceResult[T]":
        return cls(success=False, error=error)

    @property
    def message(self) -> str:
        return self.error.message if self.error is not None else "OK"


def authorize(principal: Principal, operation: Operation) -> Optional[PermissionDenied]:
    """Consult the permission table; returns the error to report, or None if allowed."""

    if is_permitted(principal, operation):
        return None
    return PermissionDenied(role=principal.role.value, operation=operation.value)


def validation_failed(error: PydanticValidationError) -> ValidationFailed:
    """Translate a pydantic ValidationError into a field-by-field ValidationFailed."""

    fields: List[FieldError] = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail.get("loc", ())) or "body"
        fields.append(FieldError(field=location, message=str(detail.get("msg", "Invalid value"))))
    return ValidationFailed(fields=fields)


__all__ = ["ServiceResult", "authorize", "validation_failed"]
