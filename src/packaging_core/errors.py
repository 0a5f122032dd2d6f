"""Error taxonomy surfaced by the packaging core.

Every error carries a ``kind`` (the structured category callers switch on)
and a ``code``; :meth:`PackagingCoreError.to_dict` gives a serialisable view
for adapters that report errors over the wire.
"""

from __future__ import annotations

from typing import Any, Dict, List


class PackagingCoreError(Exception):
    kind = "error"
    default_code = "ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "code": self.code, "error": self.message}


class NotFoundError(PackagingCoreError):
    kind = "not_found"
    default_code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: Any = None, code: str | None = None) -> None:
        if identifier is None:
            message = f"{resource} not found"
        else:
            message = f"{resource} with id '{identifier}' not found"
        super().__init__(message, code)
        self.resource = resource
        self.identifier = identifier


class ValidationError(PackagingCoreError):
    kind = "validation"
    default_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        errors: List[Dict[str, str]] | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message, code)
        self.errors = list(errors or [])

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["errors"] = list(self.errors)
        return data


class ConflictError(PackagingCoreError):
    kind = "conflict"
    default_code = "CONFLICT"


class InsufficientStockError(PackagingCoreError):
    kind = "insufficient_stock"
    default_code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: Any, requested: Any, available: Any) -> None:
        super().__init__(
            f"Insufficient stock for product {product_id}. "
            f"Requested: {requested}, Available: {available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "product_id": self.product_id,
                "requested": str(self.requested),
                "available": str(self.available),
            }
        )
        return data


__all__ = [
    "PackagingCoreError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "InsufficientStockError",
]
