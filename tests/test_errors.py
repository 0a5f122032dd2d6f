from decimal import Decimal

from packaging_core.errors import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    PackagingCoreError,
    ValidationError,
)


def test_not_found_message_names_resource_and_id():
    error = NotFoundError("Pallet", 7)
    assert str(error) == "Pallet with id '7' not found"
    assert error.to_dict() == {
        "kind": "not_found",
        "code": "NOT_FOUND",
        "error": "Pallet with id '7' not found",
    }
    assert str(NotFoundError("Available pallet")) == "Available pallet not found"


def test_validation_error_carries_field_errors():
    error = ValidationError("Bad request", [{"field": "quantity", "message": "must be finite"}])
    assert error.to_dict()["errors"] == [{"field": "quantity", "message": "must be finite"}]
    assert ValidationError("x").errors == []


def test_insufficient_stock_details():
    error = InsufficientStockError(1, Decimal(100), Decimal(30))
    data = error.to_dict()
    assert data["kind"] == "insufficient_stock"
    assert (data["product_id"], data["requested"], data["available"]) == (1, "100", "30")
    assert "Requested: 100, Available: 30" in str(error)


def test_errors_share_a_base_class():
    for error in (ConflictError("busy"), NotFoundError("X"), ValidationError("bad")):
        assert isinstance(error, PackagingCoreError)
    assert ConflictError("busy", code="LOCKED").code == "LOCKED"
