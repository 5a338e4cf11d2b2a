"""
Tests for stock status derivation and quantity checks in
src/domains/inventory/stock.py
"""

import pytest
from prisma.enums import InventoryStatus

from src.domains.inventory.stock import derive_status, validate_quantities
from src.shared.exceptions import InvalidDataError


class TestDeriveStatus:
    def test_available_above_threshold(self):
        assert derive_status(100, 50) == InventoryStatus.AVAILABLE

    def test_low_stock_at_ten_percent(self):
        assert derive_status(100, 10) == InventoryStatus.LOW_STOCK

    def test_out_of_stock_when_empty(self):
        assert derive_status(100, 0) == InventoryStatus.OUT_OF_STOCK

    def test_recovers_from_out_of_stock(self):
        assert (
            derive_status(150, 80, InventoryStatus.OUT_OF_STOCK)
            == InventoryStatus.AVAILABLE
        )

    @pytest.mark.parametrize(
        "manual",
        [InventoryStatus.RESERVED, InventoryStatus.DAMAGED, InventoryStatus.EXPIRED],
    )
    def test_manual_status_is_kept(self, manual):
        assert derive_status(100, 0, manual) == manual


class TestValidateQuantities:
    def test_accepts_equal_quantities(self):
        validate_quantities(20, 20)

    def test_rejects_negative(self):
        with pytest.raises(InvalidDataError) as exc_info:
            validate_quantities(10, -1)

        assert exc_info.value.detail == "Quantities cannot be negative"

    def test_rejects_available_above_total(self):
        with pytest.raises(InvalidDataError) as exc_info:
            validate_quantities(10, 11)

        assert (
            exc_info.value.detail == "Available quantity cannot exceed total quantity"
        )
