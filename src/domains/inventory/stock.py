from typing import Optional

from prisma.enums import InventoryStatus

from src.shared.exceptions import InvalidDataError

LOW_STOCK_RATIO = 0.1
MANUAL_STATUSES = {
    InventoryStatus.RESERVED,
    InventoryStatus.DAMAGED,
    InventoryStatus.EXPIRED,
}


def derive_status(
    quantity_total: int,
    quantity_available: int,
    current: Optional[InventoryStatus] = None,
) -> InventoryStatus:
    """
    Stock status after a quantity change.

    Statuses set by hand (reserved, damaged, expired) are left alone.
    """
    if current in MANUAL_STATUSES:
        return current  # type: ignore[return-value]
    if quantity_available <= 0:
        return InventoryStatus.OUT_OF_STOCK
    if quantity_available <= quantity_total * LOW_STOCK_RATIO:
        return InventoryStatus.LOW_STOCK
    return InventoryStatus.AVAILABLE


def validate_quantities(quantity_total: int, quantity_available: int) -> None:
    if quantity_total < 0 or quantity_available < 0:
        raise InvalidDataError("Quantities cannot be negative")
    if quantity_available > quantity_total:
        raise InvalidDataError("Available quantity cannot exceed total quantity")
