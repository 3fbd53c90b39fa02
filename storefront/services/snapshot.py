"""
Snapshot resolution for order item writes.

Runs before an order item create or update is persisted. Copies the product's
current name and price onto the item when the item does not carry them yet,
and always recomputes the stored line total from quantity and unit price.
"""

from typing import Any, Callable, Optional, Union

from storefront.core.access import Operation
from storefront.core.errors import NotFound, StoreUnavailable
from storefront.core.logging import get_logger
from storefront.schemas import OrderItemCreate, OrderItemUpdate, ProductSnapshot

logger = get_logger(__name__)

ProductFinder = Callable[[int], Optional[ProductSnapshot]]


def _written(proposed, name: str) -> Any:
    """Value of `name` if this write sets it, else None."""
    if name in proposed.model_fields_set:
        return getattr(proposed, name)
    return None


def _stored(previous, name: str) -> Any:
    return getattr(previous, name, None) if previous is not None else None


def effective_quantity(proposed, previous) -> int:
    quantity = _written(proposed, "quantity")
    if quantity is not None:
        return quantity
    stored = _stored(previous, "quantity")
    return stored if stored is not None else 1


def effective_product_id(operation: Operation, proposed, previous) -> Optional[int]:
    product_id = _written(proposed, "product_id")
    if product_id is not None:
        return product_id
    if operation is Operation.UPDATE:
        return _stored(previous, "product_id")
    return None


def lookup_product(find_product: ProductFinder, product_id: int) -> Optional[ProductSnapshot]:
    """Fetch the product once; a missing or unreachable product is not fatal to the write."""
    try:
        product = find_product(product_id)
    except (NotFound, StoreUnavailable) as exc:
        logger.warning("snapshot_lookup_failed", product_id=product_id, error=exc.message)
        return None
    if product is None:
        logger.warning("snapshot_product_missing", product_id=product_id)
    return product


def resolve_item_fields(
    operation: Operation,
    proposed: Union[OrderItemCreate, OrderItemUpdate],
    previous: Any,
    find_product: ProductFinder,
) -> dict[str, Any]:
    """
    Build the field set to persist for an order item write.

    Args:
        operation: Operation.CREATE or Operation.UPDATE
        proposed: the fields supplied by the caller
        previous: the stored item for updates, None for creates
        find_product: product lookup by id

    Returns:
        Fields to write, always including `line_total_cents`
    """
    if operation not in (Operation.CREATE, Operation.UPDATE):
        raise ValueError(f"snapshot resolution does not apply to {operation.value}")

    data = proposed.model_dump(exclude_unset=True)
    # blank snapshot values count as absent; they never clear a stored snapshot
    if not data.get("product_name_snapshot"):
        data.pop("product_name_snapshot", None)
    if data.get("unit_price_cents") is None:
        data.pop("unit_price_cents", None)
    if data.get("product_id") is None:
        data.pop("product_id", None)
    if data.get("quantity") is None:
        data.pop("quantity", None)

    # snapshot fields are only filled when neither the write nor the stored row has them
    need_name = not _written(proposed, "product_name_snapshot") and not _stored(previous, "product_name_snapshot")
    need_price = _written(proposed, "unit_price_cents") is None and _stored(previous, "unit_price_cents") is None

    product_id = effective_product_id(operation, proposed, previous)
    if product_id is not None and (need_name or need_price):
        product = lookup_product(find_product, product_id)
        if product is not None:
            if need_name:
                data["product_name_snapshot"] = product.name
            if need_price:
                data["unit_price_cents"] = product.price_cents

    quantity = effective_quantity(proposed, previous)
    unit_price = data.get("unit_price_cents")
    if unit_price is None:
        unit_price = _stored(previous, "unit_price_cents") or 0
    if operation is Operation.CREATE:
        data.setdefault("quantity", quantity)
    data["line_total_cents"] = quantity * unit_price
    return data
