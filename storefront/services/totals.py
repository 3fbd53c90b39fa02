"""Order total recalculation, run after every order item write or delete."""

from typing import Any, Callable, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

from storefront.core.errors import ApplicationError
from storefront.core.logging import get_logger

logger = get_logger(__name__)

LineTotalLister = Callable[[int], Iterable[Optional[int]]]
OrderTotalWriter = Callable[[int, int], Any]


def sum_line_totals(line_totals: Iterable[Optional[int]]) -> int:
    return sum(v or 0 for v in line_totals)


def recalculate_order_total(item: Any, list_line_totals: LineTotalLister, update_order_total: OrderTotalWriter) -> Optional[int]:
    """
    Recompute and persist the owning order's total.

    `item` is the item as written (create/update) or as it was before deletion.
    Failures are logged and swallowed because the item write has already been
    committed; returns the stored total, or None when nothing was written.
    """
    order_id = getattr(item, "order_id", None)
    if order_id is None:
        logger.debug("recalc_skipped_no_order", item_id=getattr(item, "id", None))
        return None
    try:
        total = sum_line_totals(list_line_totals(order_id))
        update_order_total(order_id, total)
    except (ApplicationError, SQLAlchemyError) as exc:
        logger.error("recalc_order_total_failed", order_id=order_id, error=str(exc))
        return None
    logger.debug("order_total_recalculated", order_id=order_id, total_cents=total)
    return total
