"""
Entity store: the data-access boundary for users, products, orders and order items.

Every public method checks the injected access policy first. Order item writes
run an explicit pipeline:

    access check -> snapshot resolution -> validation -> write -> total recalculation

With `recalc_in_transaction` off, the item write commits on its own and the
order total is recomputed afterwards as a best-effort step. With it on, the
order row is locked and the item write and the new total commit together.
"""

from typing import Any, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import DataError, IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.core.access import ANONYMOUS, AccessPolicy, Actor, DenyAllPolicy, Operation, check
from storefront.core.errors import ApplicationError, ConflictError, NotFound, StoreUnavailable, ValidationError
from storefront.core.logging import get_logger
from storefront.db.models import Order, OrderItem, OrderStatus, Product, User
from storefront.schemas import (
    OrderCreate,
    OrderItemCreate,
    OrderItemRead,
    OrderItemUpdate,
    ProductCreate,
    ProductSnapshot,
    ProductUpdate,
    UserCreate,
)
from storefront.security.utils import hash_password, verify_password
from storefront.services.snapshot import resolve_item_fields
from storefront.services.totals import recalculate_order_total, sum_line_totals

logger = get_logger(__name__)

# pending is the only state with outgoing transitions
ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: set(),
    OrderStatus.CANCELLED: set(),
}

# column limits: BigInteger money, Integer quantity, String(240) name
MAX_CENTS = 2**63 - 1
MAX_QUANTITY = 2**31 - 1
MAX_NAME_LENGTH = 240


def validate_item(fields: dict[str, Any]) -> None:
    """Check the complete post-resolution state of an order item."""
    invalid = {}
    for name in ("order_id", "product_id", "product_name_snapshot", "unit_price_cents"):
        if fields.get(name) in (None, ""):
            invalid[name] = "required"
    quantity = fields.get("quantity")
    if quantity is None or quantity < 1:
        invalid["quantity"] = "must be >= 1"
    elif quantity > MAX_QUANTITY:
        invalid["quantity"] = f"must be <= {MAX_QUANTITY}"
    for name in ("unit_price_cents", "line_total_cents"):
        value = fields.get(name)
        if value is not None and value < 0:
            invalid[name] = "must be >= 0"
        elif value is not None and value > MAX_CENTS:
            invalid[name] = f"must be <= {MAX_CENTS}"
    snapshot_name = fields.get("product_name_snapshot")
    if snapshot_name and len(snapshot_name) > MAX_NAME_LENGTH:
        invalid["product_name_snapshot"] = f"must be at most {MAX_NAME_LENGTH} characters"
    if invalid:
        raise ValidationError("Invalid order item", invalid)


class EntityStore:
    def __init__(
        self,
        db: Session,
        policy: Optional[AccessPolicy] = None,
        actor: Actor = ANONYMOUS,
        recalc_in_transaction: bool = False,
    ):
        self.db = db
        self.policy = policy or DenyAllPolicy()
        self.actor = actor
        self.recalc_in_transaction = recalc_in_transaction

    # --- plumbing ---

    def _check(self, operation: Operation, entity: str) -> None:
        check(self.policy, self.actor, operation, entity)

    def _sync(self, operation: str, action) -> None:
        """Run a commit or flush; the session is rolled back before any error leaves."""
        try:
            action()
        except IntegrityError as exc:
            self.db.rollback()
            raise ValidationError(f"{operation} violates a constraint", {"constraint": str(exc.orig)}) from exc
        except DataError as exc:
            self.db.rollback()
            raise ValidationError(f"{operation} has a value out of range", {"error": str(exc.orig)}) from exc
        except OperationalError as exc:
            self.db.rollback()
            raise StoreUnavailable(operation) from exc

    def _commit(self, operation: str) -> None:
        self._sync(operation, self.db.commit)

    def _flush(self, operation: str) -> None:
        self._sync(operation, self.db.flush)

    def _get_or_404(self, model, entity_id: int, **kwargs):
        try:
            obj = self.db.get(model, entity_id, **kwargs)
        except OperationalError as exc:
            raise StoreUnavailable(f"get {model.__name__}") from exc
        if obj is None:
            raise NotFound(model.__name__, entity_id)
        return obj

    # --- ports used by the snapshot resolver and the total recalculator ---

    def find_product(self, product_id: int) -> Optional[ProductSnapshot]:
        try:
            product = self.db.get(Product, product_id)
        except SQLAlchemyError as exc:
            raise StoreUnavailable("find product") from exc
        return ProductSnapshot.model_validate(product) if product is not None else None

    def list_line_totals(self, order_id: int) -> List[Optional[int]]:
        stmt = select(OrderItem.line_total_cents).where(OrderItem.order_id == order_id)
        try:
            return list(self.db.execute(stmt).scalars().all())
        except OperationalError as exc:
            self.db.rollback()
            raise StoreUnavailable("list order items") from exc

    def update_order_total(self, order_id: int, total_cents: int) -> None:
        order = self._get_or_404(Order, order_id)
        order.total_cents = total_cents
        self.db.add(order)

    def _commit_order_total(self, order_id: int, total_cents: int) -> None:
        try:
            self.update_order_total(order_id, total_cents)
            self.db.commit()
        except (ApplicationError, SQLAlchemyError):
            self.db.rollback()
            raise

    def after_item_write(self, operation: Operation, item: Any) -> Optional[int]:
        """Post-commit hook: recompute the owning order's total; never raises."""
        total = recalculate_order_total(item, self.list_line_totals, self._commit_order_total)
        logger.info("order_item_written", operation=operation.value, item_id=getattr(item, "id", None),
                    order_id=getattr(item, "order_id", None), total_cents=total)
        return total

    def _recalculate_locked(self, order_id: int) -> int:
        # in-transaction variant: failures abort the whole write
        try:
            self._get_or_404(Order, order_id, with_for_update=True)
            total = sum_line_totals(self.list_line_totals(order_id))
            self.update_order_total(order_id, total)
        except (ApplicationError, SQLAlchemyError) as exc:
            self.db.rollback()
            if isinstance(exc, ApplicationError):
                raise
            raise StoreUnavailable("recalculate order total") from exc
        return total

    def _finish_item_write(self, operation: Operation, item: OrderItem) -> OrderItem:
        if self.recalc_in_transaction:
            self._flush(f"{operation.value} order item")
            self._recalculate_locked(item.order_id)
            self._commit(f"{operation.value} order item")
            self.db.refresh(item)
            return item
        self._commit(f"{operation.value} order item")
        self.db.refresh(item)
        self.after_item_write(operation, OrderItemRead.model_validate(item))
        return item

    # --- users ---

    def create_user(self, payload: UserCreate) -> User:
        self._check(Operation.CREATE, "User")
        email = payload.email.lower()
        if self.db.execute(select(User.id).where(User.email == email)).first():
            raise ConflictError("Email already registered", {"email": email})
        user = User(name=payload.name, email=email, password_hash=hash_password(payload.password), role=payload.role or "customer")
        self.db.add(user)
        try:
            self._commit("create user")
        except ValidationError as exc:
            raise ConflictError("Email already registered", {"email": email}) from exc
        self.db.refresh(user)
        return user

    def get_user(self, user_id: int) -> User:
        self._check(Operation.READ, "User")
        return self._get_or_404(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        self._check(Operation.READ, "User")
        return self.db.execute(select(User).where(User.email == email.lower())).scalars().first()

    def list_users(self, limit: int = 50, offset: int = 0) -> List[User]:
        self._check(Operation.READ, "User")
        return list(self.db.execute(select(User).order_by(User.id).offset(offset).limit(limit)).scalars().all())

    def authenticate_user(self, email: str, password: str) -> Optional[User]:
        # login is not policy-gated: it is how callers obtain an actor in the first place
        user = self.db.execute(select(User).where(User.email == email.lower())).scalars().first()
        if not user or not verify_password(password, user.password_hash):
            return None
        return user

    # --- products ---

    def create_product(self, payload: ProductCreate) -> Product:
        self._check(Operation.CREATE, "Product")
        obj = Product(**payload.model_dump())
        self.db.add(obj)
        self._commit("create product")
        self.db.refresh(obj)
        return obj

    def get_product(self, product_id: int) -> Product:
        self._check(Operation.READ, "Product")
        return self._get_or_404(Product, product_id)

    def list_products(self, q: Optional[str] = None, active: Optional[bool] = None, limit: int = 50, offset: int = 0) -> List[Product]:
        self._check(Operation.READ, "Product")
        stmt = select(Product)
        if q:
            stmt = stmt.where(Product.name.ilike(f"%{q.lower()}%"))
        if active is not None:
            stmt = stmt.where(Product.is_active == active)
        stmt = stmt.order_by(Product.created_at.desc(), Product.id.desc()).offset(offset).limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def update_product(self, product_id: int, payload: ProductUpdate) -> Product:
        self._check(Operation.UPDATE, "Product")
        obj = self._get_or_404(Product, product_id)
        for k, v in payload.model_dump(exclude_unset=True).items():
            if v is None and k in ("name", "price_cents"):
                raise ValidationError("Invalid product", {k: "required"})
            setattr(obj, k, v)
        self.db.add(obj)
        self._commit("update product")
        self.db.refresh(obj)
        return obj

    def delete_product(self, product_id: int) -> None:
        self._check(Operation.DELETE, "Product")
        obj = self._get_or_404(Product, product_id)
        in_use = self.db.execute(select(func.count(OrderItem.id)).where(OrderItem.product_id == product_id)).scalar_one()
        if in_use:
            raise ConflictError("Product is referenced by order items", {"product_id": product_id, "order_items": in_use})
        self.db.delete(obj)
        try:
            self._commit("delete product")
        except ValidationError as exc:
            raise ConflictError("Product is referenced by order items", {"product_id": product_id}) from exc

    # --- orders ---

    def create_order(self, payload: OrderCreate) -> Order:
        self._check(Operation.CREATE, "Order")
        self._get_or_404(User, payload.user_id)
        order = Order(user_id=payload.user_id, status=payload.status.value, currency_code=payload.currency_code, total_cents=0)
        self.db.add(order)
        self._commit("create order")
        self.db.refresh(order)
        return order

    def get_order(self, order_id: int) -> Order:
        self._check(Operation.READ, "Order")
        return self._get_or_404(Order, order_id)

    def list_orders(self, user_id: Optional[int] = None, status: Optional[OrderStatus] = None, limit: int = 50, offset: int = 0) -> List[Order]:
        self._check(Operation.READ, "Order")
        stmt = select(Order)
        if user_id is not None:
            stmt = stmt.where(Order.user_id == user_id)
        if status is not None:
            stmt = stmt.where(Order.status == OrderStatus(status).value)
        stmt = stmt.order_by(Order.created_at.desc(), Order.id.desc()).offset(offset).limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def set_order_status(self, order_id: int, status: OrderStatus) -> Order:
        self._check(Operation.UPDATE, "Order")
        order = self._get_or_404(Order, order_id)
        current, target = OrderStatus(order.status), OrderStatus(status)
        if target != current and target not in ORDER_TRANSITIONS[current]:
            raise ValidationError(f"Cannot move order from {current.value} to {target.value}", {"status": target.value})
        order.status = target.value
        self.db.add(order)
        self._commit("update order status")
        self.db.refresh(order)
        return order

    def delete_order(self, order_id: int) -> None:
        self._check(Operation.DELETE, "Order")
        order = self._get_or_404(Order, order_id)
        self.db.delete(order)
        self._commit("delete order")

    # --- order items ---

    def get_order_item(self, item_id: int) -> OrderItem:
        self._check(Operation.READ, "OrderItem")
        return self._get_or_404(OrderItem, item_id)

    def list_order_items(self, order_id: int) -> List[OrderItem]:
        self._check(Operation.READ, "OrderItem")
        stmt = select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.id)
        return list(self.db.execute(stmt).scalars().all())

    def create_order_item(self, payload: OrderItemCreate) -> OrderItem:
        self._check(Operation.CREATE, "OrderItem")
        fields = resolve_item_fields(Operation.CREATE, payload, None, self.find_product)
        validate_item(fields)
        self._get_or_404(Order, fields["order_id"])
        item = OrderItem(**fields)
        self.db.add(item)
        return self._finish_item_write(Operation.CREATE, item)

    def update_order_item(self, item_id: int, payload: OrderItemUpdate) -> OrderItem:
        self._check(Operation.UPDATE, "OrderItem")
        item = self._get_or_404(OrderItem, item_id)
        fields = resolve_item_fields(Operation.UPDATE, payload, item, self.find_product)
        merged = {c: getattr(item, c) for c in ("order_id", "product_id", "product_name_snapshot", "unit_price_cents", "quantity")}
        merged.update(fields)
        validate_item(merged)
        for k, v in fields.items():
            setattr(item, k, v)
        self.db.add(item)
        return self._finish_item_write(Operation.UPDATE, item)

    def delete_order_item(self, item_id: int) -> OrderItemRead:
        self._check(Operation.DELETE, "OrderItem")
        item = self._get_or_404(OrderItem, item_id)
        # the row is gone after commit; the snapshot still names its order
        prior = OrderItemRead.model_validate(item)
        self.db.delete(item)
        if self.recalc_in_transaction:
            self._flush("delete order item")
            self._recalculate_locked(prior.order_id)
            self._commit("delete order item")
            return prior
        self._commit("delete order item")
        self.after_item_write(Operation.DELETE, prior)
        return prior
