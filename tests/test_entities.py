"""Users, products and orders through the entity store."""

import pytest

from storefront.core.errors import ConflictError, NotFound, ValidationError
from storefront.db.models import OrderStatus
from storefront.db.session import Base
from storefront.schemas import OrderCreate, ProductCreate, ProductUpdate, UserCreate


class TestUsers:
    def test_email_is_stored_lower_case(self, store):
        user = store.create_user(UserCreate(name="Grace", email="Grace@Example.com", password="s3cret-pass"))
        assert user.email == "grace@example.com"
        assert user.password_hash != "s3cret-pass"
        assert user.role == "customer"

    def test_email_uniqueness_ignores_case(self, store, user):
        with pytest.raises(ConflictError):
            store.create_user(UserCreate(name="Other Ada", email="ADA@example.com", password="s3cret-pass"))

    def test_authenticate(self, store):
        store.create_user(UserCreate(name="Grace", email="grace@example.com", password="s3cret-pass"))
        assert store.authenticate_user("GRACE@example.com", "s3cret-pass").name == "Grace"
        assert store.authenticate_user("grace@example.com", "wrong-pass") is None
        assert store.authenticate_user("nobody@example.com", "s3cret-pass") is None

    def test_lookup_by_email(self, store, user):
        assert store.get_user_by_email("Ada@Example.com").id == user.id
        assert store.get_user_by_email("nobody@example.com") is None

    def test_missing_user(self, store):
        with pytest.raises(NotFound):
            store.get_user(404)


class TestProducts:
    def test_create_defaults(self, store):
        product = store.create_product(ProductCreate(name="Sprocket", price_cents=250))
        assert product.currency_code == "USD"
        assert product.is_active is True

    def test_list_filters(self, store, widget, gadget):
        store.update_product(gadget.id, ProductUpdate(is_active=False))
        assert [p.name for p in store.list_products(q="WID")] == ["Widget"]
        assert [p.name for p in store.list_products(active=False)] == ["Gadget"]
        assert len(store.list_products(limit=1)) == 1

    def test_partial_update(self, store, widget):
        product = store.update_product(widget.id, ProductUpdate(price_cents=2500))
        assert product.price_cents == 2500
        assert product.name == "Widget"

    def test_required_fields_cannot_be_cleared(self, store, widget):
        with pytest.raises(ValidationError):
            store.update_product(widget.id, ProductUpdate(price_cents=None))


class TestOrders:
    def test_new_order_is_pending_and_empty(self, store, user):
        order = store.create_order(OrderCreate(user_id=user.id))
        assert order.status == OrderStatus.PENDING.value
        assert order.total_cents == 0
        assert order.items == []

    def test_order_requires_existing_user(self, store):
        with pytest.raises(NotFound):
            store.create_order(OrderCreate(user_id=404))

    def test_pending_can_be_paid(self, store, order):
        assert store.set_order_status(order.id, OrderStatus.PAID).status == "paid"

    def test_pending_can_be_cancelled(self, store, order):
        assert store.set_order_status(order.id, OrderStatus.CANCELLED).status == "cancelled"

    @pytest.mark.parametrize("terminal", [OrderStatus.PAID, OrderStatus.CANCELLED])
    def test_terminal_states_do_not_move(self, store, order, terminal):
        store.set_order_status(order.id, terminal)
        with pytest.raises(ValidationError):
            store.set_order_status(order.id, OrderStatus.PENDING)

    def test_list_by_user_and_status(self, store, user, order):
        paid = store.create_order(OrderCreate(user_id=user.id))
        store.set_order_status(paid.id, OrderStatus.PAID)
        assert [o.id for o in store.list_orders(user_id=user.id, status=OrderStatus.PAID)] == [paid.id]
        assert {o.id for o in store.list_orders(user_id=user.id)} == {order.id, paid.id}
        assert store.list_orders(user_id=404) == []


@pytest.mark.parametrize("table, column", [
    ("users", "role"),
    ("products", "currency_code"),
    ("products", "is_active"),
    ("orders", "status"),
    ("orders", "total_cents"),
    ("order_items", "quantity"),
])
def test_defaulted_columns_are_not_nullable(table, column):
    assert Base.metadata.tables[table].c[column].nullable is False
