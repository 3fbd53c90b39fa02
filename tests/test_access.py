"""Access policies and their configuration."""

import pytest

from storefront.core.access import (
    ANONYMOUS,
    Actor,
    AllowAllPolicy,
    DenyAllPolicy,
    Operation,
    RolePolicy,
    policy_from_settings,
)
from storefront.core.config import Settings
from storefront.core.errors import AccessDenied, ConfigurationError
from storefront.schemas import OrderItemCreate, ProductCreate
from storefront.services.store import EntityStore

ADMIN = Actor(sub="admin@example.com", role="admin")
CUSTOMER = Actor(sub="ada@example.com", role="customer")


class TestRolePolicy:
    def test_admin_may_do_everything(self):
        policy = RolePolicy()
        assert all(policy.allows(ADMIN, op, "OrderItem") for op in Operation)

    def test_customer_reads_catalog_only(self):
        policy = RolePolicy()
        assert policy.allows(CUSTOMER, Operation.READ, "Product")
        assert not policy.allows(CUSTOMER, Operation.CREATE, "Product")
        assert not policy.allows(CUSTOMER, Operation.READ, "User")

    def test_unknown_role_gets_nothing(self):
        assert not RolePolicy().allows(Actor(sub="x", role="intruder"), Operation.READ, "Product")

    def test_custom_grants(self):
        policy = RolePolicy(grants={"clerk": {("read", "*"), ("update", "Order")}})
        clerk = Actor(sub="clerk", role="clerk")
        assert policy.allows(clerk, Operation.READ, "User")
        assert policy.allows(clerk, Operation.UPDATE, "Order")
        assert not policy.allows(clerk, Operation.DELETE, "Order")


class TestStoreBoundary:
    def test_default_policy_denies(self, db):
        with pytest.raises(AccessDenied):
            EntityStore(db).create_product(ProductCreate(name="Sprocket", price_cents=1))

    def test_denied_item_write_touches_nothing(self, db, order, widget):
        store = EntityStore(db, policy=RolePolicy(), actor=CUSTOMER)
        with pytest.raises(AccessDenied) as exc:
            store.create_order_item(OrderItemCreate(order_id=order.id, product_id=widget.id))
        assert exc.value.details == {"actor": "ada@example.com", "operation": "create", "entity": "OrderItem"}

    def test_anonymous_may_browse_catalog(self, db, widget):
        store = EntityStore(db, policy=RolePolicy(), actor=ANONYMOUS)
        assert [p.name for p in store.list_products()] == ["Widget"]


class TestPolicyFromSettings:
    def test_defaults_closed(self):
        assert isinstance(policy_from_settings(Settings(ACCESS_POLICY="deny_all")), DenyAllPolicy)

    def test_allow_all_outside_production(self):
        assert isinstance(policy_from_settings(Settings(ACCESS_POLICY="allow_all", APP_ENV="development")), AllowAllPolicy)

    def test_role_policy(self):
        assert isinstance(policy_from_settings(Settings(ACCESS_POLICY="role")), RolePolicy)

    def test_allow_all_refused_in_production(self):
        with pytest.raises(ConfigurationError):
            policy_from_settings(Settings(ACCESS_POLICY="allow_all", APP_ENV="production", JWT_SECRET="prod-secret"))

    def test_unknown_policy(self):
        with pytest.raises(ConfigurationError):
            policy_from_settings(Settings(ACCESS_POLICY="trust_me"))

    def test_production_requires_jwt_secret(self):
        with pytest.raises(ConfigurationError):
            Settings(ACCESS_POLICY="role", APP_ENV="production", JWT_SECRET="devsecret").validate_runtime()
