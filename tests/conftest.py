import os

# settings are read at import time; point them at SQLite before storefront loads
os.environ["DATABASE_DSN"] = "sqlite://"
os.environ.setdefault("APP_ENV", "test")

import pytest
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from storefront.core.access import SYSTEM, AllowAllPolicy
from storefront.db.models import Order, Product, User
from storefront.db.session import Base, make_engine
from storefront.services.store import EntityStore


@pytest.fixture
def engine():
    eng = make_engine("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def db(engine):
    session = Session(bind=engine, autoflush=False)
    yield session
    session.close()


@pytest.fixture
def store(db):
    return EntityStore(db, policy=AllowAllPolicy(), actor=SYSTEM)


@pytest.fixture
def user(db):
    # inserted directly so tests do not pay for password hashing
    obj = User(name="Ada Buyer", email="ada@example.com", password_hash="not-a-real-hash")
    db.add(obj)
    db.commit()
    return obj


@pytest.fixture
def widget(db):
    obj = Product(name="Widget", description="", price_cents=1999)
    db.add(obj)
    db.commit()
    return obj


@pytest.fixture
def gadget(db):
    obj = Product(name="Gadget", description="", price_cents=500)
    db.add(obj)
    db.commit()
    return obj


@pytest.fixture
def order(db, user):
    obj = Order(user_id=user.id, total_cents=0)
    db.add(obj)
    db.commit()
    return obj


@pytest.fixture
def gizmo(db):
    obj = Product(name="Gizmo", description="", price_cents=1499)
    db.add(obj)
    db.commit()
    return obj
