from sqlalchemy import pool
from alembic import context
from storefront.core.config import settings
from storefront.db.session import Base, make_engine
import storefront.db.models  # noqa

config = context.config
target_metadata = Base.metadata

VERSION_TABLE = "alembic_version_storefront"

def run_migrations_offline():
    context.configure(
        url=settings.DATABASE_DSN,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        version_table=VERSION_TABLE,
        compare_type=True
    )
    with context.begin_transaction():
        context.run_migrations()

def run_migrations_online():
    connectable = make_engine(settings.DATABASE_DSN, poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            version_table=VERSION_TABLE,
            compare_type=True
        )
        with context.begin_transaction():
            context.run_migrations()

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
