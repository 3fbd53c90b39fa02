from alembic import op
import sqlalchemy as sa

revision = "20261018120000"
down_revision = None

def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False, unique=True, index=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='customer'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=240), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('price_cents', sa.BigInteger(), nullable=False),
        sa.Column('currency_code', sa.String(length=3), nullable=False, server_default='USD'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('price_cents >= 0', name='ck_products_price_nonneg'),
    )
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('currency_code', sa.String(length=3), nullable=False, server_default='USD'),
        sa.Column('total_cents', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('total_cents >= 0', name='ck_orders_total_nonneg'),
        sa.CheckConstraint("status IN ('pending', 'paid', 'cancelled')", name='ck_orders_status'),
    )
    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id', ondelete='RESTRICT'), nullable=False, index=True),
        sa.Column('product_name_snapshot', sa.String(length=240), nullable=False),
        sa.Column('unit_price_cents', sa.BigInteger(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('line_total_cents', sa.BigInteger(), nullable=False),
        sa.CheckConstraint('quantity >= 1', name='ck_order_items_quantity_min'),
        sa.CheckConstraint('unit_price_cents >= 0', name='ck_order_items_price_nonneg'),
        sa.CheckConstraint('line_total_cents >= 0', name='ck_order_items_line_total_nonneg'),
    )
    op.create_index('ix_orders_total_cents', 'orders', ['total_cents'])

def downgrade():
    op.drop_index('ix_orders_total_cents', table_name='orders')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('products')
    op.drop_table('users')
