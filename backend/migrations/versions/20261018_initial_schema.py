"""initial herbtrade schema

Revision ID: 20261018_initial_schema
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the complete HerbTrade schema:
- principals: customers and staff in one table (kind = customer | staff)
- products: catalog with version_id optimistic locking
- orders / order_items / delivery_events: orders, lines, append-only delivery log
- security_events: access-denied and login audit trail
- password_reset_tickets: hashed single-use reset tokens
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261018_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # principals: customers (users, admins) and staff (sellers ... delivery)
    # ============================================================================
    op.create_table(
        'principals',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('kind', sa.String(length=16), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        # Staff-only columns
        sa.Column('department', sa.String(length=128), nullable=True),
        sa.Column('is_first_login', sa.Boolean(), nullable=True),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        # Delivery-agent columns
        sa.Column('location_longitude', sa.Float(), nullable=True),
        sa.Column('location_latitude', sa.Float(), nullable=True),
        sa.Column('location_updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('max_delivery_radius_km', sa.Float(), nullable=True),
        sa.Column('is_available', sa.Boolean(), nullable=True),
        sa.Column('vehicle_type', sa.String(length=16), nullable=True),
        sa.Column('license_number', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['created_by_id'], ['principals.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_principals_email', 'principals', ['email'], unique=True)
    op.create_index('ix_principals_role', 'principals', ['role'])
    op.create_index('ix_principals_kind_role', 'principals', ['kind', 'role'])

    # ============================================================================
    # products
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('image', sa.String(length=512), nullable=True),
        sa.Column('category', sa.String(length=64), nullable=False),
        sa.Column('quality', sa.String(length=16), nullable=False),
        sa.Column('in_stock', sa.Integer(), nullable=False),
        sa.Column('quantity_unit', sa.String(length=16), nullable=False),
        sa.Column('seller_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.CheckConstraint('in_stock >= 0', name='ck_products_in_stock_non_negative'),
        sa.ForeignKeyConstraint(['seller_id'], ['principals.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_category', 'products', ['category'])
    op.create_index('ix_products_seller_id', 'products', ['seller_id'])

    # ============================================================================
    # orders: two coupled lifecycles (status, delivery_status)
    # ============================================================================
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('shipping_street', sa.String(length=255), nullable=True),
        sa.Column('shipping_city', sa.String(length=128), nullable=True),
        sa.Column('shipping_state', sa.String(length=128), nullable=True),
        sa.Column('shipping_zip_code', sa.String(length=32), nullable=True),
        sa.Column('shipping_country', sa.String(length=64), nullable=True),
        sa.Column('delivery_longitude', sa.Float(), nullable=True),
        sa.Column('delivery_latitude', sa.Float(), nullable=True),
        sa.Column('delivery_assignee_id', sa.Integer(), nullable=True),
        sa.Column('delivery_status', sa.String(length=32), nullable=False),
        sa.Column('delivery_notes', sa.Text(), nullable=True),
        sa.Column('payment_method', sa.String(length=16), nullable=False),
        sa.Column('payment_status', sa.String(length=16), nullable=False),
        sa.Column('order_date', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('delivery_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('tracking_number', sa.String(length=64), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['user_id'], ['principals.id']),
        sa.ForeignKeyConstraint(['delivery_assignee_id'], ['principals.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_delivery_status', 'orders', ['delivery_status'])
    op.create_index('ix_orders_user_date', 'orders', ['user_id', 'order_date'])
    op.create_index('ix_orders_assignee_status', 'orders', ['delivery_assignee_id', 'delivery_status'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.CheckConstraint('quantity >= 1', name='ck_order_items_quantity_positive'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    op.create_table(
        'delivery_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('actor_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.ForeignKeyConstraint(['actor_id'], ['principals.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_delivery_events_order_id', 'delivery_events', ['order_id'])
    op.create_index('ix_delivery_events_order_created', 'delivery_events', ['order_id', 'created_at'])

    # ============================================================================
    # security_events / password_reset_tickets
    # ============================================================================
    op.create_table(
        'security_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('principal_id', sa.Integer(), nullable=True),
        sa.Column('event_type', sa.String(length=64), nullable=False),
        sa.Column('resource', sa.String(length=128), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['principal_id'], ['principals.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_security_events_principal_id', 'security_events', ['principal_id'])
    op.create_index('ix_security_events_event_type', 'security_events', ['event_type'])
    op.create_index('ix_security_events_success', 'security_events', ['success'])
    op.create_index('ix_security_events_occurred_at', 'security_events', ['occurred_at'])
    op.create_index('ix_security_events_principal_type', 'security_events', ['principal_id', 'event_type'])
    op.create_index('ix_security_events_occurred', 'security_events', ['occurred_at'])

    op.create_table(
        'password_reset_tickets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('principal_id', sa.Integer(), nullable=False),
        sa.Column('purpose', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('issued_by_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['principal_id'], ['principals.id']),
        sa.ForeignKeyConstraint(['issued_by_id'], ['principals.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_password_reset_tickets_token_hash', 'password_reset_tickets', ['token_hash'], unique=True)
    op.create_index('ix_password_reset_tickets_principal_id', 'password_reset_tickets', ['principal_id'])
    op.create_index('ix_password_reset_tickets_expires', 'password_reset_tickets', ['expires_at'])


def downgrade():
    op.drop_table('password_reset_tickets')
    op.drop_table('security_events')
    op.drop_table('delivery_events')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('products')
    op.drop_table('principals')
