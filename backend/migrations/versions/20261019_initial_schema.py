"""Initial schema: stores, catalog, unit ledger, transfers, sales, employees, purchasing

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19

This migration creates:
1. Stores, employees and bearer session tokens
2. Products, suppliers and the append-only exchange rate history
3. Units (one row per scan code) with an optimistic version counter
4. Transfers and sales with their per-unit lines
5. Purchase orders, items and installment payments
6. Per-store receipt settings
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. STORES, EMPLOYEES, SESSIONS
    # ==========================================================================
    op.create_table('stores',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_stores'),
        sa.UniqueConstraint('name', name='uq_stores_name'),
        sqlite_autoincrement=True
    )

    op.create_table('employees',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('first_name', sa.String(length=120), nullable=False),
        sa.Column('last_name', sa.String(length=120), nullable=False),
        sa.Column('position', sa.String(length=16), nullable=False),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('ci', sa.Integer(), nullable=True),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], name='fk_employees_store_id_stores'),
        sa.PrimaryKeyConstraint('id', name='pk_employees'),
        sa.UniqueConstraint('username', name='uq_employees_username'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('employees', schema=None) as batch_op:
        batch_op.create_index('ix_employees_username', ['username'], unique=False)
        batch_op.create_index('ix_employees_store_active', ['store_id', 'is_active'], unique=False)

    op.create_table('session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=True),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], name='fk_session_tokens_employee_id_employees'),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], name='fk_session_tokens_store_id_stores'),
        sa.PrimaryKeyConstraint('id', name='pk_session_tokens'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('session_tokens', schema=None) as batch_op:
        batch_op.create_index('ix_session_tokens_employee_id', ['employee_id'], unique=False)
        batch_op.create_index('ix_session_tokens_store_id', ['store_id'], unique=False)
        batch_op.create_index('ix_session_tokens_token_hash', ['token_hash'], unique=True)
        batch_op.create_index('ix_session_tokens_expires_at', ['expires_at'], unique=False)
        batch_op.create_index('ix_session_tokens_is_revoked', ['is_revoked'], unique=False)
        batch_op.create_index('ix_session_tokens_employee_active', ['employee_id', 'is_revoked'], unique=False)

    # ==========================================================================
    # 2. CATALOG
    # ==========================================================================
    op.create_table('products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('color', sa.String(length=64), nullable=True),
        sa.Column('image_url', sa.String(length=512), nullable=True),
        sa.Column('cost_price_cents', sa.Integer(), nullable=False),
        sa.Column('profit_bob_cents', sa.Integer(), nullable=False),
        sa.Column('ram_gb', sa.Integer(), nullable=True),
        sa.Column('rom_gb', sa.Integer(), nullable=True),
        sa.Column('processor', sa.String(length=128), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by_employee_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['created_by_employee_id'], ['employees.id'], name='fk_products_created_by_employee_id_employees'),
        sa.PrimaryKeyConstraint('id', name='pk_products'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.create_index('ix_products_active_name', ['is_active', 'name'], unique=False)

    op.create_table('suppliers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('first_name', sa.String(length=120), nullable=False),
        sa.Column('last_name', sa.String(length=120), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('created_by_employee_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['created_by_employee_id'], ['employees.id'], name='fk_suppliers_created_by_employee_id_employees'),
        sa.PrimaryKeyConstraint('id', name='pk_suppliers'),
        sqlite_autoincrement=True
    )

    op.create_table('exchange_rates',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('rate', sa.Numeric(precision=12, scale=4), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], name='fk_exchange_rates_employee_id_employees'),
        sa.PrimaryKeyConstraint('id', name='pk_exchange_rates'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('exchange_rates', schema=None) as batch_op:
        batch_op.create_index('ix_exchange_rates_created', ['created_at'], unique=False)

    # ==========================================================================
    # 3. UNIT LEDGER
    # ==========================================================================
    op.create_table('units',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('scan_code', sa.String(length=128), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('sold', sa.Boolean(), nullable=False),
        sa.Column('sold_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('assigned_by_employee_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name='fk_units_product_id_products'),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], name='fk_units_store_id_stores'),
        sa.ForeignKeyConstraint(['assigned_by_employee_id'], ['employees.id'], name='fk_units_assigned_by_employee_id_employees'),
        sa.PrimaryKeyConstraint('id', name='pk_units'),
        sa.UniqueConstraint('scan_code', name='uq_units_scan_code'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('units', schema=None) as batch_op:
        batch_op.create_index('ix_units_product_id', ['product_id'], unique=False)
        batch_op.create_index('ix_units_store_id', ['store_id'], unique=False)
        batch_op.create_index('ix_units_product_store_sold', ['product_id', 'store_id', 'sold'], unique=False)
        batch_op.create_index('ix_units_store_sold', ['store_id', 'sold'], unique=False)

    # ==========================================================================
    # 4. TRANSFERS AND SALES
    # ==========================================================================
    op.create_table('transfers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('origin_store_id', sa.Integer(), nullable=False),
        sa.Column('destination_store_id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('note', sa.String(length=255), nullable=True),
        sa.Column('transferred_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('origin_store_id <> destination_store_id', name='ck_transfers_origin_ne_destination'),
        sa.ForeignKeyConstraint(['origin_store_id'], ['stores.id'], name='fk_transfers_origin_store_id_stores'),
        sa.ForeignKeyConstraint(['destination_store_id'], ['stores.id'], name='fk_transfers_destination_store_id_stores'),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], name='fk_transfers_employee_id_employees'),
        sa.PrimaryKeyConstraint('id', name='pk_transfers'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('transfers', schema=None) as batch_op:
        batch_op.create_index('ix_transfers_employee_id', ['employee_id'], unique=False)
        batch_op.create_index('ix_transfers_origin_date', ['origin_store_id', 'transferred_at'], unique=False)
        batch_op.create_index('ix_transfers_destination_date', ['destination_store_id', 'transferred_at'], unique=False)

    op.create_table('transfer_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('transfer_id', sa.Integer(), nullable=False),
        sa.Column('unit_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('scan_code', sa.String(length=128), nullable=False),
        sa.ForeignKeyConstraint(['transfer_id'], ['transfers.id'], name='fk_transfer_lines_transfer_id_transfers'),
        sa.ForeignKeyConstraint(['unit_id'], ['units.id'], name='fk_transfer_lines_unit_id_units'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name='fk_transfer_lines_product_id_products'),
        sa.PrimaryKeyConstraint('id', name='pk_transfer_lines'),
        sa.UniqueConstraint('transfer_id', 'unit_id', name='uq_transfer_lines_transfer_unit'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('transfer_lines', schema=None) as batch_op:
        batch_op.create_index('ix_transfer_lines_transfer_id', ['transfer_id'], unique=False)
        batch_op.create_index('ix_transfer_lines_unit_id', ['unit_id'], unique=False)
        batch_op.create_index('ix_transfer_lines_product_id', ['product_id'], unique=False)

    op.create_table('sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('computed_total_cents', sa.Integer(), nullable=True),
        sa.Column('exchange_rate', sa.Numeric(precision=12, scale=4), nullable=True),
        sa.Column('item_count', sa.Integer(), nullable=False),
        sa.Column('payment_method', sa.String(length=32), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=True),
        sa.Column('customer_phone', sa.String(length=64), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], name='fk_sales_store_id_stores'),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], name='fk_sales_employee_id_employees'),
        sa.PrimaryKeyConstraint('id', name='pk_sales'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sales', schema=None) as batch_op:
        batch_op.create_index('ix_sales_store_id', ['store_id'], unique=False)
        batch_op.create_index('ix_sales_employee_id', ['employee_id'], unique=False)
        batch_op.create_index('ix_sales_occurred_at', ['occurred_at'], unique=False)
        batch_op.create_index('ix_sales_store_occurred', ['store_id', 'occurred_at'], unique=False)

    op.create_table('sale_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('unit_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('scan_code', sa.String(length=128), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=True),
        sa.Column('device_codes', sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id'], name='fk_sale_lines_sale_id_sales'),
        sa.ForeignKeyConstraint(['unit_id'], ['units.id'], name='fk_sale_lines_unit_id_units'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name='fk_sale_lines_product_id_products'),
        sa.PrimaryKeyConstraint('id', name='pk_sale_lines'),
        sa.UniqueConstraint('unit_id', name='uq_sale_lines_unit'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sale_lines', schema=None) as batch_op:
        batch_op.create_index('ix_sale_lines_sale_id', ['sale_id'], unique=False)
        batch_op.create_index('ix_sale_lines_product_id', ['product_id'], unique=False)

    # ==========================================================================
    # 5. PURCHASE ORDERS
    # ==========================================================================
    op.create_table('purchase_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=True),
        sa.Column('ordered_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('total_amount_cents', sa.Integer(), nullable=False),
        sa.Column('paid_amount_cents', sa.Integer(), nullable=False),
        sa.Column('balance_due_cents', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.CheckConstraint("status IN ('PENDING', 'PARTIALLY_PAID', 'COMPLETED')", name='ck_purchase_orders_purchase_order_status_valid'),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], name='fk_purchase_orders_supplier_id_suppliers'),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], name='fk_purchase_orders_employee_id_employees'),
        sa.PrimaryKeyConstraint('id', name='pk_purchase_orders'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('purchase_orders', schema=None) as batch_op:
        batch_op.create_index('ix_purchase_orders_supplier_id', ['supplier_id'], unique=False)
        batch_op.create_index('ix_purchase_orders_supplier_date', ['supplier_id', 'ordered_at'], unique=False)

    op.create_table('purchase_order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('total_price_cents', sa.Integer(), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_purchase_order_items_purchase_order_item_quantity_positive'),
        sa.ForeignKeyConstraint(['order_id'], ['purchase_orders.id'], name='fk_purchase_order_items_order_id_purchase_orders'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name='fk_purchase_order_items_product_id_products'),
        sa.PrimaryKeyConstraint('id', name='pk_purchase_order_items'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('purchase_order_items', schema=None) as batch_op:
        batch_op.create_index('ix_purchase_order_items_order_id', ['order_id'], unique=False)
        batch_op.create_index('ix_purchase_order_items_product_id', ['product_id'], unique=False)

    op.create_table('purchase_order_payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('payment_method', sa.String(length=32), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('amount_cents > 0', name='ck_purchase_order_payments_purchase_order_payment_amount_positive'),
        sa.ForeignKeyConstraint(['order_id'], ['purchase_orders.id'], name='fk_purchase_order_payments_order_id_purchase_orders'),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], name='fk_purchase_order_payments_employee_id_employees'),
        sa.PrimaryKeyConstraint('id', name='pk_purchase_order_payments'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('purchase_order_payments', schema=None) as batch_op:
        batch_op.create_index('ix_purchase_order_payments_order_id', ['order_id'], unique=False)

    # ==========================================================================
    # 6. RECEIPT SETTINGS
    # ==========================================================================
    op.create_table('receipt_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('business_name', sa.String(length=255), nullable=False),
        sa.Column('tax_id', sa.String(length=64), nullable=True),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('footer_text', sa.Text(), nullable=True),
        sa.Column('warranty_text', sa.Text(), nullable=True),
        sa.Column('warranty_days', sa.Integer(), nullable=False),
        sa.Column('updated_by_employee_id', sa.Integer(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], name='fk_receipt_settings_store_id_stores'),
        sa.ForeignKeyConstraint(['updated_by_employee_id'], ['employees.id'], name='fk_receipt_settings_updated_by_employee_id_employees'),
        sa.PrimaryKeyConstraint('id', name='pk_receipt_settings'),
        sa.UniqueConstraint('store_id', name='uq_receipt_settings_store'),
        sqlite_autoincrement=True
    )


def downgrade():
    op.drop_table('receipt_settings')
    op.drop_table('purchase_order_payments')
    op.drop_table('purchase_order_items')
    op.drop_table('purchase_orders')
    op.drop_table('sale_lines')
    op.drop_table('sales')
    op.drop_table('transfer_lines')
    op.drop_table('transfers')
    op.drop_table('units')
    op.drop_table('exchange_rates')
    op.drop_table('suppliers')
    op.drop_table('products')
    op.drop_table('session_tokens')
    op.drop_table('employees')
    op.drop_table('stores')
