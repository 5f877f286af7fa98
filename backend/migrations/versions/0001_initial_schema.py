"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the storekeeper schema from scratch:
- categories, products: merchandise catalog with its stock ledger fields
- food_items: kitchen menu (no stock)
- account_sessions / kitchen_sessions: accounting periods per pipeline
- sales / food_sales: sale records with price snapshots
- reports / kitchen_reports: closure rollups, one per session at most
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # categories
    # ============================================================================
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )

    # ============================================================================
    # products: status is always derived from quantity and reorder_level
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('reorder_level', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('quantity >= 0', name='ck_products_quantity_non_negative'),
        sa.CheckConstraint('unit_price >= 0', name='ck_products_unit_price_non_negative'),
        sa.CheckConstraint('reorder_level >= 0', name='ck_products_reorder_level_non_negative'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_name', 'products', ['product_name'])
    op.create_index('ix_products_status', 'products', ['status'])
    op.create_index('ix_products_category_id', 'products', ['category_id'])

    # ============================================================================
    # food_items
    # ============================================================================
    op.create_table(
        'food_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('category', sa.String(length=120), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('price >= 0', name='ck_food_items_price_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )

    # ============================================================================
    # sessions: the latest opened_at per table is the open session
    # ============================================================================
    for table in ('account_sessions', 'kitchen_sessions'):
        op.create_table(
            table,
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('opened_at', sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint('id'),
            sqlite_autoincrement=True
        )
        op.create_index(f'ix_{table}_opened_at', table, ['opened_at'])

    # ============================================================================
    # sales
    # ============================================================================
    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity_sold', sa.Integer(), nullable=False),
        sa.Column('total_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('sale_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=False),
        sa.CheckConstraint('quantity_sold > 0', name='ck_sales_quantity_sold_positive'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.ForeignKeyConstraint(['session_id'], ['account_sessions.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sales_product_id', 'sales', ['product_id'])
    op.create_index('ix_sales_sale_date', 'sales', ['sale_date'])
    op.create_index('ix_sales_session_id', 'sales', ['session_id'])
    op.create_index('ix_sales_session_date', 'sales', ['session_id', 'sale_date'])

    op.create_table(
        'food_sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('food_item_id', sa.Integer(), nullable=True),
        sa.Column('food_name', sa.String(length=255), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_food_sales_quantity_positive'),
        sa.ForeignKeyConstraint(['food_item_id'], ['food_items.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['session_id'], ['kitchen_sessions.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_food_sales_food_item_id', 'food_sales', ['food_item_id'])
    op.create_index('ix_food_sales_created_at', 'food_sales', ['created_at'])
    op.create_index('ix_food_sales_session_id', 'food_sales', ['session_id'])
    op.create_index('ix_food_sales_session_created', 'food_sales', ['session_id', 'created_at'])

    # ============================================================================
    # reports: written once at closure (or manually, with no session)
    # ============================================================================
    for table, session_table in (('reports', 'account_sessions'), ('kitchen_reports', 'kitchen_sessions')):
        op.create_table(
            table,
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('session_id', sa.Integer(), nullable=True),
            sa.Column('total_revenue', sa.Numeric(12, 2), nullable=False),
            sa.Column('total_sales', sa.Integer(), nullable=False),
            sa.Column('notes', sa.Text(), nullable=True),
            sa.Column('date', sa.Date(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                      server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.ForeignKeyConstraint(['session_id'], [f'{session_table}.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('session_id', name=f'uq_{table}_session'),
            sqlite_autoincrement=True
        )
        op.create_index(f'ix_{table}_date', table, ['date'])


def downgrade():
    for table in ('kitchen_reports', 'reports'):
        op.drop_index(f'ix_{table}_date', table_name=table)
        op.drop_table(table)

    op.drop_index('ix_food_sales_session_created', table_name='food_sales')
    op.drop_index('ix_food_sales_session_id', table_name='food_sales')
    op.drop_index('ix_food_sales_created_at', table_name='food_sales')
    op.drop_index('ix_food_sales_food_item_id', table_name='food_sales')
    op.drop_table('food_sales')

    op.drop_index('ix_sales_session_date', table_name='sales')
    op.drop_index('ix_sales_session_id', table_name='sales')
    op.drop_index('ix_sales_sale_date', table_name='sales')
    op.drop_index('ix_sales_product_id', table_name='sales')
    op.drop_table('sales')

    for table in ('kitchen_sessions', 'account_sessions'):
        op.drop_index(f'ix_{table}_opened_at', table_name=table)
        op.drop_table(table)

    op.drop_table('food_items')

    op.drop_index('ix_products_category_id', table_name='products')
    op.drop_index('ix_products_status', table_name='products')
    op.drop_index('ix_products_name', table_name='products')
    op.drop_table('products')

    op.drop_table('categories')
