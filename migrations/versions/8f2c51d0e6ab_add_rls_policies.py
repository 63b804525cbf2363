"""add_rls_policies

Revision ID: 8f2c51d0e6ab
Revises: 4b1d7e2a9c03
Create Date: 2026-10-19 09:40:02.551870

"""

from collections.abc import Sequence

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "8f2c51d0e6ab"
down_revision: str | Sequence[str] | None = "4b1d7e2a9c03"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

TABLES = ["profiles", "products", "orders", "order_items"]

POLICIES = {
    "profiles": ["profiles_select", "profiles_insert", "profiles_update"],
    "products": [
        "products_select",
        "products_insert",
        "products_update_seller",
        "products_update_admin",
    ],
    "orders": ["orders_select", "orders_insert", "orders_update"],
    "order_items": ["order_items_select", "order_items_insert"],
}


def upgrade() -> None:
    """Add Row Level Security policies for direct Supabase client access.

    The FastAPI backend connects with a service role that bypasses RLS. These
    policies govern the browser client and its realtime subscriptions. A
    profile insert for another user is rejected with SQLSTATE 42501, which
    the profile repository reports as a conflict.
    """
    # Role lookup without re-entering the profiles policies.
    op.execute("""
        CREATE OR REPLACE FUNCTION is_admin(uid UUID)
        RETURNS BOOLEAN
        LANGUAGE sql
        SECURITY DEFINER
        STABLE
        SET search_path = public
        AS $$
            SELECT EXISTS (SELECT 1 FROM profiles WHERE id = uid AND role = 'admin');
        $$;
    """)

    for table in TABLES:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY;")

    # --- Profiles ---
    # SELECT: own profile, or any profile for admins
    op.execute("""
        CREATE POLICY profiles_select ON profiles
            FOR SELECT USING (
                id = (SELECT auth.uid()) OR is_admin((SELECT auth.uid()))
            );
    """)
    # INSERT: only the row keyed by the caller's own id
    op.execute("""
        CREATE POLICY profiles_insert ON profiles
            FOR INSERT WITH CHECK (id = (SELECT auth.uid()));
    """)
    op.execute("""
        CREATE POLICY profiles_update ON profiles
            FOR UPDATE USING (id = (SELECT auth.uid()));
    """)

    # --- Products ---
    # SELECT: approved products for everyone, own products for sellers
    op.execute("""
        CREATE POLICY products_select ON products
            FOR SELECT USING (
                status = 'approved'
                OR seller_id = (SELECT auth.uid())
                OR is_admin((SELECT auth.uid()))
            );
    """)
    op.execute("""
        CREATE POLICY products_insert ON products
            FOR INSERT WITH CHECK (
                seller_id = (SELECT auth.uid()) AND status = 'pending'
            );
    """)
    op.execute("""
        CREATE POLICY products_update_seller ON products
            FOR UPDATE USING (seller_id = (SELECT auth.uid()));
    """)
    op.execute("""
        CREATE POLICY products_update_admin ON products
            FOR UPDATE USING (is_admin((SELECT auth.uid())));
    """)

    # --- Orders ---
    op.execute("""
        CREATE POLICY orders_select ON orders
            FOR SELECT USING (
                buyer_id = (SELECT auth.uid())
                OR seller_id = (SELECT auth.uid())
                OR is_admin((SELECT auth.uid()))
            );
    """)
    op.execute("""
        CREATE POLICY orders_insert ON orders
            FOR INSERT WITH CHECK (buyer_id = (SELECT auth.uid()));
    """)
    # UPDATE: the order's seller moves it along; admins may as well
    op.execute("""
        CREATE POLICY orders_update ON orders
            FOR UPDATE USING (
                seller_id = (SELECT auth.uid()) OR is_admin((SELECT auth.uid()))
            );
    """)

    # --- Order items ---
    op.execute("""
        CREATE POLICY order_items_select ON order_items
            FOR SELECT USING (
                order_id IN (
                    SELECT id FROM orders
                    WHERE buyer_id = (SELECT auth.uid())
                    OR seller_id = (SELECT auth.uid())
                )
                OR is_admin((SELECT auth.uid()))
            );
    """)
    op.execute("""
        CREATE POLICY order_items_insert ON order_items
            FOR INSERT WITH CHECK (
                order_id IN (SELECT id FROM orders WHERE buyer_id = (SELECT auth.uid()))
            );
    """)

    # Realtime change feeds for order tracking
    op.execute("ALTER PUBLICATION supabase_realtime ADD TABLE orders;")


def downgrade() -> None:
    """Remove RLS policies."""
    op.execute("ALTER PUBLICATION supabase_realtime DROP TABLE orders;")

    for table, policies in POLICIES.items():
        for policy in policies:
            op.execute(f"DROP POLICY IF EXISTS {policy} ON {table};")

    for table in TABLES:
        op.execute(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY;")

    op.execute("DROP FUNCTION IF EXISTS is_admin(UUID);")
