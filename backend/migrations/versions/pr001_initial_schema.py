"""Initial schema: accounts, sessions, tenancy, terminals, notifications, menus

Revision ID: pr001_initial
Revises:
Create Date: 2026-10-16

This migration creates:
1. users, sessions, user_audit_logs (accounts and bearer sessions)
2. organizations, ports, port_admin_contacts (tenancy and contact verification)
3. subscription_types, terminals, activation_logs (terminal lifecycle)
4. notifications
5. menus (glink/plink navigation)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'pr001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. ORGANIZATIONS / PORTS
    # ==========================================================================
    op.create_table('organizations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_name', sa.String(length=255), nullable=False),
        sa.Column('display_name', sa.String(length=120), nullable=False),
        sa.Column('organization_code', sa.String(length=32), nullable=False),
        sa.Column('register_office', sa.Text(), nullable=False),
        sa.Column('country', sa.String(length=120), nullable=False),
        sa.Column('telephone', sa.String(length=32), nullable=True),
        sa.Column('fax', sa.String(length=32), nullable=True),
        sa.Column('website', sa.String(length=255), nullable=True),
        sa.Column('logo_url', sa.String(length=512), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('organization_name'),
        sa.UniqueConstraint('display_name'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('organizations', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_organizations_organization_code'), ['organization_code'], unique=True)
        batch_op.create_index(batch_op.f('ix_organizations_is_active'), ['is_active'], unique=False)

    op.create_table('ports',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('port_name', sa.String(length=255), nullable=False),
        sa.Column('display_name', sa.String(length=6), nullable=False),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('country', sa.String(length=120), nullable=False),
        sa.Column('state', sa.String(length=120), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('ports', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_ports_organization_id'), ['organization_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_ports_is_active'), ['is_active'], unique=False)
        batch_op.create_index('ix_ports_org_active', ['organization_id', 'is_active'], unique=False)

    # ==========================================================================
    # 2. USERS / SESSIONS / AUDIT
    # ==========================================================================
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=120), nullable=False, server_default=''),
        sa.Column('last_name', sa.String(length=120), nullable=False, server_default=''),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='user'),
        sa.Column('user_type', sa.String(length=64), nullable=True),
        sa.Column('port_id', sa.Integer(), nullable=True),
        sa.Column('terminal_ids', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['port_id'], ['ports.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_email'), ['email'], unique=True)
        batch_op.create_index(batch_op.f('ix_users_port_id'), ['port_id'], unique=False)
        batch_op.create_index('ix_users_role', ['role'], unique=False)

    op.create_table('sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('remember_me', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sessions', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_sessions_token_hash'), ['token_hash'], unique=True)
        batch_op.create_index(batch_op.f('ix_sessions_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_sessions_expires_at'), ['expires_at'], unique=False)
        batch_op.create_index('ix_sessions_user_expires', ['user_id', 'expires_at'], unique=False)

    op.create_table('user_audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('target_user_id', sa.Integer(), nullable=False),
        sa.Column('performed_by', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(length=32), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('old_values', sa.Text(), nullable=True),
        sa.Column('new_values', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('user_audit_logs', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_user_audit_logs_target_user_id'), ['target_user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_user_audit_logs_performed_by'), ['performed_by'], unique=False)
        batch_op.create_index(batch_op.f('ix_user_audit_logs_action'), ['action'], unique=False)
        batch_op.create_index(batch_op.f('ix_user_audit_logs_created_at'), ['created_at'], unique=False)
        batch_op.create_index('ix_user_audit_logs_target_created', ['target_user_id', 'created_at'], unique=False)

    # ==========================================================================
    # 3. PORT ADMIN CONTACTS
    # ==========================================================================
    op.create_table('port_admin_contacts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('port_id', sa.Integer(), nullable=False),
        sa.Column('contact_name', sa.String(length=255), nullable=False),
        sa.Column('designation', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('mobile_number', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='inactive'),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('verification_token', sa.String(length=128), nullable=True),
        sa.Column('verification_token_expires', sa.DateTime(timezone=True), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['port_id'], ['ports.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('verification_token'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('port_admin_contacts', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_port_admin_contacts_email'), ['email'], unique=True)
        batch_op.create_index(batch_op.f('ix_port_admin_contacts_port_id'), ['port_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_port_admin_contacts_user_id'), ['user_id'], unique=False)
        batch_op.create_index('ix_port_admin_contacts_port_status', ['port_id', 'status'], unique=False)

    # ==========================================================================
    # 4. SUBSCRIPTION TYPES / TERMINALS / ACTIVATION LOGS
    # ==========================================================================
    op.create_table('subscription_types',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('months', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )

    op.create_table('terminals',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('port_id', sa.Integer(), nullable=False),
        sa.Column('terminal_name', sa.String(length=255), nullable=False),
        sa.Column('short_code', sa.String(length=6), nullable=False),
        sa.Column('gst', sa.String(length=32), nullable=True),
        sa.Column('pan', sa.String(length=32), nullable=True),
        sa.Column('currency', sa.String(length=8), nullable=False, server_default='INR'),
        sa.Column('timezone', sa.String(length=64), nullable=False, server_default='Asia/Kolkata'),
        sa.Column('billing_address', sa.Text(), nullable=False),
        sa.Column('billing_city', sa.String(length=120), nullable=False),
        sa.Column('billing_pin_code', sa.String(length=16), nullable=False),
        sa.Column('billing_phone', sa.String(length=32), nullable=False),
        sa.Column('billing_fax', sa.String(length=32), nullable=True),
        sa.Column('shipping_address', sa.Text(), nullable=False),
        sa.Column('shipping_city', sa.String(length=120), nullable=False),
        sa.Column('shipping_pin_code', sa.String(length=16), nullable=False),
        sa.Column('shipping_phone', sa.String(length=32), nullable=False),
        sa.Column('shipping_fax', sa.String(length=32), nullable=True),
        sa.Column('same_as_billing', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='Processing for activation'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('subscription_type_id', sa.Integer(), nullable=True),
        sa.Column('activation_start_date', sa.Date(), nullable=True),
        sa.Column('activation_end_date', sa.Date(), nullable=True),
        sa.Column('work_order_no', sa.String(length=64), nullable=True),
        sa.Column('work_order_date', sa.Date(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['port_id'], ['ports.id'], ),
        sa.ForeignKeyConstraint(['subscription_type_id'], ['subscription_types.id'], ),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('terminal_name'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('terminals', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_terminals_short_code'), ['short_code'], unique=True)
        batch_op.create_index(batch_op.f('ix_terminals_port_id'), ['port_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_terminals_status'), ['status'], unique=False)
        batch_op.create_index(batch_op.f('ix_terminals_created_by'), ['created_by'], unique=False)
        batch_op.create_index('ix_terminals_port_status', ['port_id', 'status'], unique=False)

    op.create_table('activation_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('terminal_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=32), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('performed_by', sa.Integer(), nullable=True),
        sa.Column('data', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['terminal_id'], ['terminals.id'], ),
        sa.ForeignKeyConstraint(['performed_by'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('activation_logs', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_activation_logs_terminal_id'), ['terminal_id'], unique=False)
        batch_op.create_index('ix_activation_logs_terminal_created', ['terminal_id', 'created_at'], unique=False)

    # ==========================================================================
    # 5. NOTIFICATIONS
    # ==========================================================================
    op.create_table('notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=64), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('data', sa.Text(), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('notifications', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_notifications_user_id'), ['user_id'], unique=False)
        batch_op.create_index('ix_notifications_user_read', ['user_id', 'is_read'], unique=False)

    # ==========================================================================
    # 6. MENUS
    # ==========================================================================
    op.create_table('menus',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('label', sa.String(length=120), nullable=False),
        sa.Column('menu_type', sa.Enum('glink', 'plink', name='menu_type'), nullable=False),
        sa.Column('parent_id', sa.Integer(), nullable=True),
        sa.Column('route', sa.String(length=255), nullable=True),
        sa.Column('icon', sa.String(length=64), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['parent_id'], ['menus.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('menus', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_menus_parent_id'), ['parent_id'], unique=False)
        batch_op.create_index('ix_menus_parent_sort', ['parent_id', 'sort_order'], unique=False)


def downgrade():
    with op.batch_alter_table('menus', schema=None) as batch_op:
        batch_op.drop_index('ix_menus_parent_sort')
        batch_op.drop_index(batch_op.f('ix_menus_parent_id'))
    op.drop_table('menus')

    with op.batch_alter_table('notifications', schema=None) as batch_op:
        batch_op.drop_index('ix_notifications_user_read')
        batch_op.drop_index(batch_op.f('ix_notifications_user_id'))
    op.drop_table('notifications')

    op.drop_table('activation_logs')
    op.drop_table('terminals')
    op.drop_table('subscription_types')
    op.drop_table('port_admin_contacts')
    op.drop_table('user_audit_logs')
    op.drop_table('sessions')
    op.drop_table('users')
    op.drop_table('ports')
    op.drop_table('organizations')
