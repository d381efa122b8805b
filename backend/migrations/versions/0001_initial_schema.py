"""initial assetflow schema

Revision ID: 0001_initial_schema
Revises: 
Create Date: 2026-10-18
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

_NOW = sa.text('CURRENT_TIMESTAMP')


def upgrade():
    op.create_table('departments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False, unique=True),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=_NOW),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=_NOW),
    )
    op.create_index('ix_departments_type', 'departments', ['type'])

    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=128), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=_NOW),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=_NOW),
    )
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_department_id', 'users', ['department_id'])

    op.create_table('bill_files',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('filename', sa.String(length=255), nullable=False),
        sa.Column('content_type', sa.String(length=128), nullable=False),
        sa.Column('size', sa.Integer(), nullable=False),
        sa.Column('data', sa.LargeBinary(), nullable=False),
        sa.Column('uploaded_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=_NOW),
    )

    op.create_table('assets',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.id'), nullable=False),
        sa.Column('category', sa.String(length=64), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('item_name', sa.String(length=255)),
        sa.Column('quantity', sa.Float(), nullable=False, server_default='0'),
        sa.Column('price_per_item', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('vendor_name', sa.String(length=255), nullable=False),
        sa.Column('vendor_address', sa.String(length=512)),
        sa.Column('contact_number', sa.String(length=32)),
        sa.Column('email', sa.String(length=128)),
        sa.Column('bill_no', sa.String(length=64), nullable=False),
        sa.Column('bill_date', sa.Date(), nullable=False),
        sa.Column('bill_file_id', sa.Integer(), sa.ForeignKey('bill_files.id', ondelete='SET NULL'), nullable=True),
        sa.Column('college_isr_no', sa.String(length=64)),
        sa.Column('it_isr_no', sa.String(length=64)),
        sa.Column('igst', sa.Float(), nullable=False, server_default='0'),
        sa.Column('cgst', sa.Float(), nullable=False, server_default='0'),
        sa.Column('sgst', sa.Float(), nullable=False, server_default='0'),
        sa.Column('grand_total', sa.Float(), nullable=False, server_default='0'),
        sa.Column('remark', sa.Text()),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('update_request_status', sa.String(length=16), nullable=False, server_default='none'),
        sa.Column('requested_fields', sa.JSON(), nullable=False),
        sa.Column('temp_values', sa.JSON(), nullable=False),
        sa.Column('requested_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('requested_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reviewed_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('admin_remarks', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=_NOW),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=_NOW),
    )
    for col in ('department_id', 'type', 'vendor_name', 'bill_no', 'bill_date', 'update_request_status'):
        op.create_index(f'ix_assets_{col}', 'assets', [col])

    op.create_table('notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('recipient_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('asset_id', sa.Integer(), sa.ForeignKey('assets.id', ondelete='SET NULL'), nullable=True),
        sa.Column('bill_no', sa.String(length=64)),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=_NOW),
    )
    op.create_index('ix_notifications_recipient_id', 'notifications', ['recipient_id'])

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('actor_user_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('entity', sa.String(length=64)),
        sa.Column('entity_id', sa.String(length=64)),
        sa.Column('role', sa.String(length=32)),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=_NOW),
    )
    op.create_index('ix_audit_logs_actor_user_id', 'audit_logs', ['actor_user_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_entity_id', 'audit_logs', ['entity_id'])


def downgrade():
    for tbl in ['audit_logs', 'notifications', 'assets', 'bill_files', 'users', 'departments']:
        op.drop_table(tbl)
