"""initial schema

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-17

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # users
    op.create_table(
        'users',
        sa.Column('id', sa.String(), primary_key=True, nullable=False),
        sa.Column('username', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )
    op.create_index('ix_users_email', 'users', ['email'])

    # feeds, shared by every subscriber
    op.create_table(
        'feeds',
        sa.Column('id', sa.String(), primary_key=True, nullable=False),
        sa.Column('url', sa.String(length=2048), nullable=False),
        sa.Column('title', sa.String(), nullable=True),
        sa.Column('last_checked', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('url', name='uq_feeds_url'),
    )

    # folders
    op.create_table(
        'folders',
        sa.Column('id', sa.String(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.UniqueConstraint('user_id', 'name', name='uq_folders_user_name'),
    )
    op.create_index('ix_folders_user_id', 'folders', ['user_id'])

    # subscriptions
    op.create_table(
        'subscriptions',
        sa.Column('id', sa.String(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('feed_id', sa.String(), sa.ForeignKey('feeds.id', ondelete='CASCADE'), nullable=False),
        sa.Column('folder_id', sa.String(), sa.ForeignKey('folders.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('user_id', 'feed_id', name='uq_subscriptions_user_feed'),
    )
    op.create_index('ix_subscriptions_user_id', 'subscriptions', ['user_id'])
    op.create_index('ix_subscriptions_feed_id', 'subscriptions', ['feed_id'])
    op.create_index('ix_subscriptions_folder_id', 'subscriptions', ['folder_id'])


def downgrade() -> None:
    op.drop_index('ix_subscriptions_folder_id', table_name='subscriptions')
    op.drop_index('ix_subscriptions_feed_id', table_name='subscriptions')
    op.drop_index('ix_subscriptions_user_id', table_name='subscriptions')
    op.drop_table('subscriptions')
    op.drop_index('ix_folders_user_id', table_name='folders')
    op.drop_table('folders')
    op.drop_table('feeds')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
