"""Unique usernames, notification preferences and password change time

Revision ID: 8b2e4d6a1c90
Revises: 3f9a1c2d7b64
Create Date: 2026-01-12 09:30:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '8b2e4d6a1c90'
down_revision = '3f9a1c2d7b64'
branch_labels = None
depends_on = None


def upgrade() -> None:
    with op.batch_alter_table('accounts') as batch_op:
        batch_op.add_column(sa.Column('username', sa.String(length=255), nullable=True))
        batch_op.add_column(sa.Column('password_changed_at', sa.DateTime(), nullable=True))
        batch_op.add_column(sa.Column('notification_preferences', sa.JSON(), nullable=True))

    # Existing accounts get their email as username, which is already unique
    op.execute("UPDATE accounts SET username = email WHERE username IS NULL")

    with op.batch_alter_table('accounts') as batch_op:
        batch_op.alter_column('username', existing_type=sa.String(length=255), nullable=False)
        batch_op.create_index('ix_accounts_username', ['username'], unique=True)


def downgrade() -> None:
    with op.batch_alter_table('accounts') as batch_op:
        batch_op.drop_index('ix_accounts_username')
        batch_op.drop_column('notification_preferences')
        batch_op.drop_column('password_changed_at')
        batch_op.drop_column('username')
