"""initial schema

Revision ID: 3f9a1c2d7e10
Revises:
Create Date: 2026-10-19 10:12:41.208355

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f9a1c2d7e10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('users',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('sid', sa.String(length=22), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('role', sa.Enum('USER', 'ADMIN', name='userrole'), nullable=False),
        sa.Column('admin_password_hash', sa.Text(), nullable=True),
        sa.Column('phone', sa.String(length=40), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('profile_photo', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_sid'), 'users', ['sid'], unique=True)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table('categories',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('sid', sa.String(length=22), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )
    op.create_index(op.f('ix_categories_sid'), 'categories', ['sid'], unique=True)

    op.create_table('companies',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('sid', sa.String(length=22), nullable=False),
        sa.Column('user_sid', sa.String(length=22), nullable=False),
        sa.Column('name', sa.String(length=160), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=40), nullable=True),
        sa.Column('photo', sa.String(length=500), nullable=True),
        sa.ForeignKeyConstraint(['user_sid'], ['users.sid'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_sid')
    )
    op.create_index(op.f('ix_companies_sid'), 'companies', ['sid'], unique=True)

    op.create_table('password_resets',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('sid', sa.String(length=22), nullable=False),
        sa.Column('user_sid', sa.String(length=22), nullable=False),
        sa.Column('token', sa.String(length=64), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_sid'], ['users.sid'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_password_resets_sid'), 'password_resets', ['sid'], unique=True)
    op.create_index(op.f('ix_password_resets_user_sid'), 'password_resets', ['user_sid'], unique=False)
    op.create_index(op.f('ix_password_resets_token'), 'password_resets', ['token'], unique=True)

    op.create_table('products',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('sid', sa.String(length=22), nullable=False),
        sa.Column('user_sid', sa.String(length=22), nullable=False),
        sa.Column('category_sid', sa.String(length=22), nullable=True),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_sid'], ['users.sid'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['category_sid'], ['categories.sid'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_sid', 'code', name='uq_products_user_code')
    )
    op.create_index(op.f('ix_products_sid'), 'products', ['sid'], unique=True)
    op.create_index(op.f('ix_products_user_sid'), 'products', ['user_sid'], unique=False)

    op.create_table('programs',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('sid', sa.String(length=22), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('mode', sa.String(length=60), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False),
        sa.Column('created_by_sid', sa.String(length=22), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['created_by_sid'], ['users.sid'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_programs_sid'), 'programs', ['sid'], unique=True)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_programs_sid'), table_name='programs')
    op.drop_table('programs')
    op.drop_index(op.f('ix_products_user_sid'), table_name='products')
    op.drop_index(op.f('ix_products_sid'), table_name='products')
    op.drop_table('products')
    op.drop_index(op.f('ix_password_resets_token'), table_name='password_resets')
    op.drop_index(op.f('ix_password_resets_user_sid'), table_name='password_resets')
    op.drop_index(op.f('ix_password_resets_sid'), table_name='password_resets')
    op.drop_table('password_resets')
    op.drop_index(op.f('ix_companies_sid'), table_name='companies')
    op.drop_table('companies')
    op.drop_index(op.f('ix_categories_sid'), table_name='categories')
    op.drop_table('categories')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_index(op.f('ix_users_sid'), table_name='users')
    op.drop_table('users')
    sa.Enum(name='userrole').drop(op.get_bind(), checkfirst=True)
