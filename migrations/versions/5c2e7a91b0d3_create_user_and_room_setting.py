"""create user and room_setting tables

Revision ID: 5c2e7a91b0d3
Revises:
Create Date: 2026-10-19 10:30:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2e7a91b0d3'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'user' not in existing_tables:
        op.create_table(
            'user',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('password_hash', sa.String(length=256), nullable=False),
            sa.Column('question_sets', sa.Text(), nullable=True),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index(op.f('ix_user_username'), 'user', ['username'], unique=True)
    else:
        # Older host tables predate saved question batches
        user_cols = {c['name'] for c in insp.get_columns('user')}
        if 'question_sets' not in user_cols:
            op.add_column('user', sa.Column('question_sets', sa.Text(), nullable=True))

    if 'room_setting' not in existing_tables:
        op.create_table(
            'room_setting',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('room_code', sa.String(length=8), nullable=True),
            sa.PrimaryKeyConstraint('id'),
        )


def downgrade():
    op.drop_table('room_setting')
    op.drop_index(op.f('ix_user_username'), table_name='user')
    op.drop_table('user')
