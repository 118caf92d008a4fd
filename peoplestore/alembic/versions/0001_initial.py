"""initial

Revision ID: 0001
Revises: 
Create Date: 2019-04-28 21:28:49.000000

"""
from alembic import op
import sqlalchemy as sa

revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('username', sa.Text(), nullable=False, unique=True),
        sa.Column('password', sa.Text(), nullable=False),
        sa.Column('nickname', sa.Text(), nullable=False),
        sa.Column('avatar_url', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False)
    )
    op.create_table('humans',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False)
    )
    # no ON DELETE clause: deleting a human with edges is rejected
    op.create_table('human_friends',
        sa.Column('human_id', sa.Uuid(), sa.ForeignKey('humans.id')),
        sa.Column('friend_id', sa.Uuid(), sa.ForeignKey('humans.id')),
        sa.PrimaryKeyConstraint('human_id', 'friend_id')
    )

def downgrade():
    op.drop_table('human_friends')
    op.drop_table('humans')
    op.drop_table('users')
