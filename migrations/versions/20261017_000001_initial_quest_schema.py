"""Initial migration - users, challenges and daily quests

Revision ID: 001_initial_quest_schema
Revises:
Create Date: 2026-10-17 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_initial_quest_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Create users table
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('username', sa.String(length=255), nullable=True),
        sa.Column('display_name', sa.String(length=255), nullable=True),
        sa.Column('level', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('total_points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('weekly_points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_completed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('current_streak', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('longest_streak', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_active', sa.DateTime(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    # Create challenges table
    op.create_table('challenges',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('kind', sa.String(length=20), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=False),
        sa.Column('difficulty', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('min_level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('prerequisite_challenge_id', sa.Integer(), nullable=True),
        sa.Column('max_per_day', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('min_user_level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('times_assigned', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('times_completed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('completion_rate', sa.Float(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['prerequisite_challenge_id'], ['challenges.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_challenges_kind'), 'challenges', ['kind'], unique=False)
    op.create_index(op.f('ix_challenges_owner_id'), 'challenges', ['owner_id'], unique=False)
    op.create_index(op.f('ix_challenges_category'), 'challenges', ['category'], unique=False)
    op.create_index(op.f('ix_challenges_is_active'), 'challenges', ['is_active'], unique=False)
    op.create_index(op.f('ix_challenges_prerequisite_challenge_id'), 'challenges', ['prerequisite_challenge_id'], unique=False)

    # Create daily_quests table
    op.create_table('daily_quests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('reroll_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('pending_chain_points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'date', name='unique_user_quest_day')
    )
    op.create_index(op.f('ix_daily_quests_user_id'), 'daily_quests', ['user_id'], unique=False)
    op.create_index(op.f('ix_daily_quests_date'), 'daily_quests', ['date'], unique=False)

    # Create daily_quest_missions table
    op.create_table('daily_quest_missions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('daily_quest_id', sa.Integer(), nullable=False),
        sa.Column('slot', sa.Integer(), nullable=False),
        sa.Column('challenge_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('points_awarded', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['daily_quest_id'], ['daily_quests.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['challenge_id'], ['challenges.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('daily_quest_id', 'slot', name='unique_quest_slot'),
        sa.UniqueConstraint('daily_quest_id', 'challenge_id', name='unique_quest_challenge')
    )
    op.create_index(op.f('ix_daily_quest_missions_daily_quest_id'), 'daily_quest_missions', ['daily_quest_id'], unique=False)
    op.create_index(op.f('ix_daily_quest_missions_challenge_id'), 'daily_quest_missions', ['challenge_id'], unique=False)


def downgrade():
    op.drop_table('daily_quest_missions')
    op.drop_table('daily_quests')
    op.drop_table('challenges')
    op.drop_table('users')
