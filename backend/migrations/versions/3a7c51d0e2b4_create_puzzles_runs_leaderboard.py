"""create puzzles, runs, leaderboard_entries and admin_user

Revision ID: 3a7c51d0e2b4
Revises:
Create Date: 2025-09-14 10:20:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3a7c51d0e2b4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    # Tables created by AUTO_INIT_DB before migrations were adopted are left as-is
    if 'puzzles' not in existing_tables:
        op.create_table(
            'puzzles',
            sa.Column('id', sa.String(length=10), nullable=False),
            sa.Column('puzzle_string', sa.String(length=81), nullable=False),
            sa.Column('solution_string', sa.String(length=81), nullable=False),
            sa.PrimaryKeyConstraint('id'),
        )

    if 'runs' not in existing_tables:
        op.create_table(
            'runs',
            sa.Column('run_id', sa.String(length=36), nullable=False),
            sa.Column('device_id', sa.String(length=255), nullable=False),
            sa.Column('name', sa.String(length=30), nullable=False),
            sa.Column('consent', sa.Boolean(), nullable=False),
            sa.Column('puzzle_id', sa.String(length=10), nullable=False),
            sa.Column('started_utc', sa.DateTime(), nullable=False),
            sa.Column('finished_utc', sa.DateTime(), nullable=True),
            sa.Column('elapsed_ms', sa.Integer(), nullable=True),
            sa.Column('mistakes', sa.Integer(), nullable=False),
            sa.Column('hints', sa.Integer(), nullable=False),
            sa.Column('final_ms', sa.Integer(), nullable=True),
            sa.Column('status', sa.String(length=20), nullable=False),
            sa.ForeignKeyConstraint(['puzzle_id'], ['puzzles.id']),
            sa.PrimaryKeyConstraint('run_id'),
        )
        with op.batch_alter_table('runs') as batch_op:
            batch_op.create_index('ix_runs_name', ['name'], unique=False)
            batch_op.create_index('ix_runs_status', ['status'], unique=False)

    if 'leaderboard_entries' not in existing_tables:
        op.create_table(
            'leaderboard_entries',
            sa.Column('name', sa.String(length=30), nullable=False),
            sa.Column('best_run_id', sa.String(length=36), nullable=False),
            sa.Column('best_final_ms', sa.Integer(), nullable=False),
            sa.Column('best_finished_utc', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('name'),
        )
        op.create_index(
            'ix_leaderboard_ranking',
            'leaderboard_entries',
            ['best_final_ms', 'best_finished_utc', 'name'],
            unique=False,
        )

    if 'admin_user' not in existing_tables:
        op.create_table(
            'admin_user',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('password_hash', sa.String(length=128), nullable=False),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_admin_user_username', 'admin_user', ['username'], unique=True)


def downgrade():
    op.drop_index('ix_admin_user_username', table_name='admin_user')
    op.drop_table('admin_user')
    op.drop_index('ix_leaderboard_ranking', table_name='leaderboard_entries')
    op.drop_table('leaderboard_entries')
    with op.batch_alter_table('runs') as batch_op:
        batch_op.drop_index('ix_runs_status')
        batch_op.drop_index('ix_runs_name')
    op.drop_table('runs')
    op.drop_table('puzzles')
