"""Create users, student profile and placement drive tables

Revision ID: a1c4e2f7b9d0
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = 'a1c4e2f7b9d0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DRIVE_STATUSES = ('DRAFT', 'OPEN', 'CLOSED', 'ON_HOLD', 'COMPLETED', 'CANCELLED')


def upgrade() -> None:
    op.create_table('users',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('email', sa.String(length=255), nullable=False),
    sa.Column('password_hash', sa.String(length=255), nullable=False),
    sa.Column('role', sa.Enum('ADMIN', 'STUDENT', name='userrole'), nullable=False),
    sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('fcm_token', sa.String(length=512), nullable=True),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table('student_personal',
    sa.Column('user_id', sa.Integer(), nullable=False),
    sa.Column('full_name', sa.String(length=255), nullable=True),
    sa.Column('register_number', sa.String(length=50), nullable=True),
    sa.Column('department', sa.String(length=100), nullable=True),
    sa.Column('batch_year', sa.Integer(), nullable=True),
    sa.Column('mobile_number', sa.String(length=20), nullable=True),
    sa.Column('placement_willingness', sa.String(length=50), nullable=True),
    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('user_id')
    )
    op.create_index(op.f('ix_student_personal_register_number'), 'student_personal', ['register_number'], unique=True)
    op.create_index(op.f('ix_student_personal_department'), 'student_personal', ['department'], unique=False)
    op.create_index(op.f('ix_student_personal_batch_year'), 'student_personal', ['batch_year'], unique=False)

    op.create_table('student_academics',
    sa.Column('user_id', sa.Integer(), nullable=False),
    sa.Column('ug_cgpa', sa.Float(), nullable=True),
    sa.Column('current_backlogs', sa.Integer(), nullable=True),
    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('user_id')
    )

    op.create_table('placement_drives',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('posted_by', sa.Integer(), nullable=False),
    sa.Column('company_name', sa.String(length=255), nullable=False),
    sa.Column('job_role', sa.String(length=255), nullable=False),
    sa.Column('job_description', sa.Text(), nullable=True),
    sa.Column('location', sa.String(length=255), nullable=True),
    sa.Column('drive_type', sa.String(length=50), nullable=True),
    sa.Column('company_category', sa.String(length=50), nullable=True),
    sa.Column('ctc_display', sa.String(length=100), nullable=True),
    sa.Column('min_cgpa', sa.Float(), server_default='0', nullable=False),
    sa.Column('max_backlogs_allowed', sa.Integer(), server_default='0', nullable=False),
    sa.Column('eligible_batches', postgresql.JSONB(astext_type=sa.Text()), server_default='[]', nullable=False),
    sa.Column('eligible_departments', postgresql.JSONB(astext_type=sa.Text()), server_default='[]', nullable=False),
    sa.Column('drive_date', sa.Date(), nullable=True),
    sa.Column('deadline', sa.DateTime(timezone=True), nullable=False),
    sa.Column('status', sa.Enum(*DRIVE_STATUSES, name='drivestatus'), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.ForeignKeyConstraint(['posted_by'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_placement_drives_id'), 'placement_drives', ['id'], unique=False)
    op.create_index(op.f('ix_placement_drives_company_name'), 'placement_drives', ['company_name'], unique=False)
    op.create_index(op.f('ix_placement_drives_deadline'), 'placement_drives', ['deadline'], unique=False)
    op.create_index(op.f('ix_placement_drives_status'), 'placement_drives', ['status'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_placement_drives_status'), table_name='placement_drives')
    op.drop_index(op.f('ix_placement_drives_deadline'), table_name='placement_drives')
    op.drop_index(op.f('ix_placement_drives_company_name'), table_name='placement_drives')
    op.drop_index(op.f('ix_placement_drives_id'), table_name='placement_drives')
    op.drop_table('placement_drives')
    op.drop_table('student_academics')
    op.drop_index(op.f('ix_student_personal_batch_year'), table_name='student_personal')
    op.drop_index(op.f('ix_student_personal_department'), table_name='student_personal')
    op.drop_index(op.f('ix_student_personal_register_number'), table_name='student_personal')
    op.drop_table('student_personal')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_index(op.f('ix_users_id'), table_name='users')
    op.drop_table('users')
    sa.Enum(*DRIVE_STATUSES, name='drivestatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum('ADMIN', 'STUDENT', name='userrole').drop(op.get_bind(), checkfirst=True)
