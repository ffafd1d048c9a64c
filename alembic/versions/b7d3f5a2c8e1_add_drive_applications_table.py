"""Add drive_applications table

Revision ID: b7d3f5a2c8e1
Revises: a1c4e2f7b9d0
Create Date: 2026-10-19 14:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'b7d3f5a2c8e1'
down_revision: Union[str, None] = 'a1c4e2f7b9d0'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

APPLICATION_STATUSES = ('OPTED_IN', 'OPTED_OUT', 'SHORTLISTED', 'PLACED', 'REJECTED')


def upgrade() -> None:
    op.create_table('drive_applications',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('drive_id', sa.Integer(), nullable=False),
    sa.Column('student_id', sa.Integer(), nullable=False),
    sa.Column('status', sa.Enum(*APPLICATION_STATUSES, name='applicationstatus'), nullable=False),
    sa.Column('applied_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.ForeignKeyConstraint(['drive_id'], ['placement_drives.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['student_id'], ['users.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('drive_id', 'student_id', name='uq_drive_student')
    )
    op.create_index(op.f('ix_drive_applications_id'), 'drive_applications', ['id'], unique=False)
    op.create_index(op.f('ix_drive_applications_drive_id'), 'drive_applications', ['drive_id'], unique=False)
    op.create_index(op.f('ix_drive_applications_student_id'), 'drive_applications', ['student_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_drive_applications_student_id'), table_name='drive_applications')
    op.drop_index(op.f('ix_drive_applications_drive_id'), table_name='drive_applications')
    op.drop_index(op.f('ix_drive_applications_id'), table_name='drive_applications')
    op.drop_table('drive_applications')
    sa.Enum(*APPLICATION_STATUSES, name='applicationstatus').drop(op.get_bind(), checkfirst=True)
