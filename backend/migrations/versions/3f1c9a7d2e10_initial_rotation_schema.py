"""initial_rotation_schema

Revision ID: 3f1c9a7d2e10
Revises: 
Create Date: 2026-10-18 14:02:11.418305

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2e10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PERSON_ROLES = ('ADMIN', 'SECTOR_CHIEF', 'SECTOR_ENGINEER', 'SERVICE_CHIEF', 'SERVICE_COLLABORATOR')
UNAVAILABILITY_STATUSES = ('PENDING', 'APPROVED', 'REJECTED', 'CANCELLED')
SHIFT_KINDS = ('WEEKEND', 'HOLIDAY', 'DAY', 'NIGHT')


def upgrade() -> None:
    connection = op.get_bind()
    inspector = sa.inspect(connection)
    
    # Получаем список существующих таблиц
    existing_tables = inspector.get_table_names()
    
    # 1. Оргструктура: площадки, секторы, службы
    if 'sites' not in existing_tables:
        op.create_table(
            'sites',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('code', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_sites_id'), 'sites', ['id'], unique=False)
    
    if 'sectors' not in existing_tables:
        op.create_table(
            'sectors',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('site_id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('code', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['site_id'], ['sites.id']),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_sectors_id'), 'sectors', ['id'], unique=False)
        op.create_index(op.f('ix_sectors_site_id'), 'sectors', ['site_id'], unique=False)
    
    if 'services' not in existing_tables:
        op.create_table(
            'services',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('sector_id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('code', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['sector_id'], ['sectors.id']),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_services_id'), 'services', ['id'], unique=False)
        op.create_index(op.f('ix_services_sector_id'), 'services', ['sector_id'], unique=False)
    
    # 2. Сотрудники и отсутствия
    if 'people' not in existing_tables:
        op.create_table(
            'people',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('first_name', sa.String(), nullable=True),
            sa.Column('last_name', sa.String(), nullable=True),
            sa.Column('email', sa.String(), nullable=True),
            sa.Column('phone', sa.String(), nullable=True),
            sa.Column('role', sa.Enum(*PERSON_ROLES, name='personrole'), nullable=False),
            sa.Column('site_id', sa.Integer(), nullable=False),
            sa.Column('sector_id', sa.Integer(), nullable=True),
            sa.Column('service_id', sa.Integer(), nullable=True),
            sa.Column('active', sa.Boolean(), nullable=True, server_default='1'),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['site_id'], ['sites.id']),
            sa.ForeignKeyConstraint(['sector_id'], ['sectors.id']),
            sa.ForeignKeyConstraint(['service_id'], ['services.id']),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_people_id'), 'people', ['id'], unique=False)
        op.create_index(op.f('ix_people_role'), 'people', ['role'], unique=False)
        op.create_index(op.f('ix_people_site_id'), 'people', ['site_id'], unique=False)
        op.create_index(op.f('ix_people_sector_id'), 'people', ['sector_id'], unique=False)
        op.create_index(op.f('ix_people_service_id'), 'people', ['service_id'], unique=False)
    
    if 'unavailabilities' not in existing_tables:
        op.create_table(
            'unavailabilities',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('person_id', sa.Integer(), nullable=False),
            sa.Column('start_date', sa.Date(), nullable=False),
            sa.Column('end_date', sa.Date(), nullable=False),
            sa.Column('reason', sa.String(), nullable=True),
            sa.Column('status', sa.Enum(*UNAVAILABILITY_STATUSES, name='unavailabilitystatus'), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['person_id'], ['people.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_unavailabilities_id'), 'unavailabilities', ['id'], unique=False)
        op.create_index(op.f('ix_unavailabilities_person_id'), 'unavailabilities', ['person_id'], unique=False)
    
    # 3. Праздничный календарь
    if 'holidays' not in existing_tables:
        op.create_table(
            'holidays',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('date', sa.Date(), nullable=False),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('country', sa.String(), nullable=False, server_default='MA'),
            sa.Column('version', sa.String(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('date', 'country', 'version', name='uq_holiday_date_country_version')
        )
        op.create_index(op.f('ix_holidays_id'), 'holidays', ['id'], unique=False)
        op.create_index(op.f('ix_holidays_date'), 'holidays', ['date'], unique=False)
        op.create_index(op.f('ix_holidays_country'), 'holidays', ['country'], unique=False)
        op.create_index(op.f('ix_holidays_version'), 'holidays', ['version'], unique=False)
    
    # 4. Очереди ротации
    if 'rotation_queues' not in existing_tables:
        op.create_table(
            'rotation_queues',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('site_id', sa.Integer(), nullable=False),
            sa.Column('sector_id', sa.Integer(), nullable=False),
            sa.Column('service_id', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['site_id'], ['sites.id']),
            sa.ForeignKeyConstraint(['sector_id'], ['sectors.id']),
            sa.ForeignKeyConstraint(['service_id'], ['services.id']),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('sector_id', 'service_id', name='uq_rotation_queue_scope')
        )
        op.create_index(op.f('ix_rotation_queues_id'), 'rotation_queues', ['id'], unique=False)
        op.create_index(op.f('ix_rotation_queues_sector_id'), 'rotation_queues', ['sector_id'], unique=False)
        op.create_index(op.f('ix_rotation_queues_service_id'), 'rotation_queues', ['service_id'], unique=False)
    
    if 'rotation_queue_entries' not in existing_tables:
        op.create_table(
            'rotation_queue_entries',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('queue_id', sa.Integer(), nullable=False),
            sa.Column('person_id', sa.Integer(), nullable=False),
            sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
            sa.ForeignKeyConstraint(['queue_id'], ['rotation_queues.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['person_id'], ['people.id']),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('queue_id', 'person_id', name='uq_rotation_queue_person')
        )
        op.create_index(op.f('ix_rotation_queue_entries_id'), 'rotation_queue_entries', ['id'], unique=False)
    
    # 5. Назначения на дежурство
    if 'duty_assignments' not in existing_tables:
        op.create_table(
            'duty_assignments',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('site_id', sa.Integer(), nullable=False),
            sa.Column('sector_id', sa.Integer(), nullable=False),
            sa.Column('service_id', sa.Integer(), nullable=True),
            sa.Column('start_date', sa.Date(), nullable=False),
            sa.Column('end_date', sa.Date(), nullable=False),
            sa.Column('shift_kind', sa.Enum(*SHIFT_KINDS, name='shiftkind'), nullable=False),
            sa.Column('holiday_name', sa.String(), nullable=True),
            sa.Column('required_personnel', sa.Integer(), nullable=False, server_default='2'),
            sa.Column('understaffed', sa.Boolean(), nullable=True, server_default='0'),
            sa.Column('generated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['site_id'], ['sites.id']),
            sa.ForeignKeyConstraint(['sector_id'], ['sectors.id']),
            sa.ForeignKeyConstraint(['service_id'], ['services.id']),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('sector_id', 'service_id', 'start_date', 'shift_kind', name='uq_duty_assignment_scope_date')
        )
        op.create_index(op.f('ix_duty_assignments_id'), 'duty_assignments', ['id'], unique=False)
        op.create_index(op.f('ix_duty_assignments_sector_id'), 'duty_assignments', ['sector_id'], unique=False)
        op.create_index(op.f('ix_duty_assignments_service_id'), 'duty_assignments', ['service_id'], unique=False)
        op.create_index(op.f('ix_duty_assignments_start_date'), 'duty_assignments', ['start_date'], unique=False)
        op.create_index(op.f('ix_duty_assignments_end_date'), 'duty_assignments', ['end_date'], unique=False)
    
    if 'duty_assignment_people' not in existing_tables:
        op.create_table(
            'duty_assignment_people',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('assignment_id', sa.Integer(), nullable=False),
            sa.Column('person_id', sa.Integer(), nullable=False),
            sa.Column('replaces_person_id', sa.Integer(), nullable=True),
            sa.Column('note', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['assignment_id'], ['duty_assignments.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['person_id'], ['people.id']),
            sa.ForeignKeyConstraint(['replaces_person_id'], ['people.id']),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('assignment_id', 'person_id', name='uq_duty_assignment_person')
        )
        op.create_index(op.f('ix_duty_assignment_people_id'), 'duty_assignment_people', ['id'], unique=False)
        op.create_index(op.f('ix_duty_assignment_people_person_id'), 'duty_assignment_people', ['person_id'], unique=False)


def downgrade() -> None:
    for table in (
        'duty_assignment_people',
        'duty_assignments',
        'rotation_queue_entries',
        'rotation_queues',
        'holidays',
        'unavailabilities',
        'people',
        'services',
        'sectors',
        'sites',
    ):
        op.drop_table(table)
