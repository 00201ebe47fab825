"""create_tooth_chart_tables

Revision ID: a7c1e9d2b4f0
Revises:
Create Date: 2026-10-18 09:12:44.381207

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = 'a7c1e9d2b4f0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


TOOTH_STATUSES = (
    'healthy', 'caries', 'filled', 'crown', 'missing',
    'attention', 'extraction_needed', 'root_canal', 'implant',
)
TREATMENT_PRIORITIES = ('urgent', 'high', 'medium', 'low', 'routine')
TREATMENT_STATUSES = ('scheduled', 'in_progress', 'completed', 'cancelled')


def upgrade() -> None:
    # 1. Diagnósticos por diente
    op.create_table('tooth_diagnoses',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('patient_id', sa.UUID(), nullable=False),
        sa.Column('consultation_id', sa.UUID(), nullable=True, comment='Consulta que originó el diagnóstico (opcional)'),
        sa.Column('tooth_number', sa.String(length=3), nullable=False, comment='Número FDI: 11-48 (adulto) / 51-85 (deciduo)'),
        sa.Column('status', sa.Enum(*TOOTH_STATUSES, name='toothstatus'), nullable=False),
        sa.Column('color_code', sa.String(length=7), nullable=False, comment='Derivado de status; lo corrige la auditoría si difiere'),
        sa.Column('primary_diagnosis', sa.Text(), nullable=True),
        sa.Column('recommended_treatment', sa.Text(), nullable=True),
        sa.Column('treatment_priority', sa.Enum(*TREATMENT_PRIORITIES, name='treatmentpriority'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('follow_up_required', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_tooth_diag_patient_tooth', 'tooth_diagnoses', ['patient_id', 'tooth_number', 'updated_at'], unique=False)
    op.create_index('idx_tooth_diag_consultation', 'tooth_diagnoses', ['consultation_id', 'patient_id'], unique=False)

    # 2. Tratamientos
    op.create_table('treatments',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('patient_id', sa.UUID(), nullable=False),
        sa.Column('consultation_id', sa.UUID(), nullable=True),
        sa.Column('appointment_id', sa.UUID(), nullable=True),
        sa.Column('tooth_diagnosis_id', sa.UUID(), nullable=True, comment='Diagnóstico que motivó el tratamiento (opcional)'),
        sa.Column('treatment_type', sa.String(length=200), nullable=False, comment="Descripción libre: 'Root Canal Treatment', 'Composite Filling'..."),
        sa.Column('tooth_number', sa.String(length=3), nullable=True, comment='Número FDI; se completa una sola vez'),
        sa.Column('status', sa.Enum(*TREATMENT_STATUSES, name='treatmentstatus'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_treatment_patient', 'treatments', ['patient_id', 'created_at'], unique=False)
    op.create_index('idx_treatment_consultation', 'treatments', ['consultation_id'], unique=False)
    op.create_index('idx_treatment_missing_tooth', 'treatments', ['tooth_number', 'status'], unique=False)

    # 3. Dientes por cita
    op.create_table('appointment_teeth',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('appointment_id', sa.UUID(), nullable=False),
        sa.Column('consultation_id', sa.UUID(), nullable=True),
        sa.Column('tooth_number', sa.String(length=3), nullable=False),
        sa.Column('tooth_diagnosis_id', sa.UUID(), nullable=True),
        sa.Column('diagnosis', sa.Text(), nullable=True, comment='Copia del diagnóstico al momento de vincular'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('appointment_id', 'tooth_number', name='uq_appointment_tooth')
    )
    op.create_index(op.f('ix_appointment_teeth_appointment_id'), 'appointment_teeth', ['appointment_id'], unique=False)

    # 4. Auditoría
    op.create_table('audit_log',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('entity', sa.String(length=50), nullable=False, comment='Nombre de la entidad: tooth_diagnosis, treatment, appointment_tooth'),
        sa.Column('entity_id', sa.String(length=36), nullable=False, comment='UUID del registro afectado'),
        sa.Column('action', sa.String(length=20), nullable=False, comment='create, reconcile, link, color_fix, status_change'),
        sa.Column('old_data', postgresql.JSONB(astext_type=sa.Text()), nullable=True, comment='Snapshot del registro antes del cambio'),
        sa.Column('new_data', postgresql.JSONB(astext_type=sa.Text()), nullable=True, comment='Snapshot del registro después del cambio'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_audit_log_entity'), 'audit_log', ['entity'], unique=False)
    op.create_index(op.f('ix_audit_log_entity_id'), 'audit_log', ['entity_id'], unique=False)
    op.create_index(op.f('ix_audit_log_action'), 'audit_log', ['action'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_audit_log_action'), table_name='audit_log')
    op.drop_index(op.f('ix_audit_log_entity_id'), table_name='audit_log')
    op.drop_index(op.f('ix_audit_log_entity'), table_name='audit_log')
    op.drop_table('audit_log')

    op.drop_index(op.f('ix_appointment_teeth_appointment_id'), table_name='appointment_teeth')
    op.drop_table('appointment_teeth')

    op.drop_index('idx_treatment_missing_tooth', table_name='treatments')
    op.drop_index('idx_treatment_consultation', table_name='treatments')
    op.drop_index('idx_treatment_patient', table_name='treatments')
    op.drop_table('treatments')

    op.drop_index('idx_tooth_diag_consultation', table_name='tooth_diagnoses')
    op.drop_index('idx_tooth_diag_patient_tooth', table_name='tooth_diagnoses')
    op.drop_table('tooth_diagnoses')

    # Los tipos ENUM no se eliminan con la tabla en PostgreSQL
    sa.Enum(name='treatmentstatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='treatmentpriority').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='toothstatus').drop(op.get_bind(), checkfirst=True)
