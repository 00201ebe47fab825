"""
Modelos SQLAlchemy — exportar todos para que Alembic los detecte.
"""

from app.models.audit_log import AuditLog
from app.models.tooth_diagnosis import ToothDiagnosis, ToothStatus, TreatmentPriority
from app.models.treatment import Treatment, TreatmentStatus
from app.models.appointment_tooth import AppointmentTooth

__all__ = [
    "AuditLog",
    "ToothDiagnosis",
    "ToothStatus",
    "TreatmentPriority",
    "Treatment",
    "TreatmentStatus",
    "AppointmentTooth",
]
