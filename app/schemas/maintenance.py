"""
Schemas de los reportes de mantenimiento del odontograma:
reparación de vínculos tratamiento-diente y auditoría de colores.
"""

import enum
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.tooth_diagnosis import ToothStatus


class RecordError(BaseModel):
    """Falla en un registro individual; no detiene el barrido."""
    record_id: UUID | None = None
    entity: str
    error: str


# ── Reparación de vínculos ───────────────────────────

class LinkageOutcome(str, enum.Enum):
    LINKED = "linked"
    UNMATCHED = "unmatched"
    NO_CONSULTATION = "no_consultation"
    SKIPPED = "skipped"
    FAILED = "failed"


class ToothLinkRequest(BaseModel):
    """Vínculo cita-diente a insertar (se ignora si ya existe)."""
    appointment_id: UUID
    consultation_id: UUID | None = None
    tooth_number: str
    tooth_diagnosis_id: UUID | None = None
    diagnosis: str | None = None


class LinkageResult(BaseModel):
    treatment_id: UUID
    patient_id: UUID
    treatment_type: str
    outcome: LinkageOutcome
    tooth_number: str | None = None
    tooth_diagnosis_id: UUID | None = None
    link: ToothLinkRequest | None = None
    resulting_status: ToothStatus | None = Field(
        None, description="Estado del diente tras conciliar un tratamiento completado"
    )


class LinkageRepairReport(BaseModel):
    scanned: int = 0
    linked: int = 0
    unmatched: int = 0
    skipped: int = 0
    links_created: int = 0
    statuses_updated: int = 0
    results: list[LinkageResult] = []
    errors: list[RecordError] = []


# ── Auditoría de colores ─────────────────────────────

class ColorFix(BaseModel):
    diagnosis_id: UUID
    tooth_number: str
    status: ToothStatus
    old_color: str | None = None
    new_color: str


class Mismatch(BaseModel):
    """El tratamiento recomendado sugiere otro estado. Solo se reporta."""
    diagnosis_id: UUID
    patient_id: UUID
    tooth_number: str
    current_status: ToothStatus
    expected_status: ToothStatus
    recommended_treatment: str
    expected_color: str


class AuditReport(BaseModel):
    total_checked: int = 0
    color_fixes: int = 0
    superseded: int = Field(
        0, description="Correcciones descartadas porque el registro cambió durante el barrido"
    )
    fixed_records: list[ColorFix] = []
    treatment_mismatches: list[Mismatch] = []
    errors: list[RecordError] = []
