"""
Schemas para ToothDiagnosis — odontograma con sistema FDI.
Incluye el registro que manipula el motor de conciliación y sus señales.
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.models.tooth_diagnosis import ToothStatus, TreatmentPriority

# Dientes válidos FDI: adultos (11-18, 21-28, 31-38, 41-48)
# y deciduos (51-55, 61-65, 71-75, 81-85)
VALID_ADULT_TEETH = {
    str(n) for n in
    list(range(11, 19)) + list(range(21, 29)) +
    list(range(31, 39)) + list(range(41, 49))
}
VALID_DECIDUOUS_TEETH = {
    str(n) for n in
    list(range(51, 56)) + list(range(61, 66)) +
    list(range(71, 76)) + list(range(81, 86))
}
VALID_TEETH = VALID_ADULT_TEETH | VALID_DECIDUOUS_TEETH


def validate_fdi(value: str) -> str:
    value = str(value).strip()
    if value not in VALID_TEETH:
        raise ValueError(
            f"Número de diente FDI inválido: {value}. "
            "Adultos: 11-18, 21-28, 31-38, 41-48. "
            "Deciduos: 51-55, 61-65, 71-75, 81-85."
        )
    return value


# ── Registro del motor ───────────────────────────────

class ToothDiagnosisRecord(BaseModel):
    """
    Estado de un diente tal como lo ve el motor de conciliación.
    Se muta en memoria y se persiste con ToothStore.upsert_diagnosis.
    """
    id: UUID
    patient_id: UUID
    consultation_id: UUID | None = None
    tooth_number: str
    status: ToothStatus
    color_code: str
    primary_diagnosis: str | None = None
    recommended_treatment: str | None = None
    treatment_priority: TreatmentPriority = TreatmentPriority.MEDIUM
    notes: str | None = None
    follow_up_required: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


# ── Señales de conciliación ──────────────────────────

class NewDiagnosis(BaseModel):
    """El personal clínico registró o actualizó un diagnóstico."""
    kind: Literal["new_diagnosis"] = "new_diagnosis"
    status: ToothStatus
    primary_diagnosis: str | None = None
    recommended_treatment: str | None = None

    model_config = {"frozen": True}


class TreatmentCompleted(BaseModel):
    """Un tratamiento asociado al diente pasó a 'completed'."""
    kind: Literal["treatment_completed"] = "treatment_completed"
    treatment_type: str

    model_config = {"frozen": True}


Signal = NewDiagnosis | TreatmentCompleted


# ── API ──────────────────────────────────────────────

class ToothDiagnosisCreate(BaseModel):
    patient_id: UUID
    consultation_id: UUID | None = None
    tooth_number: str = Field(..., description="Número FDI del diente")
    status: ToothStatus | None = Field(
        None, description="Si se omite, se infiere del diagnóstico"
    )
    primary_diagnosis: str | None = Field(None, max_length=500)
    recommended_treatment: str | None = Field(None, max_length=500)
    treatment_priority: TreatmentPriority = TreatmentPriority.MEDIUM
    notes: str | None = Field(None, max_length=2000)

    @field_validator("tooth_number", mode="before")
    @classmethod
    def validate_tooth(cls, v) -> str:
        return validate_fdi(v)


class ToothChartEntry(BaseModel):
    """Estado actual de un diente (último registro)."""
    tooth_number: str
    diagnosis_id: UUID
    status: ToothStatus
    color_code: str
    primary_diagnosis: str | None = None
    recommended_treatment: str | None = None
    follow_up_required: bool = False
    needs_attention: bool = False
    last_updated: datetime | None = None
    history_count: int = 0


class FullToothChartResponse(BaseModel):
    """Odontograma completo del paciente — estado actual de todos los dientes."""
    patient_id: UUID
    teeth: list[ToothChartEntry]
    total_entries: int


class ToothChartStats(BaseModel):
    """Resumen del odontograma sobre el último registro de cada diente."""
    patient_id: UUID
    healthy: int = 0
    caries: int = 0
    restorations: int = 0
    attention: int = 0
    missing: int = 0
    total: int = 0
