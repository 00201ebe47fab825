"""
Schemas para Treatment — procedimientos clínicos.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.models.treatment import TreatmentStatus
from app.schemas.tooth_diagnosis import ToothDiagnosisRecord, validate_fdi


class TreatmentRecord(BaseModel):
    """Tratamiento tal como lo ve la reparación de vínculos."""
    id: UUID
    patient_id: UUID
    consultation_id: UUID | None = None
    appointment_id: UUID | None = None
    tooth_diagnosis_id: UUID | None = None
    treatment_type: str
    tooth_number: str | None = None
    status: TreatmentStatus
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class TreatmentCreate(BaseModel):
    patient_id: UUID
    treatment_type: str = Field(..., min_length=2, max_length=200)
    consultation_id: UUID | None = None
    appointment_id: UUID | None = None
    tooth_diagnosis_id: UUID | None = None
    tooth_number: str | None = Field(None, description="Número FDI (opcional)")
    notes: str | None = Field(None, max_length=2000)

    @field_validator("tooth_number", mode="before")
    @classmethod
    def validate_tooth(cls, v) -> str | None:
        if v is None or v == "":
            return None
        return validate_fdi(v)


class TreatmentStatusChange(BaseModel):
    """Schema para cambiar el estado de un tratamiento."""
    status: TreatmentStatus


class TreatmentResponse(TreatmentRecord):
    tooth: ToothDiagnosisRecord | None = Field(
        None, description="Diagnóstico del diente tras conciliar (si aplica)"
    )
