"""
Modelo Treatment — procedimientos clínicos planificados o realizados.

Estados válidos y transiciones:
    scheduled → in_progress → completed
    scheduled → completed
    scheduled → cancelled
    in_progress → cancelled

El tooth_number puede nacer vacío; la reparación de vínculos lo completa
una sola vez a partir de los diagnósticos de la misma consulta.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    DateTime,
    Enum,
    Index,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class TreatmentStatus(str, enum.Enum):
    """Estados de un tratamiento."""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# ── Transiciones válidas de la state machine ─────────
VALID_TRANSITIONS: dict[TreatmentStatus, list[TreatmentStatus]] = {
    TreatmentStatus.SCHEDULED: [
        TreatmentStatus.IN_PROGRESS,
        TreatmentStatus.COMPLETED,
        TreatmentStatus.CANCELLED,
    ],
    TreatmentStatus.IN_PROGRESS: [
        TreatmentStatus.COMPLETED,
        TreatmentStatus.CANCELLED,
    ],
    # Estados terminales: no tienen transiciones
    TreatmentStatus.COMPLETED: [],
    TreatmentStatus.CANCELLED: [],
}

# Tipos de tratamiento que nunca se asocian a un diente
TOOTHLESS_TREATMENT_TYPES = frozenset({"consultation", "first_visit"})


def is_valid_transition(current: TreatmentStatus, new: TreatmentStatus) -> bool:
    """Verifica si una transición de estado es válida."""
    return new in VALID_TRANSITIONS.get(current, [])


class Treatment(Base):
    __tablename__ = "treatments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    patient_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False
    )
    consultation_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    appointment_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    tooth_diagnosis_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        comment="Diagnóstico que motivó el tratamiento (opcional)"
    )

    # ── Datos del tratamiento ────────────────────────
    treatment_type: Mapped[str] = mapped_column(
        String(200), nullable=False,
        comment="Descripción libre: 'Root Canal Treatment', 'Composite Filling'..."
    )
    tooth_number: Mapped[str | None] = mapped_column(
        String(3), comment="Número FDI; se completa una sola vez"
    )
    status: Mapped[TreatmentStatus] = mapped_column(
        Enum(TreatmentStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=TreatmentStatus.SCHEDULED,
    )
    notes: Mapped[str | None] = mapped_column(Text)

    # ── Timestamps ───────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # ── Índices para consultas frecuentes ────────────
    __table_args__ = (
        Index("idx_treatment_patient", "patient_id", "created_at"),
        Index("idx_treatment_consultation", "consultation_id"),
        Index("idx_treatment_missing_tooth", "tooth_number", "status"),
    )

    def __repr__(self) -> str:
        return f"<Treatment {self.id} {self.treatment_type!r} [{self.status.value}]>"
