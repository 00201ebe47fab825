"""
Modelo ToothDiagnosis — estado clínico de cada diente (notación FDI).

Un diente puede tener varios diagnósticos a lo largo del tiempo (uno por
consulta). El estado vigente del diente es siempre el registro con
`updated_at` más reciente para (patient_id, tooth_number).

Incluye el vocabulario canónico de estados y su color en el odontograma.
"""

import enum
import uuid
from datetime import datetime
from types import MappingProxyType
from typing import Mapping

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    Index,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.exceptions import UnknownToothStatusError
from app.database import Base


class ToothStatus(str, enum.Enum):
    """Estados clínicos canónicos de un diente."""
    HEALTHY = "healthy"
    CARIES = "caries"
    FILLED = "filled"
    CROWN = "crown"
    MISSING = "missing"
    ATTENTION = "attention"
    EXTRACTION_NEEDED = "extraction_needed"
    ROOT_CANAL = "root_canal"
    IMPLANT = "implant"


class TreatmentPriority(str, enum.Enum):
    """Prioridad del tratamiento recomendado."""
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    ROUTINE = "routine"


# ── Paleta del odontograma ───────────────────────────
STATUS_COLORS: Mapping[ToothStatus, str] = MappingProxyType({
    ToothStatus.HEALTHY: "#22c55e",            # verde
    ToothStatus.CARIES: "#ef4444",             # rojo
    ToothStatus.FILLED: "#3b82f6",             # azul
    ToothStatus.CROWN: "#eab308",              # amarillo
    ToothStatus.MISSING: "#6b7280",            # gris
    ToothStatus.ATTENTION: "#f97316",          # naranja
    ToothStatus.EXTRACTION_NEEDED: "#f97316",  # naranja
    ToothStatus.ROOT_CANAL: "#8b5cf6",         # morado
    ToothStatus.IMPLANT: "#06b6d4",            # cian
})

ATTENTION_STATUSES = frozenset({
    ToothStatus.CARIES,
    ToothStatus.ATTENTION,
    ToothStatus.EXTRACTION_NEEDED,
})

COMPLETED_STATUSES = frozenset({
    ToothStatus.FILLED,
    ToothStatus.CROWN,
    ToothStatus.ROOT_CANAL,
    ToothStatus.IMPLANT,
    ToothStatus.HEALTHY,
})


def canonical_color(
    status: ToothStatus | str,
    palette: Mapping[ToothStatus, str] = STATUS_COLORS,
) -> str:
    """Color correcto para un estado. Falla si el estado no es canónico."""
    try:
        return palette[ToothStatus(status)]
    except (ValueError, KeyError):
        raise UnknownToothStatusError(status) from None


def requires_attention(status: ToothStatus) -> bool:
    """El diente necesita tratamiento activo."""
    return status in ATTENTION_STATUSES


def is_treatment_complete(status: ToothStatus) -> bool:
    """El estado refleja un tratamiento terminado (o un diente sano)."""
    return status in COMPLETED_STATUSES


class ToothDiagnosis(Base):
    __tablename__ = "tooth_diagnoses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    patient_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False
    )
    consultation_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        comment="Consulta que originó el diagnóstico (opcional)"
    )

    # ── Datos del diente (FDI) ───────────────────────
    tooth_number: Mapped[str] = mapped_column(
        String(3), nullable=False,
        comment="Número FDI: 11-48 (adulto) / 51-85 (deciduo)"
    )
    status: Mapped[ToothStatus] = mapped_column(
        Enum(ToothStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ToothStatus.HEALTHY,
    )
    color_code: Mapped[str] = mapped_column(
        String(7), nullable=False,
        comment="Derivado de status; lo corrige la auditoría si difiere"
    )

    # ── Texto clínico ────────────────────────────────
    primary_diagnosis: Mapped[str | None] = mapped_column(Text)
    recommended_treatment: Mapped[str | None] = mapped_column(Text)
    treatment_priority: Mapped[TreatmentPriority] = mapped_column(
        Enum(TreatmentPriority, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=TreatmentPriority.MEDIUM,
    )
    notes: Mapped[str | None] = mapped_column(Text)
    follow_up_required: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    # ── Timestamps ───────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # ── Índices ──────────────────────────────────────
    __table_args__ = (
        Index("idx_tooth_diag_patient_tooth", "patient_id", "tooth_number", "updated_at"),
        Index("idx_tooth_diag_consultation", "consultation_id", "patient_id"),
    )

    def __repr__(self) -> str:
        return f"<ToothDiagnosis tooth={self.tooth_number} [{self.status.value}]>"
