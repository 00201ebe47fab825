"""
Modelo AppointmentTooth — dientes que atiende una cita.
INSERT-only: un vínculo nunca se modifica; los duplicados se ignoran.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class AppointmentTooth(Base):
    __tablename__ = "appointment_teeth"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    appointment_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True
    )
    consultation_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    tooth_number: Mapped[str] = mapped_column(String(3), nullable=False)
    tooth_diagnosis_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    diagnosis: Mapped[str | None] = mapped_column(
        Text, comment="Copia del diagnóstico al momento de vincular"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("appointment_id", "tooth_number", name="uq_appointment_tooth"),
    )

    def __repr__(self) -> str:
        return f"<AppointmentTooth appt={self.appointment_id} tooth={self.tooth_number}>"
