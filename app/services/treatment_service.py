"""
Servicio de tratamientos: alta y cambio de estado con state machine.
Al completarse un tratamiento con diente conocido se concilia el odontograma.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException, ValidationException
from app.models.treatment import (
    VALID_TRANSITIONS,
    Treatment,
    TreatmentStatus,
    is_valid_transition,
)
from app.schemas.treatment import TreatmentCreate, TreatmentResponse, TreatmentStatusChange
from app.services.audit_service import log_action
from app.services.tooth_diagnosis_service import apply_treatment_completion
from app.services.tooth_store import ToothStore

logger = logging.getLogger(__name__)


def _treatment_to_response(treatment: Treatment, tooth=None) -> TreatmentResponse:
    return TreatmentResponse(
        id=treatment.id,
        patient_id=treatment.patient_id,
        consultation_id=treatment.consultation_id,
        appointment_id=treatment.appointment_id,
        tooth_diagnosis_id=treatment.tooth_diagnosis_id,
        treatment_type=treatment.treatment_type,
        tooth_number=treatment.tooth_number,
        status=treatment.status,
        notes=treatment.notes,
        created_at=treatment.created_at,
        updated_at=treatment.updated_at,
        tooth=tooth,
    )


async def _get_treatment(db: AsyncSession, treatment_id: UUID) -> Treatment:
    result = await db.execute(
        select(Treatment)
        .where(Treatment.id == treatment_id)
        .execution_options(populate_existing=True)
    )
    treatment = result.scalar_one_or_none()
    if not treatment:
        raise NotFoundException("Tratamiento")
    return treatment


# ── Crear tratamiento ────────────────────────────────

async def create_treatment(
    db: AsyncSession,
    data: TreatmentCreate,
) -> TreatmentResponse:
    """Registra un tratamiento planificado y su vínculo cita-diente si aplica."""
    treatment = Treatment(
        patient_id=data.patient_id,
        consultation_id=data.consultation_id,
        appointment_id=data.appointment_id,
        tooth_diagnosis_id=data.tooth_diagnosis_id,
        treatment_type=data.treatment_type,
        tooth_number=data.tooth_number,
        status=TreatmentStatus.SCHEDULED,
        notes=data.notes,
    )
    db.add(treatment)
    await db.flush()

    # Vínculo cita-diente: no es fatal si ya existía
    if treatment.appointment_id and treatment.tooth_number:
        diagnosis_text = None
        if treatment.tooth_diagnosis_id:
            diagnosis = await ToothStore(db).get_diagnosis(treatment.tooth_diagnosis_id)
            diagnosis_text = diagnosis.primary_diagnosis if diagnosis else None
        created = await ToothStore(db).insert_appointment_tooth_link_ignoring_conflict(
            treatment.appointment_id,
            treatment.tooth_number,
            diagnosis_text,
            consultation_id=treatment.consultation_id,
            tooth_diagnosis_id=treatment.tooth_diagnosis_id,
        )
        if not created:
            logger.info(
                f"Vínculo cita {treatment.appointment_id} diente {treatment.tooth_number} "
                "ya existía"
            )

    await log_action(
        db,
        entity="treatment",
        entity_id=treatment.id,
        action="create",
        new_data={
            "treatment_type": treatment.treatment_type,
            "tooth_number": treatment.tooth_number,
            "patient_id": treatment.patient_id,
        },
    )

    await db.refresh(treatment)
    return _treatment_to_response(treatment)


# ── Cambio de estado ─────────────────────────────────

async def change_status(
    db: AsyncSession,
    treatment_id: UUID,
    data: TreatmentStatusChange,
) -> TreatmentResponse:
    """
    Cambia el estado de un tratamiento usando la state machine.
    Si pasa a 'completed' y el diente es conocido, concilia su diagnóstico;
    si el diente aún no se conoce, queda para la reparación de vínculos.
    """
    treatment = await _get_treatment(db, treatment_id)

    if not is_valid_transition(treatment.status, data.status):
        valid = VALID_TRANSITIONS.get(treatment.status, [])
        raise ValidationException(
            f"No se puede cambiar de '{treatment.status.value}' a '{data.status.value}'. "
            f"Transiciones válidas: {', '.join(s.value for s in valid) or 'ninguna'}"
        )

    old_status = treatment.status.value
    treatment.status = data.status
    await db.flush()

    await log_action(
        db,
        entity="treatment",
        entity_id=treatment.id,
        action="status_change",
        old_data={"status": old_status},
        new_data={"status": data.status.value},
    )

    tooth = None
    if data.status == TreatmentStatus.COMPLETED:
        if treatment.tooth_number:
            tooth = await apply_treatment_completion(
                db,
                patient_id=treatment.patient_id,
                tooth_number=treatment.tooth_number,
                treatment_type=treatment.treatment_type,
                treatment_id=treatment.id,
            )
        else:
            logger.info(
                f"Tratamiento {treatment.id} completado sin diente; "
                "pendiente de reparación de vínculos"
            )

    await db.refresh(treatment)
    return _treatment_to_response(treatment, tooth)
