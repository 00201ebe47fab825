"""
Servicio de odontograma: registro de diagnósticos por diente,
estado actual completo y aplicación de tratamientos completados.
"""

import logging
import uuid
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.models.tooth_diagnosis import (
    ToothStatus,
    canonical_color,
    is_treatment_complete,
    requires_attention,
)
from app.schemas.tooth_diagnosis import (
    FullToothChartResponse,
    NewDiagnosis,
    ToothChartEntry,
    ToothChartStats,
    ToothDiagnosisCreate,
    ToothDiagnosisRecord,
    TreatmentCompleted,
)
from app.services.audit_service import log_action
from app.services.reconciler import latest_per_tooth, reconcile
from app.services.tooth_store import ToothStore
from app.services.treatment_classifier import initial_status_from_diagnosis

logger = logging.getLogger(__name__)


def _snapshot(record: ToothDiagnosisRecord) -> dict:
    return {
        "status": record.status,
        "color_code": record.color_code,
        "follow_up_required": record.follow_up_required,
    }


# ── Guardar diagnóstico ──────────────────────────────

async def save_diagnosis(
    db: AsyncSession,
    data: ToothDiagnosisCreate,
) -> ToothDiagnosisRecord:
    """
    Crea o actualiza el diagnóstico de un diente en una consulta.
    El estado declarado gana; si no viene, se infiere del texto clínico.
    """
    store = ToothStore(db)
    status = data.status or initial_status_from_diagnosis(
        data.primary_diagnosis, data.recommended_treatment
    )

    record = await store.find_diagnosis(
        data.patient_id, data.tooth_number, data.consultation_id
    )
    action = "reconcile"
    old_data = None
    if record is None:
        action = "create"
        record = ToothDiagnosisRecord(
            id=uuid.uuid4(),
            patient_id=data.patient_id,
            consultation_id=data.consultation_id,
            tooth_number=data.tooth_number,
            status=status,
            color_code=canonical_color(status),
        )
    else:
        old_data = _snapshot(record)

    record.treatment_priority = data.treatment_priority
    record.notes = data.notes
    reconcile(
        record,
        NewDiagnosis(
            status=status,
            primary_diagnosis=data.primary_diagnosis,
            recommended_treatment=data.recommended_treatment,
        ),
    )
    await store.upsert_diagnosis(record)

    await log_action(
        db,
        entity="tooth_diagnosis",
        entity_id=record.id,
        action=action,
        old_data=old_data,
        new_data={**_snapshot(record), "tooth_number": record.tooth_number},
    )
    logger.info(
        f"Diagnóstico diente {record.tooth_number} paciente {record.patient_id}: "
        f"{record.status.value}"
    )
    return record


# ── Tratamiento completado ───────────────────────────

async def apply_treatment_completion(
    db: AsyncSession,
    *,
    patient_id: UUID,
    tooth_number: str,
    treatment_type: str,
    treatment_id: UUID | None = None,
) -> ToothDiagnosisRecord | None:
    """
    Concilia el diagnóstico vigente del diente con un tratamiento completado.
    Retorna None si el diente no tiene diagnósticos.
    """
    store = ToothStore(db)
    record = await store.get_latest_diagnosis(patient_id, tooth_number)
    if record is None:
        logger.info(
            f"Diente {tooth_number} del paciente {patient_id} sin diagnóstico; "
            "nada que conciliar"
        )
        return None

    before = _snapshot(record)
    stamped = record.updated_at
    reconcile(record, TreatmentCompleted(treatment_type=treatment_type))
    if record.updated_at == stamped:
        logger.info(f"'{treatment_type}' no se clasifica; diente {tooth_number} sin cambios")
        return record

    if not await store.upsert_diagnosis(record):
        logger.warning(
            f"Diente {tooth_number}: una escritura más reciente ganó, se descarta la conciliación"
        )
        return await store.get_latest_diagnosis(patient_id, tooth_number)

    await log_action(
        db,
        entity="tooth_diagnosis",
        entity_id=record.id,
        action="reconcile",
        old_data=before,
        new_data={
            **_snapshot(record),
            "treatment_type": treatment_type,
            "treatment_id": treatment_id,
        },
    )
    logger.info(
        f"Diente {tooth_number} → {record.status.value} por tratamiento completado "
        f"'{treatment_type}'"
    )
    return record


# ── Historial de un diente ───────────────────────────

async def get_tooth_history(
    db: AsyncSession,
    patient_id: UUID,
    tooth_number: str,
) -> list[ToothDiagnosisRecord]:
    """Diagnósticos de un diente, del más reciente al más antiguo."""
    return await ToothStore(db).list_patient_diagnoses(patient_id, tooth_number)


# ── Odontograma completo ─────────────────────────────

async def get_full_chart(
    db: AsyncSession,
    patient_id: UUID,
) -> FullToothChartResponse:
    """
    Estado actual del odontograma completo.
    Para cada diente, retorna el diagnóstico más reciente.
    """
    all_entries = await ToothStore(db).list_patient_diagnoses(patient_id)
    if not all_entries:
        raise NotFoundException("Odontograma")

    history: dict[str, int] = {}
    for entry in all_entries:
        history[entry.tooth_number] = history.get(entry.tooth_number, 0) + 1

    teeth = [
        ToothChartEntry(
            tooth_number=tooth_number,
            diagnosis_id=latest.id,
            status=latest.status,
            color_code=latest.color_code,
            primary_diagnosis=latest.primary_diagnosis,
            recommended_treatment=latest.recommended_treatment,
            follow_up_required=latest.follow_up_required,
            needs_attention=requires_attention(latest.status),
            last_updated=latest.updated_at,
            history_count=history[tooth_number],
        )
        for tooth_number, latest in sorted(latest_per_tooth(all_entries).items())
    ]

    return FullToothChartResponse(
        patient_id=patient_id,
        teeth=teeth,
        total_entries=len(all_entries),
    )


async def get_chart_stats(
    db: AsyncSession,
    patient_id: UUID,
) -> ToothChartStats:
    """Conteo por categoría sobre el estado vigente de cada diente."""
    latest = latest_per_tooth(await ToothStore(db).list_patient_diagnoses(patient_id))

    stats = ToothChartStats(patient_id=patient_id, total=len(latest))
    for record in latest.values():
        if record.status == ToothStatus.HEALTHY:
            stats.healthy += 1
        elif record.status == ToothStatus.CARIES:
            stats.caries += 1
        elif is_treatment_complete(record.status):
            stats.restorations += 1
        elif record.status in (ToothStatus.ATTENTION, ToothStatus.EXTRACTION_NEEDED):
            stats.attention += 1
        elif record.status == ToothStatus.MISSING:
            stats.missing += 1
    return stats
