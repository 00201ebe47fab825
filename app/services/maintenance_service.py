"""
Servicio de mantenimiento del odontograma: ejecuta los barridos de
reparación de vínculos y de auditoría de colores contra la base.

Cada registro se persiste en su propio commit. Si uno falla se hace
rollback de ese registro, se reporta y el barrido continúa.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.tooth_diagnosis import ToothStatus
from app.models.treatment import TreatmentStatus
from app.schemas.maintenance import (
    AuditReport,
    LinkageOutcome,
    LinkageRepairReport,
    LinkageResult,
    RecordError,
)
from app.schemas.tooth_diagnosis import ToothDiagnosisRecord
from app.schemas.treatment import TreatmentRecord
from app.services.audit_service import log_action
from app.services.linkage_repair import repair_linkages
from app.services.reconciler import utcnow
from app.services.tooth_audit import audit_and_fix
from app.services.tooth_diagnosis_service import apply_treatment_completion
from app.services.tooth_store import ToothStore
from app.services.treatment_classifier import classify

logger = logging.getLogger(__name__)


async def _load_candidates(
    store: ToothStore, treatments: list[TreatmentRecord]
) -> list[ToothDiagnosisRecord]:
    """Diagnósticos de cada (consulta, paciente) presente en el lote."""
    seen: set[tuple[UUID, UUID]] = set()
    diagnoses: list[ToothDiagnosisRecord] = []
    for treatment in treatments:
        if treatment.consultation_id is None or treatment.tooth_number is not None:
            continue
        key = (treatment.consultation_id, treatment.patient_id)
        if key in seen:
            continue
        seen.add(key)
        diagnoses.extend(await store.list_diagnoses_by_consultation(*key))
    return diagnoses


@dataclass
class _PersistedLink:
    link_created: bool = False
    resulting_status: ToothStatus | None = None


async def _persist_link(
    db: AsyncSession,
    store: ToothStore,
    result: LinkageResult,
    treatment: TreatmentRecord,
) -> _PersistedLink | None:
    """Escribe un vínculo. Retorna None si otro proceso ya lo había vinculado."""
    updated = await store.update_treatment_tooth_number(
        result.treatment_id, result.tooth_number, result.tooth_diagnosis_id
    )
    if not updated:
        logger.info(f"Tratamiento {result.treatment_id} ya estaba vinculado; se omite")
        return None

    persisted = _PersistedLink()
    if result.link is not None:
        persisted.link_created = await store.insert_appointment_tooth_link_ignoring_conflict(
            result.link.appointment_id,
            result.link.tooth_number,
            result.link.diagnosis,
            consultation_id=result.link.consultation_id,
            tooth_diagnosis_id=result.link.tooth_diagnosis_id,
        )

    await log_action(
        db,
        entity="treatment",
        entity_id=result.treatment_id,
        action="link",
        old_data={"tooth_number": None},
        new_data={
            "tooth_number": result.tooth_number,
            "tooth_diagnosis_id": result.tooth_diagnosis_id,
        },
    )

    # Tratamiento ya completado: el diente recién vinculado refleja el trabajo hecho
    if treatment.status == TreatmentStatus.COMPLETED:
        tooth = await apply_treatment_completion(
            db,
            patient_id=treatment.patient_id,
            tooth_number=result.tooth_number,
            treatment_type=treatment.treatment_type,
            treatment_id=treatment.id,
        )
        if tooth is not None and classify(treatment.treatment_type) is not None:
            persisted.resulting_status = tooth.status

    return persisted


async def _repair_page(
    db: AsyncSession,
    store: ToothStore,
    treatments: list[TreatmentRecord],
    report: LinkageRepairReport,
) -> None:
    diagnoses = await _load_candidates(store, treatments)
    by_id = {t.id: t for t in treatments}

    results = repair_linkages(treatments, diagnoses)
    report.scanned += len(treatments)
    report.results.extend(results)

    for result in results:
        if result.outcome == LinkageOutcome.SKIPPED:
            report.skipped += 1
            continue
        if result.outcome != LinkageOutcome.LINKED:
            report.unmatched += 1
            continue

        try:
            persisted = await _persist_link(db, store, result, by_id[result.treatment_id])
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.warning(f"No se pudo vincular tratamiento {result.treatment_id}: {exc}")
            result.outcome = LinkageOutcome.FAILED
            report.errors.append(
                RecordError(record_id=result.treatment_id, entity="treatment", error=str(exc))
            )
            continue

        if persisted is None:
            continue
        report.linked += 1
        if persisted.link_created:
            report.links_created += 1
        if persisted.resulting_status is not None:
            result.resulting_status = persisted.resulting_status
            report.statuses_updated += 1


async def run_linkage_repair(
    db: AsyncSession,
    patient_id: UUID | None = None,
    limit: int | None = None,
) -> LinkageRepairReport:
    """
    Completa el tooth_number de tratamientos sin vincular.

    Recorre todos los pendientes en páginas de `limit` (por defecto
    LINKAGE_REPAIR_BATCH_SIZE) ordenadas por id, así que los que nunca
    encuentran diagnóstico no bloquean a los siguientes.
    Idempotente: repetirlo solo procesa lo que sigue sin vincular.
    """
    settings = get_settings()
    store = ToothStore(db)
    page_size = limit or settings.LINKAGE_REPAIR_BATCH_SIZE
    report = LinkageRepairReport()

    after_id: UUID | None = None
    while True:
        treatments = await store.list_treatments_missing_tooth_link(
            patient_id, page_size, after_id=after_id
        )
        if not treatments:
            break
        after_id = treatments[-1].id
        await _repair_page(db, store, treatments, report)
        if len(treatments) < page_size:
            break

    logger.info(
        f"Reparación de vínculos: {report.scanned} revisados, {report.linked} vinculados, "
        f"{report.unmatched} sin coincidencia, {report.skipped} omitidos, "
        f"{report.statuses_updated} dientes actualizados, {len(report.errors)} errores"
    )
    return report


async def run_tooth_audit(
    db: AsyncSession,
    patient_id: UUID | None = None,
) -> AuditReport:
    """
    Corrige colores que no corresponden a su estado y reporta discrepancias
    entre estado y tratamiento recomendado. Nunca modifica el estado.
    Una corrección calculada sobre un registro que cambió durante el barrido
    se descarta (superseded).
    """
    store = ToothStore(db)
    diagnoses = await store.list_all_diagnoses(patient_id=patient_id)

    now = utcnow()
    report = audit_and_fix(diagnoses, now=now)

    persisted = []
    for fix in report.fixed_records:
        try:
            written = await store.update_diagnosis_color(
                fix.diagnosis_id, fix.new_color, now, status=fix.status
            )
            if not written:
                logger.info(
                    f"Diagnóstico {fix.diagnosis_id} cambió durante la auditoría; "
                    "se descarta la corrección de color"
                )
                report.superseded += 1
                continue
            await log_action(
                db,
                entity="tooth_diagnosis",
                entity_id=fix.diagnosis_id,
                action="color_fix",
                old_data={"color_code": fix.old_color},
                new_data={"color_code": fix.new_color, "status": fix.status},
            )
            await db.commit()
            persisted.append(fix)
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.warning(f"No se pudo corregir color de {fix.diagnosis_id}: {exc}")
            report.errors.append(
                RecordError(record_id=fix.diagnosis_id, entity="tooth_diagnosis", error=str(exc))
            )

    report.fixed_records = persisted
    report.color_fixes = len(persisted)

    logger.info(
        f"Auditoría de odontograma: {report.total_checked} revisados, "
        f"{report.color_fixes} colores corregidos, {report.superseded} descartados, "
        f"{len(report.treatment_mismatches)} discrepancias de tratamiento, "
        f"{len(report.errors)} errores"
    )
    return report
