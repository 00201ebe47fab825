"""
Tareas Celery de mantenimiento del odontograma.
Los barridos son idempotentes, así que un worker caído o un reintento
no deja datos a medias: la siguiente ejecución retoma lo pendiente.
"""

import asyncio
import logging

from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    name="maintenance.repair_tooth_linkages",
)
def repair_tooth_linkages_task(self, patient_id: str | None = None, limit: int | None = None):
    """
    Task periódico: vincula tratamientos sin diente con el diagnóstico
    de su consulta y actualiza los dientes de tratamientos ya completados.
    """
    from uuid import UUID

    async def _repair():
        from app.database import async_session_factory
        from app.services.maintenance_service import run_linkage_repair

        async with async_session_factory() as db:
            report = await run_linkage_repair(
                db,
                patient_id=UUID(patient_id) if patient_id else None,
                limit=limit,
            )
            return {
                "scanned": report.scanned,
                "linked": report.linked,
                "unmatched": report.unmatched,
                "skipped": report.skipped,
                "statuses_updated": report.statuses_updated,
                "errors": len(report.errors),
            }

    try:
        return asyncio.run(_repair())
    except Exception as exc:
        logger.error(f"Error reparando vínculos de dientes: {exc}")
        raise self.retry(exc=exc)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    name="maintenance.audit_tooth_colors",
)
def audit_tooth_colors_task(self, patient_id: str | None = None):
    """
    Task periódico: corrige colores que no corresponden al estado del diente.
    Las discrepancias de tratamiento solo se registran en el log.
    """
    from uuid import UUID

    async def _audit():
        from app.database import async_session_factory
        from app.services.maintenance_service import run_tooth_audit

        async with async_session_factory() as db:
            report = await run_tooth_audit(
                db, patient_id=UUID(patient_id) if patient_id else None
            )
            for mismatch in report.treatment_mismatches:
                logger.warning(
                    f"Diente {mismatch.tooth_number} ({mismatch.diagnosis_id}): "
                    f"estado {mismatch.current_status.value}, el tratamiento "
                    f"'{mismatch.recommended_treatment}' sugiere {mismatch.expected_status.value}"
                )
            return {
                "total_checked": report.total_checked,
                "color_fixes": report.color_fixes,
                "superseded": report.superseded,
                "treatment_mismatches": len(report.treatment_mismatches),
                "errors": len(report.errors),
            }

    try:
        return asyncio.run(_audit())
    except Exception as exc:
        logger.error(f"Error auditando colores del odontograma: {exc}")
        raise self.retry(exc=exc)
