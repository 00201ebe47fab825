"""
Endpoints de mantenimiento del odontograma (acciones de administrador).
Ambos barridos son idempotentes: se pueden lanzar tantas veces como haga falta.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.maintenance import AuditReport, LinkageRepairReport
from app.services import maintenance_service

router = APIRouter()


@router.post("/repair-linkages", response_model=LinkageRepairReport)
async def repair_tooth_linkages(
    patient_id: UUID | None = Query(None, description="Limitar a un paciente"),
    limit: int | None = Query(None, ge=1, le=1000, description="Tratamientos por página"),
    db: AsyncSession = Depends(get_db),
):
    """Vincula tratamientos sin diente a partir de los diagnósticos de su consulta."""
    return await maintenance_service.run_linkage_repair(db, patient_id=patient_id, limit=limit)


@router.post("/audit-colors", response_model=AuditReport)
async def audit_tooth_colors(
    patient_id: UUID | None = Query(None, description="Limitar a un paciente"),
    db: AsyncSession = Depends(get_db),
):
    """Corrige colores inconsistentes y reporta discrepancias de tratamiento."""
    return await maintenance_service.run_tooth_audit(db, patient_id=patient_id)
