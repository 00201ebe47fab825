"""
Endpoints de tratamientos: alta y cambio de estado.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.treatment import TreatmentCreate, TreatmentResponse, TreatmentStatusChange
from app.services import treatment_service

router = APIRouter()


@router.post("", response_model=TreatmentResponse, status_code=201)
async def create_treatment(
    data: TreatmentCreate,
    db: AsyncSession = Depends(get_db),
):
    """Registra un tratamiento planificado."""
    return await treatment_service.create_treatment(db, data)


@router.patch("/{treatment_id}/status", response_model=TreatmentResponse)
async def change_treatment_status(
    treatment_id: UUID,
    data: TreatmentStatusChange,
    db: AsyncSession = Depends(get_db),
):
    """
    Cambia el estado del tratamiento (state machine).
    Al completarse, actualiza el estado y color del diente tratado.
    """
    return await treatment_service.change_status(db, treatment_id, data)
