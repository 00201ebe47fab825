"""
Endpoints del odontograma: registro de diagnósticos por diente,
historial por diente, odontograma completo y resumen.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationException
from app.database import get_db
from app.schemas.tooth_diagnosis import (
    FullToothChartResponse,
    ToothChartStats,
    ToothDiagnosisCreate,
    ToothDiagnosisRecord,
    validate_fdi,
)
from app.services import tooth_diagnosis_service

router = APIRouter()


@router.post("", response_model=ToothDiagnosisRecord, status_code=201)
async def save_tooth_diagnosis(
    data: ToothDiagnosisCreate,
    db: AsyncSession = Depends(get_db),
):
    """
    Crea o actualiza el diagnóstico de un diente en una consulta.
    El color se deriva siempre del estado.
    """
    return await tooth_diagnosis_service.save_diagnosis(db, data)


@router.get("/patient/{patient_id}", response_model=FullToothChartResponse)
async def get_full_tooth_chart(
    patient_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """
    Odontograma completo: estado actual de todos los dientes
    del paciente (diagnóstico más reciente por diente).
    """
    return await tooth_diagnosis_service.get_full_chart(db, patient_id=patient_id)


@router.get("/patient/{patient_id}/stats", response_model=ToothChartStats)
async def get_tooth_chart_stats(
    patient_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Conteo de dientes sanos, con caries, restaurados y en atención."""
    return await tooth_diagnosis_service.get_chart_stats(db, patient_id=patient_id)


@router.get(
    "/patient/{patient_id}/tooth/{tooth_number}",
    response_model=list[ToothDiagnosisRecord],
)
async def get_tooth_history(
    patient_id: UUID,
    tooth_number: str = Path(..., description="Número FDI del diente"),
    db: AsyncSession = Depends(get_db),
):
    """
    Historial de diagnósticos de un diente específico.
    Ordenado del más reciente al más antiguo.
    """
    try:
        tooth_number = validate_fdi(tooth_number)
    except ValueError as exc:
        raise ValidationException(str(exc))
    return await tooth_diagnosis_service.get_tooth_history(
        db, patient_id=patient_id, tooth_number=tooth_number
    )
