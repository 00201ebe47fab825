"""
Router principal de la API v1.
Agrupa todos los sub-routers de la versión 1.
"""

from fastapi import APIRouter

from app.api.v1.maintenance import router as maintenance_router
from app.api.v1.tooth_diagnoses import router as tooth_diagnoses_router
from app.api.v1.treatments import router as treatments_router

api_v1_router = APIRouter()

api_v1_router.include_router(
    tooth_diagnoses_router,
    prefix="/tooth-diagnoses",
    tags=["Odontograma"],
)

api_v1_router.include_router(
    treatments_router,
    prefix="/treatments",
    tags=["Tratamientos"],
)

api_v1_router.include_router(
    maintenance_router,
    prefix="/maintenance",
    tags=["Mantenimiento"],
)
