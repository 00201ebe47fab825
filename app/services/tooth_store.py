"""
Acceso a datos del motor de odontograma.

Lee filas como registros pydantic y escribe con sentencias de una sola fila:
cada actualización es atómica por fila y el motor nunca abre transacciones
multi-fila. Los errores de persistencia se propagan sin reintentos.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, literal, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.appointment_tooth import AppointmentTooth
from app.models.tooth_diagnosis import ToothDiagnosis, ToothStatus
from app.models.treatment import TOOTHLESS_TREATMENT_TYPES, Treatment
from app.schemas.tooth_diagnosis import ToothDiagnosisRecord
from app.schemas.treatment import TreatmentRecord
from app.services.reconciler import utcnow

# Campos que el motor puede modificar; el resto es inmutable
_MUTABLE_DIAGNOSIS_FIELDS = (
    "status",
    "color_code",
    "primary_diagnosis",
    "recommended_treatment",
    "treatment_priority",
    "notes",
    "follow_up_required",
    "updated_at",
)


def _insert_for(dialect_name: str):
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"INSERT ... ON CONFLICT no soportado en {dialect_name}")
    return insert


def _fresh(query):
    # Las escrituras son sentencias Core: refrescar lo que ya esté en la sesión
    return query.execution_options(populate_existing=True)


def _to_record(row: ToothDiagnosis) -> ToothDiagnosisRecord:
    return ToothDiagnosisRecord.model_validate(row)


class ToothStore:
    """Colaborador de persistencia sobre una AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ── Diagnósticos ─────────────────────────────────

    async def get_latest_diagnosis(
        self, patient_id: UUID, tooth_number: str
    ) -> ToothDiagnosisRecord | None:
        """Registro vigente del diente: updated_at desc, luego created_at desc."""
        query = (
            select(ToothDiagnosis)
            .where(
                ToothDiagnosis.patient_id == patient_id,
                ToothDiagnosis.tooth_number == tooth_number,
            )
            .order_by(
                ToothDiagnosis.updated_at.desc(),
                ToothDiagnosis.created_at.desc(),
            )
            .limit(1)
        )
        result = await self.db.execute(_fresh(query))
        row = result.scalar_one_or_none()
        return _to_record(row) if row else None

    async def get_diagnosis(self, diagnosis_id: UUID) -> ToothDiagnosisRecord | None:
        row = await self.db.get(ToothDiagnosis, diagnosis_id, populate_existing=True)
        return _to_record(row) if row else None

    async def find_diagnosis(
        self,
        patient_id: UUID,
        tooth_number: str,
        consultation_id: UUID | None,
    ) -> ToothDiagnosisRecord | None:
        """Diagnóstico de un diente dentro de una consulta concreta."""
        if consultation_id is None:
            consultation_filter = ToothDiagnosis.consultation_id.is_(None)
        else:
            consultation_filter = ToothDiagnosis.consultation_id == consultation_id
        query = (
            select(ToothDiagnosis)
            .where(
                ToothDiagnosis.patient_id == patient_id,
                ToothDiagnosis.tooth_number == tooth_number,
                consultation_filter,
            )
            .order_by(ToothDiagnosis.updated_at.desc())
            .limit(1)
        )
        result = await self.db.execute(_fresh(query))
        row = result.scalar_one_or_none()
        return _to_record(row) if row else None

    async def list_patient_diagnoses(
        self, patient_id: UUID, tooth_number: str | None = None
    ) -> list[ToothDiagnosisRecord]:
        query = select(ToothDiagnosis).where(ToothDiagnosis.patient_id == patient_id)
        if tooth_number is not None:
            query = query.where(ToothDiagnosis.tooth_number == tooth_number)
        result = await self.db.execute(
            _fresh(query.order_by(
                ToothDiagnosis.tooth_number,
                ToothDiagnosis.updated_at.desc(),
                ToothDiagnosis.created_at.desc(),
            ))
        )
        return [_to_record(row) for row in result.scalars().all()]

    async def list_diagnoses_by_consultation(
        self, consultation_id: UUID, patient_id: UUID
    ) -> list[ToothDiagnosisRecord]:
        """Candidatos para vincular tratamientos, en orden de creación."""
        query = (
            select(ToothDiagnosis)
            .where(
                ToothDiagnosis.consultation_id == consultation_id,
                ToothDiagnosis.patient_id == patient_id,
            )
            .order_by(ToothDiagnosis.created_at, ToothDiagnosis.tooth_number)
        )
        result = await self.db.execute(_fresh(query))
        return [_to_record(row) for row in result.scalars().all()]

    async def list_all_diagnoses(
        self,
        patient_id: UUID | None = None,
        status: ToothStatus | None = None,
    ) -> list[ToothDiagnosisRecord]:
        query = select(ToothDiagnosis)
        if patient_id is not None:
            query = query.where(ToothDiagnosis.patient_id == patient_id)
        if status is not None:
            query = query.where(ToothDiagnosis.status == status)
        result = await self.db.execute(_fresh(query.order_by(ToothDiagnosis.updated_at.desc())))
        return [_to_record(row) for row in result.scalars().all()]

    async def upsert_diagnosis(self, record: ToothDiagnosisRecord) -> bool:
        """
        Inserta el registro si no existe; si existe, lo actualiza solo cuando
        la versión almacenada no es más nueva (last-write-wins por updated_at).
        Retorna False si una escritura más reciente ganó.
        """
        if record.updated_at is None:
            record.updated_at = utcnow()

        values = {field: getattr(record, field) for field in _MUTABLE_DIAGNOSIS_FIELDS}
        result = await self.db.execute(
            update(ToothDiagnosis)
            .where(
                ToothDiagnosis.id == record.id,
                or_(
                    ToothDiagnosis.updated_at.is_(None),
                    ToothDiagnosis.updated_at <= record.updated_at,
                ),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            return True

        exists = await self.db.scalar(
            select(func.count()).where(ToothDiagnosis.id == record.id)
        )
        if exists:
            return False

        data = record.model_dump()
        if data["created_at"] is None:
            data["created_at"] = record.updated_at
            record.created_at = record.updated_at
        self.db.add(ToothDiagnosis(**data))
        await self.db.flush()
        return True

    async def update_diagnosis_color(
        self,
        diagnosis_id: UUID,
        color_code: str,
        updated_at: datetime,
        *,
        status: ToothStatus,
    ) -> bool:
        """
        Solo corrige el color; el estado nunca se toca desde aquí.
        No escribe si el estado cambió o hay una escritura más reciente:
        retorna False y la corrección queda descartada.
        """
        result = await self.db.execute(
            update(ToothDiagnosis)
            .where(
                ToothDiagnosis.id == diagnosis_id,
                ToothDiagnosis.status == status,
                or_(
                    ToothDiagnosis.updated_at.is_(None),
                    ToothDiagnosis.updated_at <= updated_at,
                ),
            )
            .values(color_code=color_code, updated_at=updated_at)
            .execution_options(synchronize_session=False)
        )
        return bool(result.rowcount)

    # ── Tratamientos ─────────────────────────────────

    async def list_treatments_missing_tooth_link(
        self,
        patient_id: UUID | None = None,
        limit: int | None = None,
        after_id: UUID | None = None,
    ) -> list[TreatmentRecord]:
        """
        Tratamientos sin diente que podrían vincularse, paginados por id.
        Los tipos que nunca llevan diente (consultas) no se listan.
        """
        query = select(Treatment).where(
            Treatment.tooth_number.is_(None),
            func.lower(func.trim(Treatment.treatment_type)).not_in(
                sorted(TOOTHLESS_TREATMENT_TYPES)
            ),
        )
        if patient_id is not None:
            query = query.where(Treatment.patient_id == patient_id)
        if after_id is not None:
            query = query.where(Treatment.id > after_id)
        query = query.order_by(Treatment.id)
        if limit:
            query = query.limit(limit)
        result = await self.db.execute(_fresh(query))
        return [TreatmentRecord.model_validate(row) for row in result.scalars().all()]

    async def update_treatment_tooth_number(
        self,
        treatment_id: UUID,
        tooth_number: str,
        tooth_diagnosis_id: UUID | None = None,
    ) -> bool:
        """Backfill único: no hace nada si el tratamiento ya tiene diente."""
        values: dict = {"tooth_number": tooth_number}
        if tooth_diagnosis_id is not None:
            values["tooth_diagnosis_id"] = func.coalesce(
                Treatment.tooth_diagnosis_id,
                literal(tooth_diagnosis_id, type_=Treatment.tooth_diagnosis_id.type),
            )
        result = await self.db.execute(
            update(Treatment)
            .where(
                Treatment.id == treatment_id,
                Treatment.tooth_number.is_(None),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return bool(result.rowcount)

    # ── Vínculos cita-diente ─────────────────────────

    async def insert_appointment_tooth_link_ignoring_conflict(
        self,
        appointment_id: UUID,
        tooth_number: str,
        diagnosis_snapshot: str | None,
        *,
        consultation_id: UUID | None = None,
        tooth_diagnosis_id: UUID | None = None,
    ) -> bool:
        """Inserta el vínculo; si ya existe (cita, diente) no hace nada."""
        insert = _insert_for(self.db.bind.dialect.name)
        result = await self.db.execute(
            insert(AppointmentTooth)
            .values(
                appointment_id=appointment_id,
                consultation_id=consultation_id,
                tooth_number=tooth_number,
                tooth_diagnosis_id=tooth_diagnosis_id,
                diagnosis=diagnosis_snapshot,
            )
            .on_conflict_do_nothing(index_elements=["appointment_id", "tooth_number"])
        )
        return bool(result.rowcount)
