"""
Conciliador de diagnósticos: fusiona una señal nueva en el estado del diente.

Reglas:
- NewDiagnosis: el estado declarado por el clínico siempre gana.
- TreatmentCompleted: si el tipo de tratamiento se clasifica, ese estado
  reemplaza al actual y se cierra el seguimiento; si no, no se toca nada
  (ni siquiera updated_at).

Funciones puras sobre ToothDiagnosisRecord: no leen ni escriben la base.
"""

from datetime import datetime, timezone
from typing import Iterable, Mapping

from app.models.tooth_diagnosis import (
    STATUS_COLORS,
    ToothStatus,
    canonical_color,
)
from app.schemas.tooth_diagnosis import (
    NewDiagnosis,
    Signal,
    ToothDiagnosisRecord,
    TreatmentCompleted,
)
from app.services.treatment_classifier import DEFAULT_CLASSIFIER, TreatmentClassifier

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def reconcile(
    current: ToothDiagnosisRecord,
    signal: Signal,
    *,
    now: datetime | None = None,
    classifier: TreatmentClassifier = DEFAULT_CLASSIFIER,
    palette: Mapping[ToothStatus, str] = STATUS_COLORS,
) -> ToothDiagnosisRecord:
    """
    Aplica `signal` sobre `current` (mutación en sitio) y lo retorna.
    El número de diente no se valida: se confía en el llamador.
    """
    if isinstance(signal, NewDiagnosis):
        current.status = signal.status
        current.color_code = canonical_color(signal.status, palette)
        current.primary_diagnosis = signal.primary_diagnosis
        current.recommended_treatment = signal.recommended_treatment
        current.follow_up_required = signal.status != ToothStatus.HEALTHY
        current.updated_at = now or utcnow()
        return current

    if isinstance(signal, TreatmentCompleted):
        status = classifier.classify(signal.treatment_type)
        if status is None:
            return current
        current.status = status
        current.color_code = canonical_color(status, palette)
        current.follow_up_required = False
        current.updated_at = now or utcnow()
        return current

    raise TypeError(f"Señal no soportada: {type(signal).__name__}")


# ── Selección del registro vigente ───────────────────

def _as_aware(value: datetime | None) -> datetime:
    if value is None:
        return _EPOCH
    if value.tzinfo is None:
        # SQLite devuelve fechas naive; se asumen UTC
        return value.replace(tzinfo=timezone.utc)
    return value


def _recency_key(record: ToothDiagnosisRecord) -> tuple[datetime, datetime]:
    return (_as_aware(record.updated_at), _as_aware(record.created_at))


def pick_latest(records: Iterable[ToothDiagnosisRecord]) -> ToothDiagnosisRecord | None:
    """Registro más reciente por updated_at (desempate por created_at)."""
    return max(records, key=_recency_key, default=None)


def latest_per_tooth(
    records: Iterable[ToothDiagnosisRecord],
) -> dict[str, ToothDiagnosisRecord]:
    """Agrupa por tooth_number y conserva el registro vigente de cada diente."""
    latest: dict[str, ToothDiagnosisRecord] = {}
    for record in records:
        held = latest.get(record.tooth_number)
        if held is None or _recency_key(record) > _recency_key(held):
            latest[record.tooth_number] = record
    return latest
