"""
Auditoría del odontograma.

- Color: es función pura del estado, así que se corrige en silencio.
- Estado: es criterio clínico. Si el tratamiento recomendado sugiere otro
  estado, solo se reporta para revisión manual; nunca se aplica.
"""

import logging
from datetime import datetime
from typing import Iterable, Mapping

from app.core.exceptions import UnknownToothStatusError
from app.models.tooth_diagnosis import STATUS_COLORS, ToothStatus, canonical_color
from app.schemas.maintenance import AuditReport, ColorFix, Mismatch, RecordError
from app.schemas.tooth_diagnosis import ToothDiagnosisRecord
from app.services.reconciler import utcnow
from app.services.treatment_classifier import DEFAULT_CLASSIFIER, TreatmentClassifier

logger = logging.getLogger(__name__)


def audit_and_fix(
    diagnoses: Iterable[ToothDiagnosisRecord],
    *,
    now: datetime | None = None,
    classifier: TreatmentClassifier = DEFAULT_CLASSIFIER,
    palette: Mapping[ToothStatus, str] = STATUS_COLORS,
) -> AuditReport:
    """Corrige color_code en memoria y reporta discrepancias de tratamiento."""
    now = now or utcnow()
    report = AuditReport()

    for record in diagnoses:
        report.total_checked += 1
        try:
            expected_color = canonical_color(record.status, palette)
        except UnknownToothStatusError as exc:
            logger.warning(f"Diagnóstico {record.id} con estado inválido: {exc}")
            report.errors.append(
                RecordError(record_id=record.id, entity="tooth_diagnosis", error=str(exc))
            )
            continue

        if record.color_code != expected_color:
            report.fixed_records.append(ColorFix(
                diagnosis_id=record.id,
                tooth_number=record.tooth_number,
                status=record.status,
                old_color=record.color_code,
                new_color=expected_color,
            ))
            record.color_code = expected_color
            record.updated_at = now

        expected_status = classifier.classify(record.recommended_treatment)
        if expected_status is not None and expected_status != record.status:
            report.treatment_mismatches.append(Mismatch(
                diagnosis_id=record.id,
                patient_id=record.patient_id,
                tooth_number=record.tooth_number,
                current_status=record.status,
                expected_status=expected_status,
                recommended_treatment=record.recommended_treatment,
                expected_color=canonical_color(expected_status, palette),
            ))

    report.color_fixes = len(report.fixed_records)
    return report
