"""
Reparación de vínculos tratamiento → diente.

Para cada tratamiento sin tooth_number se buscan los diagnósticos de la misma
consulta y paciente; el primero cuyo tratamiento recomendado cae en la misma
familia (obturación, endodoncia, corona, extracción) aporta el diente.

El barrido es idempotente: solo mira tratamientos con tooth_number vacío y
nunca sobrescribe uno ya asignado, así que se puede interrumpir y repetir.
"""

import logging
from collections import defaultdict
from typing import Iterable
from uuid import UUID

from app.models.treatment import TOOTHLESS_TREATMENT_TYPES
from app.schemas.maintenance import LinkageOutcome, LinkageResult, ToothLinkRequest
from app.schemas.tooth_diagnosis import ToothDiagnosisRecord
from app.schemas.treatment import TreatmentRecord
from app.services.treatment_classifier import DEFAULT_CLASSIFIER, TreatmentClassifier

logger = logging.getLogger(__name__)


def _group_by_consultation(
    diagnoses: Iterable[ToothDiagnosisRecord],
) -> dict[tuple[UUID, UUID], list[ToothDiagnosisRecord]]:
    groups: dict[tuple[UUID, UUID], list[ToothDiagnosisRecord]] = defaultdict(list)
    for diagnosis in diagnoses:
        if diagnosis.consultation_id is not None:
            groups[(diagnosis.consultation_id, diagnosis.patient_id)].append(diagnosis)
    return groups


def find_matching_diagnosis(
    treatment: TreatmentRecord,
    candidates: Iterable[ToothDiagnosisRecord],
    classifier: TreatmentClassifier = DEFAULT_CLASSIFIER,
) -> ToothDiagnosisRecord | None:
    """Primer candidato de la misma familia de tratamiento, en orden de lista."""
    family = classifier.linkage_family(treatment.treatment_type)
    if family is None:
        return None
    for candidate in candidates:
        if classifier.linkage_family(candidate.recommended_treatment) == family:
            return candidate
    return None


def link_treatment(
    treatment: TreatmentRecord,
    candidates: list[ToothDiagnosisRecord],
    classifier: TreatmentClassifier = DEFAULT_CLASSIFIER,
) -> LinkageResult:
    """Decide el vínculo de un tratamiento y lo aplica al registro en memoria."""
    result = LinkageResult(
        treatment_id=treatment.id,
        patient_id=treatment.patient_id,
        treatment_type=treatment.treatment_type,
        outcome=LinkageOutcome.UNMATCHED,
    )

    if treatment.treatment_type.strip().lower() in TOOTHLESS_TREATMENT_TYPES:
        result.outcome = LinkageOutcome.SKIPPED
        return result

    if treatment.consultation_id is None:
        result.outcome = LinkageOutcome.NO_CONSULTATION
        return result

    match = find_matching_diagnosis(treatment, candidates, classifier)
    if match is None:
        logger.info(
            f"Sin diagnóstico compatible para tratamiento {treatment.id} "
            f"({treatment.treatment_type}) en consulta {treatment.consultation_id}"
        )
        return result

    # Backfill único: nunca sobrescribir un valor existente
    if treatment.tooth_number is None:
        treatment.tooth_number = match.tooth_number
    if treatment.tooth_diagnosis_id is None:
        treatment.tooth_diagnosis_id = match.id

    result.outcome = LinkageOutcome.LINKED
    result.tooth_number = treatment.tooth_number
    result.tooth_diagnosis_id = match.id

    if treatment.appointment_id is not None:
        result.link = ToothLinkRequest(
            appointment_id=treatment.appointment_id,
            consultation_id=treatment.consultation_id,
            tooth_number=match.tooth_number,
            tooth_diagnosis_id=match.id,
            diagnosis=match.primary_diagnosis,
        )
    return result


def repair_linkages(
    treatments: Iterable[TreatmentRecord],
    diagnoses: Iterable[ToothDiagnosisRecord],
    *,
    classifier: TreatmentClassifier = DEFAULT_CLASSIFIER,
) -> list[LinkageResult]:
    """
    Infiere el diente de cada tratamiento sin vincular.
    Los tratamientos que ya tienen diente no aparecen en el resultado.
    """
    groups = _group_by_consultation(diagnoses)
    results: list[LinkageResult] = []

    for treatment in treatments:
        if treatment.tooth_number is not None:
            continue
        candidates = groups.get((treatment.consultation_id, treatment.patient_id), [])
        results.append(link_treatment(treatment, candidates, classifier))

    return results
