"""
Tests de la reparación de vínculos tratamiento → diente (sin DB).
"""

from uuid import uuid4

from app.models.tooth_diagnosis import ToothStatus
from app.schemas.maintenance import LinkageOutcome
from app.services.linkage_repair import find_matching_diagnosis, link_treatment, repair_linkages


def _consultation(make_diagnosis, *teeth):
    """Diagnósticos de una misma consulta: (diente, estado, tratamiento recomendado)."""
    patient_id, consultation_id = uuid4(), uuid4()
    diagnoses = [
        make_diagnosis(
            tooth,
            status,
            patient_id=patient_id,
            consultation_id=consultation_id,
            recommended_treatment=plan,
            primary_diagnosis=f"Diagnóstico {tooth}",
        )
        for tooth, status, plan in teeth
    ]
    return patient_id, consultation_id, diagnoses


def test_links_root_canal_to_matching_tooth(make_diagnosis, make_treatment):
    patient_id, consultation_id, diagnoses = _consultation(
        make_diagnosis,
        ("16", ToothStatus.CARIES, "Composite filling"),
        ("48", ToothStatus.ATTENTION, "Root canal therapy"),
    )
    treatment = make_treatment(
        "Root Canal Treatment", patient_id=patient_id, consultation_id=consultation_id
    )

    [result] = repair_linkages([treatment], diagnoses)

    assert result.outcome == LinkageOutcome.LINKED
    assert result.tooth_number == "48"
    assert result.tooth_diagnosis_id == diagnoses[1].id
    assert treatment.tooth_number == "48"
    assert treatment.tooth_diagnosis_id == diagnoses[1].id
    assert result.link is None


def test_second_run_is_a_no_op(make_diagnosis, make_treatment):
    patient_id, consultation_id, diagnoses = _consultation(
        make_diagnosis, ("48", ToothStatus.ATTENTION, "RCT")
    )
    treatment = make_treatment(
        "Root Canal Treatment", patient_id=patient_id, consultation_id=consultation_id
    )

    repair_linkages([treatment], diagnoses)
    assert repair_linkages([treatment], diagnoses) == []
    assert treatment.tooth_number == "48"


def test_first_candidate_wins(make_diagnosis, make_treatment):
    patient_id, consultation_id, diagnoses = _consultation(
        make_diagnosis,
        ("24", ToothStatus.CARIES, "Amalgam filling"),
        ("26", ToothStatus.CARIES, "Composite restoration"),
    )
    treatment = make_treatment(
        "Composite Filling", patient_id=patient_id, consultation_id=consultation_id
    )

    assert find_matching_diagnosis(treatment, diagnoses) is diagnoses[0]


def test_consultation_treatments_are_skipped(make_diagnosis, make_treatment):
    patient_id, consultation_id, diagnoses = _consultation(
        make_diagnosis, ("48", ToothStatus.ATTENTION, "RCT")
    )
    treatment = make_treatment(
        "Consultation", patient_id=patient_id, consultation_id=consultation_id
    )

    result = link_treatment(treatment, diagnoses)

    assert result.outcome == LinkageOutcome.SKIPPED
    assert treatment.tooth_number is None


def test_without_consultation(make_treatment):
    result = link_treatment(make_treatment("Root Canal Treatment"), [])
    assert result.outcome == LinkageOutcome.NO_CONSULTATION


def test_no_family_match(make_diagnosis, make_treatment):
    patient_id, consultation_id, diagnoses = _consultation(
        make_diagnosis, ("16", ToothStatus.CARIES, "Composite filling")
    )
    treatment = make_treatment(
        "Porcelain crown", patient_id=patient_id, consultation_id=consultation_id
    )

    [result] = repair_linkages([treatment], diagnoses)

    assert result.outcome == LinkageOutcome.UNMATCHED
    assert treatment.tooth_number is None


def test_other_patient_is_not_a_candidate(make_diagnosis, make_treatment):
    _, consultation_id, diagnoses = _consultation(
        make_diagnosis, ("48", ToothStatus.ATTENTION, "RCT")
    )
    treatment = make_treatment("Root Canal Treatment", consultation_id=consultation_id)

    [result] = repair_linkages([treatment], diagnoses)

    assert result.outcome == LinkageOutcome.UNMATCHED


def test_existing_diagnosis_id_is_kept(make_diagnosis, make_treatment):
    patient_id, consultation_id, diagnoses = _consultation(
        make_diagnosis, ("48", ToothStatus.ATTENTION, "RCT")
    )
    original_diagnosis_id = uuid4()
    treatment = make_treatment(
        "Root Canal Treatment",
        patient_id=patient_id,
        consultation_id=consultation_id,
        tooth_diagnosis_id=original_diagnosis_id,
    )

    repair_linkages([treatment], diagnoses)

    assert treatment.tooth_number == "48"
    assert treatment.tooth_diagnosis_id == original_diagnosis_id


def test_already_linked_treatments_are_ignored(make_diagnosis, make_treatment):
    patient_id, consultation_id, diagnoses = _consultation(
        make_diagnosis, ("48", ToothStatus.ATTENTION, "RCT")
    )
    treatment = make_treatment(
        "Root Canal Treatment",
        patient_id=patient_id,
        consultation_id=consultation_id,
        tooth_number="47",
    )

    assert repair_linkages([treatment], diagnoses) == []
    assert treatment.tooth_number == "47"


def test_appointment_link_request(make_diagnosis, make_treatment):
    patient_id, consultation_id, diagnoses = _consultation(
        make_diagnosis, ("48", ToothStatus.ATTENTION, "RCT")
    )
    appointment_id = uuid4()
    treatment = make_treatment(
        "Root Canal Treatment",
        patient_id=patient_id,
        consultation_id=consultation_id,
        appointment_id=appointment_id,
    )

    [result] = repair_linkages([treatment], diagnoses)

    assert result.link.appointment_id == appointment_id
    assert result.link.tooth_number == "48"
    assert result.link.diagnosis == "Diagnóstico 48"
