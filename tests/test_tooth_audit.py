"""
Tests de la auditoría de colores y discrepancias de tratamiento (sin DB).
"""

from app.models.tooth_diagnosis import ToothStatus
from app.schemas.tooth_diagnosis import ToothDiagnosisRecord
from app.services.tooth_audit import audit_and_fix


def test_fixes_wrong_color(make_diagnosis, later):
    record = make_diagnosis("36", ToothStatus.FILLED, color_code="#ef4444")

    report = audit_and_fix([record], now=later())

    assert report.total_checked == 1
    assert report.color_fixes == 1
    assert report.fixed_records[0].old_color == "#ef4444"
    assert report.fixed_records[0].new_color == "#3b82f6"
    assert record.color_code == "#3b82f6"
    assert record.status == ToothStatus.FILLED
    assert record.updated_at == later()


def test_second_pass_finds_nothing(make_diagnosis, later):
    records = [
        make_diagnosis("36", ToothStatus.FILLED, color_code="#ef4444"),
        make_diagnosis("11", ToothStatus.CROWN, color_code="#ffd700"),
        make_diagnosis("21", ToothStatus.HEALTHY),
    ]

    first = audit_and_fix(records, now=later())
    second = audit_and_fix(records, now=later(5))

    assert first.color_fixes == 2
    assert second.color_fixes == 0
    assert records[0].updated_at == later()


def test_mismatch_is_reported_not_applied(make_diagnosis):
    record = make_diagnosis("36", ToothStatus.CROWN, recommended_treatment="Composite filling")

    report = audit_and_fix([record])

    assert record.status == ToothStatus.CROWN
    assert report.color_fixes == 0
    [mismatch] = report.treatment_mismatches
    assert mismatch.current_status == ToothStatus.CROWN
    assert mismatch.expected_status == ToothStatus.FILLED
    assert mismatch.expected_color == "#3b82f6"


def test_unclassifiable_recommendation_is_not_a_mismatch(make_diagnosis):
    record = make_diagnosis("36", ToothStatus.CARIES, recommended_treatment="Observe")
    assert audit_and_fix([record]).treatment_mismatches == []


def test_invalid_status_does_not_stop_the_sweep(make_diagnosis, later):
    broken = ToothDiagnosisRecord.model_construct(
        **{**make_diagnosis("36").model_dump(), "status": "purple"}
    )
    fixable = make_diagnosis("11", ToothStatus.CARIES, color_code="#000000")

    report = audit_and_fix([broken, fixable], now=later())

    assert report.total_checked == 2
    assert len(report.errors) == 1
    assert report.errors[0].record_id == broken.id
    assert report.color_fixes == 1
    assert fixable.color_code == "#ef4444"
