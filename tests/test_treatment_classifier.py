"""
Tests del clasificador de texto de tratamientos.
"""

import pytest

from app.models.tooth_diagnosis import ToothStatus
from app.services.treatment_classifier import (
    ClassificationRule,
    TreatmentClassifier,
    classify,
    initial_status_from_diagnosis,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Root Canal Treatment", ToothStatus.ROOT_CANAL),
        ("RCT", ToothStatus.ROOT_CANAL),
        ("Composite Filling", ToothStatus.FILLED),
        ("Amalgam restoration", ToothStatus.FILLED),
        ("Porcelain Crown", ToothStatus.CROWN),
        ("Onlay", ToothStatus.CROWN),
        ("Extraction", ToothStatus.MISSING),
        ("Implant placement", ToothStatus.IMPLANT),
        ("Scaling and polishing", ToothStatus.HEALTHY),
        ("Periodontal therapy", ToothStatus.ATTENTION),
    ],
)
def test_classify_known_families(text, expected):
    assert classify(text) == expected


def test_first_rule_wins():
    # "root canal" gana aunque el texto también mencione corona
    assert classify("Root Canal Retreatment") == ToothStatus.ROOT_CANAL
    assert classify("Root canal + crown") == ToothStatus.ROOT_CANAL
    assert classify("Filling before crown") == ToothStatus.FILLED


def test_classify_is_case_and_space_insensitive():
    assert classify("   COMPOSITE FILLING  ") == ToothStatus.FILLED


@pytest.mark.parametrize("text", [None, "", "   ", "Routine Chat", "consultation"])
def test_unclassifiable_returns_none(text):
    assert classify(text) is None


def test_linkage_family_only_for_tooth_specific_work():
    classifier = TreatmentClassifier()
    assert classifier.linkage_family("Composite Filling") == ToothStatus.FILLED
    assert classifier.linkage_family("Extraction") == ToothStatus.MISSING
    assert classifier.linkage_family("Implant placement") is None
    assert classifier.linkage_family("Scaling") is None


def test_custom_rules():
    classifier = TreatmentClassifier((ClassificationRule(("veneer",), ToothStatus.CROWN),))
    assert classifier.classify("Veneer") == ToothStatus.CROWN
    assert classifier.classify("Root canal") is None


@pytest.mark.parametrize(
    "diagnosis, plan, expected",
    [
        ("Deep caries on occlusal surface", None, ToothStatus.CARIES),
        ("Irreversible pulpitis", "Root canal", ToothStatus.ATTENTION),
        ("Tooth missing", None, ToothStatus.MISSING),
        ("Cracked cusp", None, ToothStatus.ATTENTION),
        ("No findings", None, ToothStatus.HEALTHY),
        (None, None, ToothStatus.HEALTHY),
    ],
)
def test_initial_status_from_diagnosis(diagnosis, plan, expected):
    assert initial_status_from_diagnosis(diagnosis, plan) == expected
