"""
Clasificador de tratamientos: texto libre → estado canónico del diente.

Heurística por subcadenas sobre una tabla ordenada de reglas. Gana la
primera regla que coincide, así que las reglas más específicas van antes
("root canal" antes que cualquier regla que pudiera coincidir con "canal").
"""

from dataclasses import dataclass

from app.models.tooth_diagnosis import ToothStatus


@dataclass(frozen=True)
class ClassificationRule:
    keywords: tuple[str, ...]
    status: ToothStatus

    def matches(self, text: str) -> bool:
        return any(keyword in text for keyword in self.keywords)


TREATMENT_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(("root canal", "rct"), ToothStatus.ROOT_CANAL),
    ClassificationRule(("filling", "restoration", "composite", "amalgam"), ToothStatus.FILLED),
    ClassificationRule(("crown", "onlay", "cap"), ToothStatus.CROWN),
    ClassificationRule(("extraction",), ToothStatus.MISSING),
    ClassificationRule(("implant",), ToothStatus.IMPLANT),
    ClassificationRule(("scaling", "polishing"), ToothStatus.HEALTHY),
    ClassificationRule(("periodontal",), ToothStatus.ATTENTION),
)

# Familias que permiten inferir a qué diente pertenece un tratamiento
LINKABLE_STATUSES = frozenset({
    ToothStatus.FILLED,
    ToothStatus.ROOT_CANAL,
    ToothStatus.CROWN,
    ToothStatus.MISSING,
})


class TreatmentClassifier:
    """Aplica una tabla de reglas inmutable. Sin estado compartido."""

    def __init__(self, rules: tuple[ClassificationRule, ...] = TREATMENT_RULES):
        self.rules = tuple(rules)

    def classify(self, text: str | None) -> ToothStatus | None:
        """
        Estado sugerido por el texto, o None si ninguna regla coincide.
        None significa "sin opinión": el llamador no debe cambiar el estado.
        """
        normalized = (text or "").lower().strip()
        if not normalized:
            return None
        for rule in self.rules:
            if rule.matches(normalized):
                return rule.status
        return None

    def linkage_family(self, text: str | None) -> ToothStatus | None:
        status = self.classify(text)
        return status if status in LINKABLE_STATUSES else None


DEFAULT_CLASSIFIER = TreatmentClassifier()


def classify(
    text: str | None,
    classifier: TreatmentClassifier = DEFAULT_CLASSIFIER,
) -> ToothStatus | None:
    return classifier.classify(text)


# ── Estado inicial a partir del diagnóstico ──────────
# Solo para diagnósticos nuevos sin estado explícito: aquí "sin coincidencia"
# sí significa sano, porque no hay un estado previo que preservar.

DIAGNOSIS_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(("missing", "extracted", "extraction done"), ToothStatus.MISSING),
    ClassificationRule(("pulpitis", "periapical", "endo"), ToothStatus.ATTENTION),
    ClassificationRule(("fracture", "crack"), ToothStatus.ATTENTION),
    ClassificationRule(("periodontal", "abscess"), ToothStatus.ATTENTION),
    ClassificationRule(("impacted",), ToothStatus.ATTENTION),
    ClassificationRule(("caries", "cavity", "decay", "demineral"), ToothStatus.CARIES),
)

DIAGNOSIS_CLASSIFIER = TreatmentClassifier(DIAGNOSIS_RULES)


def initial_status_from_diagnosis(
    diagnosis: str | None,
    plan: str | None = None,
) -> ToothStatus:
    """Infere el estado de un diagnóstico recién registrado."""
    text = f"{diagnosis or ''} {plan or ''}"
    return DIAGNOSIS_CLASSIFIER.classify(text) or ToothStatus.HEALTHY
