"""
Tests del vocabulario de estados y la paleta del odontograma.
"""

import pytest

from app.core.exceptions import UnknownToothStatusError
from app.models.tooth_diagnosis import (
    STATUS_COLORS,
    ToothStatus,
    canonical_color,
    is_treatment_complete,
    requires_attention,
)


def test_every_status_has_a_color():
    assert set(STATUS_COLORS) == set(ToothStatus)


@pytest.mark.parametrize(
    "status, color",
    [
        (ToothStatus.HEALTHY, "#22c55e"),
        (ToothStatus.CARIES, "#ef4444"),
        (ToothStatus.FILLED, "#3b82f6"),
        (ToothStatus.CROWN, "#eab308"),
        (ToothStatus.MISSING, "#6b7280"),
        (ToothStatus.ATTENTION, "#f97316"),
        (ToothStatus.EXTRACTION_NEEDED, "#f97316"),
        (ToothStatus.ROOT_CANAL, "#8b5cf6"),
        (ToothStatus.IMPLANT, "#06b6d4"),
    ],
)
def test_canonical_color(status, color):
    assert canonical_color(status) == color


def test_canonical_color_accepts_raw_value():
    assert canonical_color("root_canal") == "#8b5cf6"


def test_unknown_status_raises():
    with pytest.raises(UnknownToothStatusError) as exc_info:
        canonical_color("purple")
    assert exc_info.value.value == "purple"


def test_palette_is_read_only():
    with pytest.raises(TypeError):
        STATUS_COLORS[ToothStatus.HEALTHY] = "#000000"


def test_custom_palette():
    palette = {status: "#000000" for status in ToothStatus}
    assert canonical_color(ToothStatus.CARIES, palette) == "#000000"


def test_status_helpers():
    assert requires_attention(ToothStatus.CARIES)
    assert requires_attention(ToothStatus.EXTRACTION_NEEDED)
    assert not requires_attention(ToothStatus.FILLED)
    assert is_treatment_complete(ToothStatus.ROOT_CANAL)
    assert not is_treatment_complete(ToothStatus.MISSING)
