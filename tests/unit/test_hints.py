"""
Unit tests for eww_notify.domain.hints.

These tests validate:
- conversion of plain transport values into typed hint variants
- tolerant conversion of a whole hints mapping (bad entries dropped)
- typed accessors returning None for absent keys or wrong variants
- JSON conversion (image pixel data is never serialized)
"""

from __future__ import annotations

import pytest

from eww_notify.domain.hints import (
    BoolValue,
    ByteValue,
    ImageValue,
    NumberValue,
    StringValue,
    get_bool,
    get_byte,
    get_image,
    get_number,
    get_string,
    hint_from_python,
    hint_to_json,
    hints_from_wire,
)

_IMAGE_STRUCT = (2, 1, 8, True, 8, 4, b"\x00" * 8)


def test_hint_from_python_maps_each_variant() -> None:
    """
    bool must be detected before int, single bytes become ByteValue and
    7-field structures become ImageValue.
    """
    assert hint_from_python(True) == BoolValue(True)
    assert hint_from_python(3) == NumberValue(3)
    assert hint_from_python(1.5) == NumberValue(1.5)
    assert hint_from_python("x") == StringValue("x")
    assert hint_from_python(b"\x02") == ByteValue(2)

    img = hint_from_python(_IMAGE_STRUCT)
    assert isinstance(img, ImageValue)
    assert (img.width, img.height, img.channels, img.has_alpha) == (2, 1, 4, True)


def test_hint_from_python_passes_through_variants() -> None:
    v = StringValue("already typed")
    assert hint_from_python(v) is v


def test_hint_from_python_rejects_unsupported_types() -> None:
    with pytest.raises(TypeError):
        hint_from_python({"nested": "dict"})
    with pytest.raises(TypeError):
        hint_from_python(b"too long")


def test_byte_value_range_checked() -> None:
    with pytest.raises(ValueError):
        ByteValue(256)


def test_image_from_struct_requires_seven_fields() -> None:
    with pytest.raises(ValueError):
        ImageValue.from_struct((1, 2, 3))


def test_hints_from_wire_drops_unsupported_entries() -> None:
    """
    One bad hint must not fail the whole notification.
    """
    hints = hints_from_wire({"urgency": b"\x02", "category": "email", "weird": object()})
    assert hints == {"urgency": ByteValue(2), "category": StringValue("email")}


def test_hints_from_wire_accepts_none() -> None:
    assert hints_from_wire(None) == {}


def test_accessors_return_none_for_absent_or_wrong_type() -> None:
    hints = {
        "s": StringValue("text"),
        "b": ByteValue(1),
        "t": BoolValue(False),
        "n": NumberValue(4),
        "i": ImageValue.from_struct(_IMAGE_STRUCT),
    }

    assert get_string(hints, "s") == "text"
    assert get_byte(hints, "b") == 1
    assert get_bool(hints, "t") is False
    assert get_number(hints, "n") == 4
    assert get_image(hints, "i") is hints["i"]

    assert get_string(hints, "b") is None
    assert get_byte(hints, "n") is None
    assert get_bool(hints, "s") is None
    assert get_number(hints, "missing") is None
    assert get_image(hints, "s") is None


def test_hint_to_json_omits_image_data() -> None:
    img = ImageValue.from_struct(_IMAGE_STRUCT)
    assert hint_to_json(img) == {"width": 2, "height": 1, "has_alpha": True, "channels": 4}
    assert hint_to_json(StringValue("a")) == "a"
    assert hint_to_json(ByteValue(2)) == 2
