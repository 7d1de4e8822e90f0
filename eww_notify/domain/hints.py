"""
Notification hint values.

Producers attach a free-form ``hints`` mapping to each notification. On the
wire every value is a dynamically typed variant; inside the daemon it is held
as one of a small set of tagged, immutable value types:

- :class:`StringValue`
- :class:`ByteValue`
- :class:`BoolValue`
- :class:`NumberValue`
- :class:`ImageValue`

Accessor functions (``get_string``, ``get_byte``, ...) return ``None`` when a
key is absent or holds a different variant, so callers never cast blindly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from loguru import logger


@dataclass(frozen=True)
class StringValue:
    value: str


@dataclass(frozen=True)
class ByteValue:
    value: int

    def __post_init__(self) -> None:
        if not 0 <= self.value <= 0xFF:
            raise ValueError(f"byte hint out of range: {self.value}")


@dataclass(frozen=True)
class BoolValue:
    value: bool


@dataclass(frozen=True)
class NumberValue:
    value: Union[int, float]


@dataclass(frozen=True)
class ImageValue:
    """
    Raw image payload as carried by the ``image-data`` hint.

    Parameters
    ----------
    width, height
        Image dimensions in pixels.
    rowstride
        Number of bytes per image row.
    has_alpha
        Whether the pixel data carries an alpha channel.
    bits_per_sample
        Bits per colour sample (normally 8).
    channels
        Samples per pixel (3 for RGB, 4 for RGBA).
    data
        Raw pixel bytes.
    """

    width: int
    height: int
    rowstride: int
    has_alpha: bool
    bits_per_sample: int
    channels: int
    data: bytes

    @classmethod
    def from_struct(cls, raw: Any) -> "ImageValue":
        """
        Build an image value from the 7-field ``(iiibiiay)`` structure.

        Raises
        ------
        ValueError
            If ``raw`` does not have exactly seven fields.
        """
        fields = tuple(raw)
        if len(fields) != 7:
            raise ValueError(f"image hint needs 7 fields, got {len(fields)}")
        width, height, rowstride, has_alpha, bps, channels, data = fields
        return cls(
            width=int(width),
            height=int(height),
            rowstride=int(rowstride),
            has_alpha=bool(has_alpha),
            bits_per_sample=int(bps),
            channels=int(channels),
            data=bytes(data),
        )


HintValue = Union[StringValue, ByteValue, BoolValue, NumberValue, ImageValue]
Hints = Dict[str, HintValue]

_HINT_TYPES = (StringValue, ByteValue, BoolValue, NumberValue, ImageValue)


def hint_from_python(value: Any) -> HintValue:
    """
    Wrap a plain Python value into the matching hint variant.

    Mapping rules
    -------------
    - already a hint variant -> returned unchanged
    - ``bool`` -> BoolValue (checked before ``int``)
    - ``int`` / ``float`` -> NumberValue
    - ``str`` -> StringValue
    - ``bytes`` of length 1 -> ByteValue
    - 7-element tuple/list -> ImageValue

    Raises
    ------
    TypeError
        If the value has no hint representation.
    """
    if isinstance(value, _HINT_TYPES):
        return value
    if isinstance(value, bool):
        return BoolValue(value)
    if isinstance(value, (int, float)):
        return NumberValue(value)
    if isinstance(value, str):
        return StringValue(value)
    if isinstance(value, (bytes, bytearray)) and len(value) == 1:
        return ByteValue(value[0])
    if isinstance(value, (tuple, list)) and len(value) == 7:
        try:
            return ImageValue.from_struct(value)
        except (TypeError, ValueError) as e:
            raise TypeError(f"unsupported image hint: {e}") from e
    raise TypeError(f"unsupported hint type: {type(value).__name__}")


def hints_from_wire(raw: Optional[Mapping[str, Any]]) -> Hints:
    """
    Convert a raw transport hints mapping into typed hint values.

    Entries with no hint representation are logged and dropped rather than
    failing the whole request.
    """
    out: Hints = {}
    for key, value in (raw or {}).items():
        try:
            out[str(key)] = hint_from_python(value)
        except TypeError as e:
            logger.warning("Dropping hint {!r}: {}", key, e)
    return out


def get_string(hints: Mapping[str, HintValue], key: str) -> Optional[str]:
    v = hints.get(key)
    return v.value if isinstance(v, StringValue) else None


def get_byte(hints: Mapping[str, HintValue], key: str) -> Optional[int]:
    v = hints.get(key)
    return v.value if isinstance(v, ByteValue) else None


def get_bool(hints: Mapping[str, HintValue], key: str) -> Optional[bool]:
    v = hints.get(key)
    return v.value if isinstance(v, BoolValue) else None


def get_number(hints: Mapping[str, HintValue], key: str) -> Optional[Union[int, float]]:
    v = hints.get(key)
    return v.value if isinstance(v, NumberValue) else None


def get_image(hints: Mapping[str, HintValue], key: str) -> Optional[ImageValue]:
    v = hints.get(key)
    return v if isinstance(v, ImageValue) else None


def hint_to_json(value: HintValue) -> Any:
    """
    Convert a hint value into a JSON-serializable object.

    Images are reduced to their metadata; pixel data is never serialized.
    """
    if isinstance(value, ImageValue):
        return {
            "width": value.width,
            "height": value.height,
            "has_alpha": value.has_alpha,
            "channels": value.channels,
        }
    return value.value
