"""Protobuf scalar value kinds exposed on the model for reference tables."""

from __future__ import annotations

from typing import List, Tuple

from protoc_docmodel.models import ScalarValue

_VARINT_NOTE = (
    "Uses variable-length encoding. Inefficient for encoding negative numbers "
    "- if your field is likely to have negative values, use {0} instead."
)

SCALAR_TYPES: Tuple[Tuple[str, str], ...] = (
    ("double", ""),
    ("float", ""),
    ("int32", _VARINT_NOTE.format("sint32")),
    ("int64", _VARINT_NOTE.format("sint64")),
    ("uint32", "Uses variable-length encoding."),
    ("uint64", "Uses variable-length encoding."),
    ("sint32", "Uses variable-length encoding. Signed int value. These more efficiently "
               "encode negative numbers than regular int32s."),
    ("sint64", "Uses variable-length encoding. Signed int value. These more efficiently "
               "encode negative numbers than regular int64s."),
    ("fixed32", "Always four bytes. More efficient than uint32 if values are often "
                "greater than 2^28."),
    ("fixed64", "Always eight bytes. More efficient than uint64 if values are often "
                "greater than 2^56."),
    ("sfixed32", "Always four bytes."),
    ("sfixed64", "Always eight bytes."),
    ("bool", ""),
    ("string", "A string must always contain UTF-8 encoded or 7-bit ASCII text."),
    ("bytes", "May contain any arbitrary sequence of bytes."),
)


def make_scalars() -> List[ScalarValue]:
    """Fresh list of scalar descriptors, one per protobuf scalar kind."""
    return [ScalarValue(proto_type=name, notes=notes) for name, notes in SCALAR_TYPES]
