"""Type name triples and field labels."""

from __future__ import annotations

from typing import NamedTuple

from google.protobuf import descriptor_pb2

FieldDescriptorProto = descriptor_pb2.FieldDescriptorProto

# protoc marks resolved message and enum references with a leading dot.
QUALIFIED_MARKER = "."


class TypeRef(NamedTuple):
    """Short, package-relative and fully-qualified name of a type."""

    name: str
    long_name: str
    full_name: str


def base_name(name: str) -> str:
    return name.split(".")[-1]


def trim_prefix(value: str, prefix: str) -> str:
    if prefix and value.startswith(prefix):
        return value[len(prefix):]
    return value


def resolve_reference(type_name: str, package: str) -> TypeRef:
    """Resolve a (possibly dot-prefixed) message or enum reference."""
    full = trim_prefix(type_name, QUALIFIED_MARKER)
    return TypeRef(base_name(full), trim_prefix(full, package + "."), full)


def scalar_name(field_type: int) -> str:
    return FieldDescriptorProto.Type.Name(field_type)[len("TYPE_"):].lower()


def resolve_type(field: FieldDescriptorProto, package: str) -> TypeRef:
    """Type triple for a field or extension declaration."""
    if field.type_name:
        return resolve_reference(field.type_name, package)
    name = scalar_name(field.type)
    return TypeRef(name, name, name)


def label_name(field: FieldDescriptorProto, proto3: bool) -> str:
    """Label as shown in documentation.

    proto3 fields only show a label when repeated or explicitly optional.
    """
    if proto3 and not field.proto3_optional and field.label != FieldDescriptorProto.LABEL_REPEATED:
        return ""
    return FieldDescriptorProto.Label.Name(field.label)[len("LABEL_"):].lower()
