"""Build model nodes from individual descriptor protos.

Each ``parse_*`` function turns exactly one descriptor into one model node.
Comments and line spans come from the file's source code info, looked up by
the declaration's path vector.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from google.protobuf import descriptor_pb2

from protoc_docmodel.extensions import ExtensionRegistry
from protoc_docmodel.models import (
    Enum,
    EnumValue,
    FileExtension,
    Message,
    MessageExtension,
    MessageField,
    OneOf,
    Service,
    ServiceMethod,
    Source,
)

from .options import DeclarationKind, extract_options
from .source_locator import PathField, describe, extend_path, join_comments, locate
from .tree_walker import EnumEntry, MessageEntry, qualify
from .types import label_name, resolve_reference, resolve_type

# Suffix protoc gives the synthesized entry message of a map field.
MAP_ENTRY_SUFFIX = "Entry"


@dataclass
class FileContext:
    """Per-file state shared by the declaration parsers."""

    file: descriptor_pb2.FileDescriptorProto
    registry: Optional[ExtensionRegistry] = None

    @property
    def package(self) -> str:
        return self.file.package

    @property
    def proto3(self) -> bool:
        return self.file.syntax == "proto3"

    def source(self, path: Sequence[int]) -> Source:
        return locate(self.file, path)

    def options(self, descriptor: Any, kind: DeclarationKind) -> Optional[Dict[str, Any]]:
        return extract_options(descriptor.options, kind, self.registry)


def parse_enum(ctx: FileContext, entry: EnumEntry) -> Enum:
    desc = entry.descriptor
    source = ctx.source(entry.path)
    enum = Enum(
        name=desc.name,
        long_name=entry.long_name,
        full_name=qualify(ctx.package, entry.long_name),
        description=describe(source),
        options=ctx.options(desc, DeclarationKind.ENUM),
        source=source,
    )
    for i, value in enumerate(desc.value):
        value_source = ctx.source(extend_path(entry.path, PathField.ENUM_VALUE, i))
        enum.values.append(
            EnumValue(
                name=value.name,
                number=str(value.number),
                description=describe(value_source),
                options=ctx.options(value, DeclarationKind.ENUM_VALUE),
            )
        )
    return enum


def is_map_field(field: MessageField) -> bool:
    """Heuristic map detection from the entry type naming protoc uses.

    A user-defined nested message ending in ``Entry`` used as a repeated
    field type is also reported as a map.
    """
    return (
        field.label == "repeated"
        and "." in field.long_type
        and field.type.endswith(MAP_ENTRY_SUFFIX)
        and field.long_type.endswith(MAP_ENTRY_SUFFIX)
        and field.full_type.endswith(MAP_ENTRY_SUFFIX)
    )


def is_union_member(desc: descriptor_pb2.FieldDescriptorProto) -> bool:
    # proto3 optional fields live in a synthetic oneof but are not unions.
    return desc.HasField("oneof_index") and not desc.proto3_optional


def parse_field(
    ctx: FileContext,
    path: Sequence[int],
    desc: descriptor_pb2.FieldDescriptorProto,
    oneof_decls: Sequence[descriptor_pb2.OneofDescriptorProto] = (),
) -> MessageField:
    ref = resolve_type(desc, ctx.package)
    field = MessageField(
        index=desc.number,
        name=desc.name,
        description=describe(ctx.source(path)),
        label=label_name(desc, ctx.proto3),
        type=ref.name,
        long_type=ref.long_name,
        full_type=ref.full_name,
        default_value=desc.default_value,
        options=ctx.options(desc, DeclarationKind.FIELD),
        is_oneof=is_union_member(desc),
    )
    if field.is_oneof and desc.oneof_index < len(oneof_decls):
        field.oneof_decl = oneof_decls[desc.oneof_index].name
    field.is_map = is_map_field(field)
    return field


def parse_message(ctx: FileContext, entry: MessageEntry) -> Message:
    desc = entry.descriptor
    source = ctx.source(entry.path)
    msg = Message(
        name=desc.name,
        long_name=entry.long_name,
        full_name=qualify(ctx.package, entry.long_name),
        description=describe(source),
        has_extensions=len(desc.extension) > 0,
        has_fields=len(desc.field) > 0,
        options=ctx.options(desc, DeclarationKind.MESSAGE),
        source=source,
    )

    for i, ext in enumerate(desc.extension):
        ext_path = extend_path(entry.path, PathField.MESSAGE_EXTENSION, i)
        msg.extensions.append(parse_message_extension(ctx, ext_path, ext, entry))

    # Keyed by oneof index; dict order is the first-seen order of each union.
    unions: Dict[int, List[MessageField]] = {}
    for i, field_desc in enumerate(desc.field):
        field_path = extend_path(entry.path, PathField.MESSAGE_FIELD, i)
        field = parse_field(ctx, field_path, field_desc, desc.oneof_decl)
        if field.is_oneof:
            unions.setdefault(field_desc.oneof_index, []).append(field)
            continue
        msg.fields.append(field)

    for index, members in unions.items():
        oneof_source = ctx.source(extend_path(entry.path, PathField.MESSAGE_ONEOF, index))
        msg.oneofs.append(
            OneOf(
                name=members[0].oneof_decl,
                description=join_comments(
                    oneof_source.leading_comments, oneof_source.trailing_comments
                ),
                fields=members,
                source=oneof_source,
            )
        )
    msg.has_oneofs = len(msg.oneofs) > 0
    return msg


def _fill_extension(
    ctx: FileContext,
    ext: FileExtension,
    path: Sequence[int],
    desc: descriptor_pb2.FieldDescriptorProto,
) -> None:
    ref = resolve_type(desc, ctx.package)
    extendee = resolve_reference(desc.extendee, ctx.package)
    ext.description = describe(ctx.source(path))
    ext.label = label_name(desc, ctx.proto3)
    ext.type, ext.long_type, ext.full_type = ref
    ext.number = desc.number
    ext.default_value = desc.default_value
    ext.containing_type = extendee.name
    ext.containing_long_type = extendee.long_name
    ext.containing_full_type = extendee.full_name
    ext.options = ctx.options(desc, DeclarationKind.EXTENSION)


def parse_file_extension(
    ctx: FileContext,
    path: Sequence[int],
    desc: descriptor_pb2.FieldDescriptorProto,
) -> FileExtension:
    ext = FileExtension(
        name=desc.name,
        long_name=desc.name,
        full_name=qualify(ctx.package, desc.name),
    )
    _fill_extension(ctx, ext, path, desc)
    return ext


def parse_message_extension(
    ctx: FileContext,
    path: Sequence[int],
    desc: descriptor_pb2.FieldDescriptorProto,
    scope: MessageEntry,
) -> MessageExtension:
    long_name = qualify(scope.long_name, desc.name)
    ext = MessageExtension(
        name=desc.name,
        long_name=long_name,
        full_name=qualify(ctx.package, long_name),
        scope_type=scope.descriptor.name,
        scope_long_type=scope.long_name,
        scope_full_type=qualify(ctx.package, scope.long_name),
    )
    _fill_extension(ctx, ext, path, desc)
    return ext


def parse_method(
    ctx: FileContext,
    path: Sequence[int],
    desc: descriptor_pb2.MethodDescriptorProto,
) -> ServiceMethod:
    request = resolve_reference(desc.input_type, ctx.package)
    response = resolve_reference(desc.output_type, ctx.package)
    return ServiceMethod(
        name=desc.name,
        description=describe(ctx.source(path)),
        request_type=request.name,
        request_long_type=request.long_name,
        request_full_type=request.full_name,
        request_streaming=desc.client_streaming,
        response_type=response.name,
        response_long_type=response.long_name,
        response_full_type=response.full_name,
        response_streaming=desc.server_streaming,
        options=ctx.options(desc, DeclarationKind.METHOD),
    )


def parse_service(
    ctx: FileContext,
    path: Sequence[int],
    desc: descriptor_pb2.ServiceDescriptorProto,
) -> Service:
    source = ctx.source(path)
    service = Service(
        name=desc.name,
        long_name=desc.name,
        full_name=qualify(ctx.package, desc.name),
        description=describe(source),
        options=ctx.options(desc, DeclarationKind.SERVICE),
        source=source,
    )
    for i, method in enumerate(desc.method):
        method_path = extend_path(path, PathField.SERVICE_METHOD, i)
        service.methods.append(parse_method(ctx, method_path, method))
    return service
