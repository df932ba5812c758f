"""Assemble parsed files into the cross-referenced document model."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from google.protobuf import descriptor_pb2

from protoc_docmodel.extensions import ExtensionRegistry, default_registry
from protoc_docmodel.models import File, Link, Message, Model, Package, PackageDesc
from protoc_docmodel.parser.declarations import (
    FileContext,
    parse_enum,
    parse_file_extension,
    parse_message,
    parse_service,
)
from protoc_docmodel.parser.options import DeclarationKind
from protoc_docmodel.parser.source_locator import PathField, description, extend_path
from protoc_docmodel.parser.tree_walker import walk_file
from protoc_docmodel.scalars import make_scalars

logger = logging.getLogger(__name__)

MAP_KEY_FIELD = "key"
MAP_VALUE_FIELD = "value"


def parse_file(
    file_proto: descriptor_pb2.FileDescriptorProto,
    registry: Optional[ExtensionRegistry] = default_registry,
) -> File:
    """Parse one file descriptor; top-level collections come back sorted."""
    ctx = FileContext(file_proto, registry)
    syntax_source = ctx.source((int(PathField.FILE_SYNTAX),))
    file = File(
        name=file_proto.name,
        package=file_proto.package,
        description=description(syntax_source.leading_comments),
        has_enums=len(file_proto.enum_type) > 0,
        has_extensions=len(file_proto.extension) > 0,
        has_messages=len(file_proto.message_type) > 0,
        has_services=len(file_proto.service) > 0,
        options=ctx.options(file_proto, DeclarationKind.FILE),
    )

    tree = walk_file(file_proto)
    file.enums = [parse_enum(ctx, entry) for entry in tree.enums]
    file.messages = [parse_message(ctx, entry) for entry in tree.messages]
    for i, ext in enumerate(file_proto.extension):
        path = extend_path((), PathField.FILE_EXTENSION, i)
        file.extensions.append(parse_file_extension(ctx, path, ext))
    for i, service in enumerate(file_proto.service):
        path = extend_path((), PathField.FILE_SERVICE, i)
        file.services.append(parse_service(ctx, path, service))

    file.enums.sort(key=lambda e: e.long_name)
    file.extensions.sort(key=lambda e: e.long_name)
    file.messages.sort(key=lambda m: m.long_name)
    file.services.sort(key=lambda s: s.long_name)
    return file


def _resolve_maps(message: Message, messages_by_name: Dict[str, Message]) -> None:
    for field in message.all_fields():
        if not field.is_map:
            continue
        entry = messages_by_name.get(field.full_type)
        if entry is None:
            logger.debug("Map entry %s of %s.%s not found", field.full_type, message.full_name, field.name)
            continue
        entry.internal = True
        for entry_field in entry.fields:
            if entry_field.name == MAP_KEY_FIELD:
                field.map_key_type = entry_field.full_type
            elif entry_field.name == MAP_VALUE_FIELD:
                field.map_value_type = entry_field.full_type


def build_model(
    file_protos: Iterable[descriptor_pb2.FileDescriptorProto],
    registry: Optional[ExtensionRegistry] = default_registry,
) -> Model:
    """Build the document model for a set of file descriptors.

    Files keep their input order. Packages are sorted by name and their
    aggregated services, messages and enums by fully-qualified name.
    """
    files: List[File] = []
    packages_by_name: Dict[str, Package] = {}
    messages_by_name: Dict[str, Message] = {}

    for file_proto in file_protos:
        file = parse_file(file_proto, registry)
        logger.debug(
            "Parsed %s: %d message(s), %d enum(s), %d service(s)",
            file.name, len(file.messages), len(file.enums), len(file.services),
        )

        pkg = packages_by_name.get(file.package)
        if pkg is None:
            pkg = Package(name=file.package)
            packages_by_name[file.package] = pkg
        desc = file.description.strip()
        if desc:
            pkg.descriptions.append(PackageDesc(file=file.name, description=desc))

        for message in file.messages:
            messages_by_name[message.full_name] = message

        pkg.services.extend(file.services)
        pkg.messages.extend(file.messages)
        pkg.enums.extend(file.enums)
        files.append(file)

    links: Dict[str, Link] = {}
    packages = sorted(packages_by_name.values(), key=lambda p: p.name)
    for pkg in packages:
        pkg.services.sort(key=lambda s: s.full_name)
        pkg.messages.sort(key=lambda m: m.full_name)
        pkg.enums.sort(key=lambda e: e.full_name)

        for message in pkg.messages:
            links[message.full_name] = Link(package=pkg.name, full_name=message.full_name)
            _resolve_maps(message, messages_by_name)
        for enum in pkg.enums:
            links[enum.full_name] = Link(package=pkg.name, full_name=enum.full_name)

    # Map entry types stay resolvable through the model but are not listed.
    for file in files:
        file.messages = [m for m in file.messages if not m.internal]
    for pkg in packages:
        pkg.messages = [m for m in pkg.messages if not m.internal]

    return Model(
        files=files,
        scalars=make_scalars(),
        packages=packages,
        links=links,
        messages_by_name=messages_by_name,
    )
