"""Render-ready document model built from protobuf file descriptors.

Nodes are plain dataclasses filled in by the assembler. Once
``build_model`` returns, callers must treat the whole tree as read-only.
Every node has an ``option(name)`` lookup and a ``to_dict()`` projection
using the stable serialization keys consumed by templates.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

Options = Optional[Dict[str, Any]]


def _option_names(options_list: List[Options]) -> Optional[List[str]]:
    names = set()
    for options in options_list:
        if options:
            names.update(options)
    if not names:
        return None
    return sorted(names)


class _HasOptions:
    options: Options

    def option(self, name: str) -> Any:
        """Return the named option, or None when it is not set."""
        if not self.options:
            return None
        return self.options.get(name)


def _with_options(data: Dict[str, Any], options: Options) -> Dict[str, Any]:
    if options:
        data["options"] = options
    return data


@dataclass
class Link:
    """Cross-reference target for a type mention."""

    package: str = ""
    full_name: str = ""
    is_external: bool = False
    external_href: str = ""

    @classmethod
    def external(cls, href: str) -> Link:
        return cls(is_external=True, external_href=href)


@dataclass
class Source:
    file: str = ""
    path: Tuple[int, ...] = ()
    start: int = 0
    end: int = 0
    leading_comments: str = ""
    trailing_comments: str = ""


@dataclass
class ScalarValue:
    proto_type: str
    notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"protoType": self.proto_type, "notes": self.notes}


@dataclass
class EnumValue(_HasOptions):
    name: str
    number: str
    description: str = ""
    options: Options = None

    def to_dict(self) -> Dict[str, Any]:
        return _with_options(
            {"name": self.name, "number": self.number, "description": self.description},
            self.options,
        )


@dataclass
class Enum(_HasOptions):
    """An enumeration, either top level or nested inside a message."""

    name: str
    long_name: str
    full_name: str
    description: str = ""
    values: List[EnumValue] = field(default_factory=list)
    options: Options = None
    source: Source = field(default_factory=Source)

    def value_options(self) -> Optional[List[str]]:
        """Sorted names of every option set on at least one value."""
        return _option_names([v.options for v in self.values])

    def values_with_option(self, name: str) -> Optional[List[EnumValue]]:
        values = [v for v in self.values if v.options and name in v.options]
        return values or None

    def to_dict(self) -> Dict[str, Any]:
        return _with_options(
            {
                "name": self.name,
                "longName": self.long_name,
                "fullName": self.full_name,
                "description": self.description,
                "values": [v.to_dict() for v in self.values],
            },
            self.options,
        )


@dataclass
class MessageField(_HasOptions):
    """A single field of a message.

    For proto3 files ``default_value`` is always empty and ``label`` is empty
    unless the field is repeated or declared ``optional``. ``map_key_type``
    and ``map_value_type`` are only filled in when ``is_map`` is set and the
    map entry message could be resolved.
    """

    index: int
    name: str
    description: str = ""
    label: str = ""
    type: str = ""
    long_type: str = ""
    full_type: str = ""
    is_map: bool = False
    map_key_type: str = ""
    map_value_type: str = ""
    is_oneof: bool = False
    oneof_decl: str = ""
    default_value: str = ""
    options: Options = None

    def to_dict(self) -> Dict[str, Any]:
        return _with_options(
            {
                "name": self.name,
                "description": self.description,
                "label": self.label,
                "type": self.type,
                "longType": self.long_type,
                "fullType": self.full_type,
                "ismap": self.is_map,
                "mapKeyType": self.map_key_type,
                "mapValueType": self.map_value_type,
                "isoneof": self.is_oneof,
                "oneofdecl": self.oneof_decl,
                "defaultValue": self.default_value,
            },
            self.options,
        )


@dataclass
class OneOf:
    name: str
    description: str = ""
    fields: List[MessageField] = field(default_factory=list)
    source: Source = field(default_factory=Source)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "fields": [f.to_dict() for f in self.fields],
        }


@dataclass
class FileExtension(_HasOptions):
    """A proto2 extension declared at file scope."""

    name: str
    long_name: str
    full_name: str
    description: str = ""
    label: str = ""
    type: str = ""
    long_type: str = ""
    full_type: str = ""
    number: int = 0
    default_value: str = ""
    containing_type: str = ""
    containing_long_type: str = ""
    containing_full_type: str = ""
    options: Options = None

    def to_dict(self) -> Dict[str, Any]:
        return _with_options(
            {
                "name": self.name,
                "longName": self.long_name,
                "fullName": self.full_name,
                "description": self.description,
                "label": self.label,
                "type": self.type,
                "longType": self.long_type,
                "fullType": self.full_type,
                "number": self.number,
                "defaultValue": self.default_value,
                "containingType": self.containing_type,
                "containingLongType": self.containing_long_type,
                "containingFullType": self.containing_full_type,
            },
            self.options,
        )


@dataclass
class MessageExtension(FileExtension):
    """A proto2 extension declared inside a message."""

    scope_type: str = ""
    scope_long_type: str = ""
    scope_full_type: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["scopeType"] = self.scope_type
        data["scopeLongType"] = self.scope_long_type
        data["scopeFullType"] = self.scope_full_type
        return data


@dataclass
class Message(_HasOptions):
    """A message declaration.

    ``fields`` holds the plain fields only; union members live in their
    ``OneOf``. ``internal`` marks compiler-synthesized map entry types.
    """

    name: str
    long_name: str
    full_name: str
    description: str = ""
    has_extensions: bool = False
    has_fields: bool = False
    has_oneofs: bool = False
    extensions: List[MessageExtension] = field(default_factory=list)
    fields: List[MessageField] = field(default_factory=list)
    oneofs: List[OneOf] = field(default_factory=list)
    options: Options = None
    source: Source = field(default_factory=Source)
    internal: bool = False

    def all_fields(self) -> List[MessageField]:
        """Plain fields followed by every oneof member."""
        fields = list(self.fields)
        for oneof in self.oneofs:
            fields.extend(oneof.fields)
        return fields

    def field_options(self) -> Optional[List[str]]:
        return _option_names([f.options for f in self.fields])

    def fields_with_option(self, name: str) -> Optional[List[MessageField]]:
        fields = [f for f in self.fields if f.options and name in f.options]
        return fields or None

    def to_dict(self) -> Dict[str, Any]:
        return _with_options(
            {
                "name": self.name,
                "longName": self.long_name,
                "fullName": self.full_name,
                "description": self.description,
                "hasExtensions": self.has_extensions,
                "hasFields": self.has_fields,
                "hasOneofs": self.has_oneofs,
                "extensions": [e.to_dict() for e in self.extensions],
                "fields": [f.to_dict() for f in self.fields],
                "oneofs": [o.to_dict() for o in self.oneofs],
            },
            self.options,
        )


@dataclass
class ServiceMethod(_HasOptions):
    name: str
    description: str = ""
    request_type: str = ""
    request_long_type: str = ""
    request_full_type: str = ""
    request_streaming: bool = False
    response_type: str = ""
    response_long_type: str = ""
    response_full_type: str = ""
    response_streaming: bool = False
    options: Options = None

    def to_dict(self) -> Dict[str, Any]:
        return _with_options(
            {
                "name": self.name,
                "description": self.description,
                "requestType": self.request_type,
                "requestLongType": self.request_long_type,
                "requestFullType": self.request_full_type,
                "requestStreaming": self.request_streaming,
                "responseType": self.response_type,
                "responseLongType": self.response_long_type,
                "responseFullType": self.response_full_type,
                "responseStreaming": self.response_streaming,
            },
            self.options,
        )


@dataclass
class Service(_HasOptions):
    name: str
    long_name: str
    full_name: str
    description: str = ""
    methods: List[ServiceMethod] = field(default_factory=list)
    options: Options = None
    source: Source = field(default_factory=Source)

    def method_options(self) -> Optional[List[str]]:
        return _option_names([m.options for m in self.methods])

    def methods_with_option(self, name: str) -> Optional[List[ServiceMethod]]:
        methods = [m for m in self.methods if m.options and name in m.options]
        return methods or None

    def to_dict(self) -> Dict[str, Any]:
        return _with_options(
            {
                "name": self.name,
                "longName": self.long_name,
                "fullName": self.full_name,
                "description": self.description,
                "methods": [m.to_dict() for m in self.methods],
            },
            self.options,
        )


@dataclass
class File(_HasOptions):
    """All parsed declarations of one proto file.

    Top-level enums, extensions, messages and services are sorted by long
    name. Values, fields and methods keep their declaration order.
    """

    name: str
    package: str = ""
    description: str = ""
    has_enums: bool = False
    has_extensions: bool = False
    has_messages: bool = False
    has_services: bool = False
    enums: List[Enum] = field(default_factory=list)
    extensions: List[FileExtension] = field(default_factory=list)
    messages: List[Message] = field(default_factory=list)
    services: List[Service] = field(default_factory=list)
    options: Options = None

    def to_dict(self) -> Dict[str, Any]:
        return _with_options(
            {
                "name": self.name,
                "description": self.description,
                "package": self.package,
                "hasEnums": self.has_enums,
                "hasExtensions": self.has_extensions,
                "hasMessages": self.has_messages,
                "hasServices": self.has_services,
                "enums": [e.to_dict() for e in self.enums],
                "extensions": [e.to_dict() for e in self.extensions],
                "messages": [m.to_dict() for m in self.messages],
                "services": [s.to_dict() for s in self.services],
            },
            self.options,
        )


@dataclass
class PackageDesc:
    file: str
    description: str


@dataclass
class Package:
    """Declarations of every file sharing one package name."""

    name: str
    services: List[Service] = field(default_factory=list)
    messages: List[Message] = field(default_factory=list)
    enums: List[Enum] = field(default_factory=list)
    descriptions: List[PackageDesc] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "services": [s.full_name for s in self.services],
            "messages": [m.full_name for m in self.messages],
            "enums": [e.full_name for e in self.enums],
            "descriptions": [
                {"file": d.file, "description": d.description} for d in self.descriptions
            ],
        }


class Model:
    """Root of the document model.

    The cross-reference table maps fully-qualified message and enum names to
    their ``Link`` and is exposed read-only.
    """

    def __init__(
        self,
        files: List[File],
        scalars: List[ScalarValue],
        packages: List[Package],
        links: Dict[str, Link],
        messages_by_name: Dict[str, Message],
    ) -> None:
        self.files = files
        self.scalars = scalars
        self.packages = packages
        self._links = MappingProxyType(dict(links))
        self._messages_by_name = MappingProxyType(dict(messages_by_name))

    @property
    def links(self) -> Mapping[str, Link]:
        return self._links

    def link(self, full_name: str) -> Optional[Link]:
        return self._links.get(full_name.lstrip("."))

    def message(self, full_name: str) -> Optional[Message]:
        """Look up any message, map entry types included."""
        return self._messages_by_name.get(full_name.lstrip("."))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files": [f.to_dict() for f in self.files],
            "scalarValueTypes": [s.to_dict() for s in self.scalars],
            "packages": [p.to_dict() for p in self.packages],
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
