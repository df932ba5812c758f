"""Flatten a file's nested message and enum declarations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from google.protobuf import descriptor_pb2

from .source_locator import Path, PathField, extend_path


def qualify(scope: str, name: str) -> str:
    return f"{scope}.{name}" if scope else name


@dataclass
class MessageEntry:
    """A message found by the walker, with its path and long name."""

    path: Path
    long_name: str
    descriptor: descriptor_pb2.DescriptorProto


@dataclass
class EnumEntry:
    path: Path
    long_name: str
    descriptor: descriptor_pb2.EnumDescriptorProto


@dataclass
class FileTree:
    messages: List[MessageEntry] = field(default_factory=list)
    enums: List[EnumEntry] = field(default_factory=list)


def walk_file(file_proto: descriptor_pb2.FileDescriptorProto) -> FileTree:
    """Collect every message and enum of a file, nested ones included.

    Top-level enums come first. Messages are emitted pre-order: a message
    precedes its nested enums, which precede its nested messages.
    """
    tree = FileTree()
    for i, enum in enumerate(file_proto.enum_type):
        path = extend_path((), PathField.FILE_ENUM, i)
        tree.enums.append(EnumEntry(path, enum.name, enum))

    stack: List[Tuple[Path, str, descriptor_pb2.DescriptorProto]] = []
    for i, message in reversed(list(enumerate(file_proto.message_type))):
        stack.append((extend_path((), PathField.FILE_MESSAGE, i), "", message))

    while stack:
        path, scope, message = stack.pop()
        long_name = qualify(scope, message.name)
        tree.messages.append(MessageEntry(path, long_name, message))
        for j, enum in enumerate(message.enum_type):
            enum_path = extend_path(path, PathField.MESSAGE_ENUM, j)
            tree.enums.append(EnumEntry(enum_path, qualify(long_name, enum.name), enum))
        for j, nested in reversed(list(enumerate(message.nested_type))):
            stack.append((extend_path(path, PathField.MESSAGE_NESTED, j), long_name, nested))

    return tree
