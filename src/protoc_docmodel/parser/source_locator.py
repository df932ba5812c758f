"""Recover line spans and comments for declarations from source code info.

protoc records every declaration's position as a path vector: pairs of
(field number in the parent descriptor, index in that repeated field). A
declaration's comments are found by matching its path against the file's
flat location list.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Iterable, Optional, Sequence, Tuple

from google.protobuf import descriptor_pb2

from protoc_docmodel.models import Source

EXCLUDE_MARKER = "@exclude"


class PathField(IntEnum):
    """Descriptor field numbers used as path vector steps."""

    FILE_MESSAGE = 4
    FILE_ENUM = 5
    FILE_SERVICE = 6
    FILE_EXTENSION = 7
    FILE_SYNTAX = 12
    MESSAGE_FIELD = 2
    MESSAGE_NESTED = 3
    MESSAGE_ENUM = 4
    MESSAGE_EXTENSION = 6
    MESSAGE_ONEOF = 8
    ENUM_VALUE = 2
    SERVICE_METHOD = 2


Path = Tuple[int, ...]


def extend_path(path: Sequence[int], kind: PathField, index: int) -> Path:
    """Return a new path with one ``[kind, index]`` step appended."""
    return tuple(path) + (int(kind), index)


def match_location(
    locations: Iterable[descriptor_pb2.SourceCodeInfo.Location],
    path: Sequence[int],
    file_name: str = "",
) -> Optional[Source]:
    """Return the Source of the first location whose path equals ``path``.

    Three-element spans cover a single line, so their end line is the start line.
    """
    target = list(path)
    for loc in locations:
        if list(loc.path) != target:
            continue
        span = list(loc.span)
        start = span[0] + 1 if span else 0
        end = span[2] + 1 if len(span) == 4 else start
        return Source(
            file=file_name,
            path=tuple(target),
            start=start,
            end=end,
            leading_comments=loc.leading_comments.strip(),
            trailing_comments=loc.trailing_comments.strip(),
        )
    return None


def locate(file_proto: descriptor_pb2.FileDescriptorProto, path: Sequence[int]) -> Source:
    """Source for ``path`` in ``file_proto``; empty apart from file and path when unmatched."""
    source = match_location(file_proto.source_code_info.location, path, file_proto.name)
    if source is None:
        return Source(file=file_proto.name, path=tuple(path))
    return source


def join_comments(*parts: str) -> str:
    return "\n\n".join(p for p in parts if p).strip()


def description(comment: str) -> str:
    """Clean up a raw comment block; excluded blocks become empty."""
    text = comment.lstrip("*/\n ")
    if text.startswith(EXCLUDE_MARKER):
        return ""
    return text


def describe(source: Source) -> str:
    """Description of a declaration from its leading and trailing comments."""
    return description(join_comments(source.leading_comments, source.trailing_comments))
