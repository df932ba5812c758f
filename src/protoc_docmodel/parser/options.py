"""Merge option maps from built-in flags, raw options and extension transforms."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol

from google.protobuf import descriptor_pb2, json_format

from protoc_docmodel.extensions import ExtensionRegistry

logger = logging.getLogger(__name__)


class DeclarationKind(Enum):
    FILE = "file"
    MESSAGE = "message"
    FIELD = "field"
    ENUM = "enum"
    ENUM_VALUE = "enum_value"
    SERVICE = "service"
    METHOD = "method"
    EXTENSION = "extension"


class HasDeprecatedFlag(Protocol):
    """Any ``*Options`` message; all of them carry ``deprecated``."""

    deprecated: bool


def merge_options(*sources: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Merge option maps; the first source to define a key wins.

    Returns None rather than an empty dict when nothing is set.
    """
    out: Dict[str, Any] = {}
    for source in sources:
        if not source:
            continue
        for key, value in source.items():
            if key not in out:
                out[key] = value
    return out or None


def _method_options(opts: descriptor_pb2.MethodOptions) -> Dict[str, Any]:
    if not opts.HasField("idempotency_level"):
        return {}
    level = descriptor_pb2.MethodOptions.IdempotencyLevel.Name(opts.idempotency_level)
    return {"idempotency_level": level}


_DERIVED_OPTIONS: Dict[DeclarationKind, Callable[[Any], Dict[str, Any]]] = {
    DeclarationKind.METHOD: _method_options,
}


def builtin_options(opts: HasDeprecatedFlag, kind: DeclarationKind) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if opts.deprecated:
        out["deprecated"] = True
    derive = _DERIVED_OPTIONS.get(kind)
    if derive is not None:
        out.update(derive(opts))
    return out


def raw_options(opts: Any) -> Dict[str, Any]:
    """JSON projection of ``opts`` with extension keys stripped of brackets."""
    try:
        projected = json_format.MessageToDict(opts)
    except json_format.Error as e:
        logger.debug("Ignoring undecodable options on %s: %s", opts.DESCRIPTOR.full_name, e)
        return {}
    return {key.strip("[]"): value for key, value in projected.items()}


def extract_options(
    opts: HasDeprecatedFlag,
    kind: DeclarationKind,
    registry: Optional[ExtensionRegistry] = None,
) -> Optional[Dict[str, Any]]:
    """Options of one declaration: built-ins, then raw options, then plugins."""
    plugin = registry.transform(opts) if registry is not None else {}
    return merge_options(builtin_options(opts, kind), raw_options(opts), plugin)
