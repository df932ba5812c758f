"""Obtain file descriptors to feed into ``build_model``.

Descriptors come either from running ``protoc`` directly, from a serialized
descriptor set on disk, or from a protoc plugin ``CodeGeneratorRequest``.
"""

from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from typing import Iterable, List, Optional, Sequence

from google.protobuf import descriptor_pb2
from google.protobuf.compiler import plugin_pb2
from google.protobuf.message import DecodeError

from protoc_docmodel.errors import DescriptorLoadError

logger = logging.getLogger(__name__)


def _include_args(proto_paths: Sequence[str], include_dirs: Optional[Iterable[str]]) -> List[str]:
    includes: List[str] = list(include_dirs or [])
    if not includes:
        includes.extend(os.path.dirname(os.path.abspath(p)) for p in proto_paths)

    # de-dup while preserving order
    seen = set()
    args: List[str] = []
    for inc in includes:
        if inc and inc not in seen:
            seen.add(inc)
            args.extend(["-I", inc])
    return args


def compile_descriptor_set(
    proto_paths: Sequence[str],
    include_dirs: Optional[Iterable[str]] = None,
    protoc: str = "protoc",
) -> descriptor_pb2.FileDescriptorSet:
    """Run protoc on ``proto_paths`` and return the descriptor set with source info.

    Without ``include_dirs`` the directory of each proto file is used as an
    import root.
    """
    if not proto_paths:
        raise DescriptorLoadError("No .proto files given")

    with tempfile.TemporaryDirectory() as td:
        desc_path = os.path.join(td, "descriptor_set.pb")
        cmd = [
            protoc,
            "--include_imports",
            "--include_source_info",
            f"--descriptor_set_out={desc_path}",
        ] + _include_args(proto_paths, include_dirs) + list(proto_paths)
        logger.debug("Running %s", " ".join(cmd))
        try:
            subprocess.run(cmd, check=True, capture_output=True)
        except FileNotFoundError as e:
            raise DescriptorLoadError(
                f"'{protoc}' not found. Please install the Protocol Buffers compiler "
                "and ensure it is in PATH."
            ) from e
        except subprocess.CalledProcessError as e:
            raise DescriptorLoadError(
                f"protoc failed: {e.stderr.decode('utf-8', errors='ignore')}"
            ) from e

        return load_descriptor_set(desc_path)


def load_descriptor_set(path: str) -> descriptor_pb2.FileDescriptorSet:
    """Read a serialized FileDescriptorSet, e.g. from ``protoc --descriptor_set_out``."""
    fds = descriptor_pb2.FileDescriptorSet()
    try:
        with open(path, "rb") as f:
            fds.ParseFromString(f.read())
    except OSError as e:
        raise DescriptorLoadError(f"Cannot read descriptor set {path}: {e}") from e
    except DecodeError as e:
        raise DescriptorLoadError(f"Malformed descriptor set {path}: {e}") from e
    return fds


def select_files(
    descriptor_set: descriptor_pb2.FileDescriptorSet,
    names: Iterable[str],
) -> List[descriptor_pb2.FileDescriptorProto]:
    """Pick the named files, in the order given, out of a descriptor set.

    A name matches a file whose descriptor name equals it or ends with it
    after a path separator, so ``helloworld.proto`` finds
    ``simple/helloworld.proto``.
    """
    selected: List[descriptor_pb2.FileDescriptorProto] = []
    for name in names:
        target = None
        for f in descriptor_set.file:
            if f.name == name or f.name.endswith("/" + name):
                target = f
                break
        if target is None:
            found = ", ".join(f.name for f in descriptor_set.file)
            raise DescriptorLoadError(f"Could not locate '{name}' in descriptor set. Found: {found}")
        selected.append(target)
    return selected


def files_from_request(
    request: plugin_pb2.CodeGeneratorRequest,
) -> List[descriptor_pb2.FileDescriptorProto]:
    """Files protoc asked a plugin to generate for, in request order."""
    by_name = {f.name: f for f in request.proto_file}
    return [by_name[name] for name in request.file_to_generate if name in by_name]
