from __future__ import annotations


class DocModelError(Exception):
    """Base class for errors raised by protoc_docmodel."""


class DescriptorLoadError(DocModelError):
    """Raised when a descriptor set cannot be compiled, read or selected."""
