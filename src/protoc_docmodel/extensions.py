"""Registry of transforms for well-known custom option extensions.

A transform turns the value of a set extension field (for example the
``google.api.http`` rule on a method) into plain data that templates can
walk without knowing the extension's message type.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterator, List

Transform = Callable[[Any], Any]

HTTP_RULE_EXTENSION = "google.api.http"


class ExtensionRegistry:
    def __init__(self) -> None:
        self._transforms: Dict[str, Transform] = {}

    def register(self, name: str, transform: Transform) -> None:
        self._transforms[name] = transform

    def __contains__(self, name: str) -> bool:
        return name in self._transforms

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._transforms))

    def copy(self) -> ExtensionRegistry:
        registry = ExtensionRegistry()
        registry._transforms.update(self._transforms)
        return registry

    def transform(self, options: Any) -> Dict[str, Any]:
        """Transformed values of every registered extension set on ``options``."""
        out: Dict[str, Any] = {}
        if options is None:
            return out
        for fd, value in options.ListFields():
            if not fd.is_extension:
                continue
            transform = self._transforms.get(fd.full_name)
            if transform is None:
                continue
            out[fd.full_name] = transform(value)
        return out


def _http_rule(rule: Any) -> Dict[str, str]:
    kind = rule.WhichOneof("pattern")
    if kind is None:
        return {"method": "", "pattern": "", "body": rule.body}
    if kind == "custom":
        return {"method": rule.custom.kind, "pattern": rule.custom.path, "body": rule.body}
    return {"method": kind.upper(), "pattern": getattr(rule, kind), "body": rule.body}


def transform_http_rule(rule: Any) -> Dict[str, List[Dict[str, str]]]:
    """Flatten an HttpRule and its additional bindings into a rule list."""
    rules = [_http_rule(rule)]
    for binding in rule.additional_bindings:
        rules.append(_http_rule(binding))
    return {"rules": rules}


default_registry = ExtensionRegistry()
default_registry.register(HTTP_RULE_EXTENSION, transform_http_rule)
