"""
Exception types raised by the closura dispatch engine.

Every error carries the structured data it was built from (method name,
receiver type, argument types, ...) so callers can inspect it, and renders
its message from a Mustache template.
"""

from typing import Any, List, Optional, Sequence

import pystache

_renderer = pystache.Renderer(escape=lambda u: u)


def render(template: str, context: dict) -> str:
    return _renderer.render(template, context)


def _fmt(obj) -> str:
    from closura.closura_printer import Printer
    return Printer().pformat(obj)


class ClosuraError(Exception):
    """Base class for all closura errors."""
    template = "{{message}}"

    def __init__(self, **context: Any):
        self.context = context
        super().__init__(render(self.template, context))


class MissingMethod(ClosuraError):
    """No variant, surface method or delegation target accepted the call."""
    template = (
        "No signature of method: {{receiver}}.{{method}}() is applicable "
        "for argument types: {{args}}{{#sender}} (called from {{sender}}){{/sender}}"
    )

    def __init__(self, method: str, receiver_type: Any, arg_types: Sequence[Any] = (), sender: Any = None):
        self.method = method
        self.receiver_type = receiver_type
        self.arg_types = tuple(arg_types)
        self.sender = sender
        super().__init__(
            method=method,
            receiver=_fmt(receiver_type),
            args=_fmt(self.arg_types),
            sender=_fmt(sender) if sender is not None else None,
        )


class MissingProperty(ClosuraError):
    template = "No such property: {{name}} for class: {{receiver}}"

    def __init__(self, name: str, receiver_type: Any):
        self.name = name
        self.receiver_type = receiver_type
        super().__init__(name=name, receiver=_fmt(receiver_type))


class AmbiguousOverload(ClosuraError, TypeError):
    template = (
        "Ambiguous method overloading for method {{receiver}}#{{method}}.\n"
        "Cannot resolve which method to invoke for {{args}} due to overlapping prototypes between:"
        "{{#signatures}}\n\t{{.}}{{/signatures}}"
    )

    def __init__(self, method: str, receiver_type: Any, arg_types: Sequence[Any], signatures: List[Any]):
        self.method = method
        self.receiver_type = receiver_type
        self.arg_types = tuple(arg_types)
        self.signatures = list(signatures)
        super().__init__(
            method=method,
            receiver=_fmt(receiver_type),
            args=_fmt(self.arg_types),
            signatures=[_fmt(s) for s in self.signatures],
        )


class InvalidReceiver(ClosuraError, ValueError):
    template = "Cannot invoke method: {{method}} on null object"

    def __init__(self, method: Optional[str]):
        self.method = method
        super().__init__(method=method or "<unknown>")


class InitializationFailure(ClosuraError, RuntimeError):
    template = "Should have an invocation adapter for {{receiver}}"

    def __init__(self, receiver_type: Any):
        self.receiver_type = receiver_type
        super().__init__(receiver=_fmt(receiver_type))


class ConfigError(ClosuraError, ValueError):
    template = "Invalid configuration: {{message}}"

    def __init__(self, message: str):
        super().__init__(message=message)


__all__ = [
    "ClosuraError",
    "MissingMethod",
    "MissingProperty",
    "AmbiguousOverload",
    "InvalidReceiver",
    "InitializationFailure",
    "ConfigError",
]
