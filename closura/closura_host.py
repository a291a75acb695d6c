"""
The host object model consumed by the dispatch engine.

Everything here is plain Python introspection: static method lookup on
modules, classes and instances, generic property access, declared-field
enumeration with raw field accessors, and the invocation adapter that
finally calls a chosen variant. Replace or subclass HostObjectModel to run
the engine over a different object model.
"""
import inspect
import threading
import types
import typing
import collections.abc
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from closura.closura_datatypes import DynamicObject
from closura.closura_errors import MissingProperty
from closura.closura_types import Variant, is_valid_variant, signature_of

_DESCRIPTOR_TYPES = (
    types.FunctionType,
    types.MethodDescriptorType,
    types.WrapperDescriptorType,
)


def _receiverless(fn: Callable) -> Callable:
    def body(_receiver, *args):
        return fn(*args)
    return body


class InvocationAdapter:
    """Transfers control into a chosen variant."""

    def __init__(self, owner_type: Optional[type] = None):
        self.owner_type = owner_type

    def invoke(self, variant: Variant, receiver: Any, args: Sequence[Any]):
        args = tuple(args)
        # foo() is the same as foo(None) for a unary variant without default.
        if not args and variant.arity == 1 and not variant.varargs and not variant.optional:
            args = (None,)
        return variant.body(receiver, *args)


class FieldAccessor:
    """Raw getter/setter for one declared field, bypassing __getattr__ hooks."""
    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name

    def get(self, obj: Any) -> Any:
        try:
            return object.__getattribute__(obj, self.name)
        except AttributeError:
            raise MissingProperty(self.name, type(obj)) from None

    def set(self, obj: Any, value: Any):
        object.__setattr__(obj, self.name, value)

    def __repr__(self) -> str:
        return f"<FieldAccessor {self.name}>"


def _is_classvar(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar"))
    return annotation is typing.ClassVar or typing.get_origin(annotation) is typing.ClassVar


class HostObjectModel:
    """Introspection and invocation services over Python objects."""

    def __init__(self):
        self._methods: Dict[Tuple[str, Any, str], Optional[Variant]] = {}
        self._lock = threading.Lock()
        self._adapter = InvocationAdapter()

    # --- Invocation ---
    def adapter_for(self, closure_type: type, variants: Sequence[Variant]) -> Optional[InvocationAdapter]:
        """Returns the adapter used for every variant of a closure type."""
        return InvocationAdapter(closure_type)

    def invoke(self, variant: Variant, receiver: Any, args: Sequence[Any]):
        return self._adapter.invoke(variant, receiver, args)

    def supports_dynamic(self, target: Any) -> bool:
        return isinstance(target, DynamicObject)

    def invoke_dynamic(self, target: Any, name: str, args: Sequence[Any]):
        return target.invoke_method(name, tuple(args))

    # --- Static method lookup ---
    def pick_method(self, target: Any, name: str, arg_types: Sequence[Optional[type]], coerce: bool = False) -> Optional[Variant]:
        """The method `name` of target if it structurally accepts arg_types."""
        if not name or name.startswith("_"):
            return None
        variant = self.method_variant(target, name)
        if variant is not None and is_valid_variant(variant, arg_types, coerce):
            return variant
        return None

    def method_variant(self, target: Any, name: str) -> Optional[Variant]:
        if isinstance(target, types.ModuleType):
            key = ("module", target, name)
        elif isinstance(target, type):
            key = ("class", target, name)
        else:
            key = ("instance", type(target), name)
        with self._lock:
            if key in self._methods:
                return self._methods[key]
        variant = self._build_variant(key[0], key[1], name)
        with self._lock:
            return self._methods.setdefault(key, variant)

    def _build_variant(self, kind: str, where: Any, name: str) -> Optional[Variant]:
        if kind == "module":
            fn = where.__dict__.get(name)
            if not callable(fn) or isinstance(fn, type):
                return None
            return signature_of(fn, name=name, skip_first=False, body=_receiverless(fn))

        raw = inspect.getattr_static(where, name, None)
        if isinstance(raw, staticmethod):
            fn = raw.__func__
            return signature_of(fn, name=name, skip_first=False, body=_receiverless(fn), declaring_type=where)
        if isinstance(raw, classmethod):
            fn = raw.__func__
            if kind == "class":
                body = _receiverless(getattr(where, name))
            else:
                def body(receiver, *args):
                    return fn(type(receiver), *args)
            return signature_of(fn, name=name, body=body, declaring_type=where)
        if kind == "instance" and isinstance(raw, _DESCRIPTOR_TYPES):
            return signature_of(raw, name=name, declaring_type=where)
        return None

    # --- Properties ---
    def get_property(self, target: Any, name: str) -> Any:
        if isinstance(target, DynamicObject):
            return target.get_property(name)
        if isinstance(target, collections.abc.Mapping):
            try:
                return target[name]
            except KeyError:
                raise MissingProperty(name, type(target)) from None
        try:
            return getattr(target, name)
        except AttributeError:
            raise MissingProperty(name, type(target)) from None

    def set_property(self, target: Any, name: str, value: Any):
        if isinstance(target, DynamicObject):
            target.set_property(name, value)
        elif isinstance(target, collections.abc.MutableMapping):
            target[name] = value
        else:
            try:
                setattr(target, name, value)
            except AttributeError:
                raise MissingProperty(name, type(target)) from None

    # --- Fields ---
    def declared_fields(self, cls: type) -> List[str]:
        """Fields declared in the class body itself: __slots__ and annotations."""
        names: List[str] = []
        slots = cls.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for slot in slots:
            if slot not in ("__dict__", "__weakref__") and slot not in names:
                names.append(slot)
        for field_name, annotation in inspect.get_annotations(cls).items():
            if not _is_classvar(annotation) and field_name not in names:
                names.append(field_name)
        return names

    def field_accessor(self, cls: type, name: str) -> FieldAccessor:
        return FieldAccessor(name)


__all__ = [
    "HostObjectModel",
    "InvocationAdapter",
    "FieldAccessor",
]
