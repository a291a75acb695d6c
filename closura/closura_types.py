"""
Runtime-type introspection for the dispatch engine.

Defines the Variant record (one implementation body plus its parameter
signature), the compatibility test used to filter candidates and the
parameter distance used to rank them.

Distances are integers where lower is more specific:
  - identical type                     0
  - real base class at MRO index i     i * STEP
  - virtual (ABC-registered) base      just under the distance of `object`
  - numeric widening (coercion only)   between a virtual base and `object`
  - absent argument (None)             generality of the parameter; `object` is 0
"""

import inspect
import types
import typing
from dataclasses import dataclass, field
from decimal import Decimal
from fractions import Fraction
from typing import Any, Callable, Optional, Sequence, Tuple

# The "any" marker: every argument is compatible with it.
ANY = object

STEP = 3
VARARGS_PENALTY = 1 << 20

# Widening conversions allowed when numeric coercion is requested.
_WIDENING = {
    int: (float, complex, Decimal, Fraction),
    Fraction: (float, complex),
    float: (complex,),
}


@dataclass(frozen=True)
class Variant:
    """One concrete implementation body and its ordered parameter signature.

    When `varargs` is set, the last entry of `param_types` is the element type
    of the variadic tail. `optional` counts trailing fixed parameters that carry
    a default value.
    """
    name: str
    param_types: Tuple[Any, ...]
    body: Callable = field(compare=False, repr=False)
    varargs: bool = False
    optional: int = 0
    declaring_type: Optional[type] = field(default=None, compare=False)

    @property
    def arity(self) -> int:
        return len(self.param_types)

    @property
    def fixed_types(self) -> Tuple[Any, ...]:
        return self.param_types[:-1] if self.varargs else self.param_types

    @property
    def element_type(self) -> Any:
        return self.param_types[-1] if self.varargs else None

    def is_all_any(self, upto: Optional[int] = None) -> bool:
        """True if every slot before `upto` (default: all) is the any marker."""
        slots = self.param_types if upto is None else self.param_types[:upto]
        return all(t is ANY for t in slots)


def type_of(value: Any) -> Optional[type]:
    """Runtime type of a value; an absent value (None) has no type."""
    return None if value is None else type(value)


def types_of(values: Sequence[Any]) -> Tuple[Optional[type], ...]:
    return tuple(type_of(v) for v in values)


def _widens(arg_type: type, param_type: Any) -> bool:
    for base in arg_type.__mro__:
        if param_type in _WIDENING.get(base, ()):
            return True
    return False


def is_compatible(param_type: Any, arg_type: Optional[type], coerce: bool = False) -> bool:
    if arg_type is None or param_type is ANY:
        return True
    try:
        if issubclass(arg_type, param_type):
            return True
    except TypeError:
        return False
    return coerce and _widens(arg_type, param_type)


def type_distance(param_type: Any, arg_type: Optional[type]) -> int:
    if arg_type is None:
        return (len(param_type.__mro__) - 1) * STEP
    if param_type is arg_type:
        return 0
    mro = arg_type.__mro__
    if param_type in mro:
        return mro.index(param_type) * STEP
    object_distance = (len(mro) - 1) * STEP
    if issubclass(arg_type, param_type):
        return object_distance - 2
    return object_distance - 1


def parameter_distance(variant: Variant, arg_types: Sequence[Optional[type]]) -> int:
    fixed = variant.fixed_types
    total = 0
    for param_type, arg_type in zip(fixed, arg_types):
        total += type_distance(param_type, arg_type)
    if variant.varargs:
        total += VARARGS_PENALTY
        for arg_type in arg_types[len(fixed):]:
            total += type_distance(variant.element_type, arg_type)
    return total


def is_valid_variant(variant: Variant, arg_types: Sequence[Optional[type]], coerce: bool = False) -> bool:
    """Structural match: argument count and per-slot compatibility."""
    n = len(arg_types)
    if variant.varargs:
        fixed = variant.fixed_types
        if n < len(fixed):
            return False
        if not all(is_compatible(p, a, coerce) for p, a in zip(fixed, arg_types)):
            return False
        return all(is_compatible(variant.element_type, a, coerce) for a in arg_types[len(fixed):])
    params = variant.param_types
    # A unary variant may be invoked as if nullary.
    if n == 0 and len(params) == 1:
        return True
    if not (len(params) - variant.optional <= n <= len(params)):
        return False
    return all(is_compatible(p, a, coerce) for p, a in zip(params, arg_types))


def normalize_annotation(annotation: Any) -> Any:
    if annotation is inspect.Parameter.empty or annotation is Any or annotation is None:
        return ANY
    if isinstance(annotation, type):
        return annotation
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        members = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(members) == 1:
            return normalize_annotation(members[0])
        return ANY
    if isinstance(origin, type):
        return origin
    return ANY


def signature_of(fn: Callable, *, name: Optional[str] = None, skip_first: bool = True,
                 declaring_type: Optional[type] = None, body: Optional[Callable] = None) -> Variant:
    """Builds a Variant from a Python callable's signature and annotations.

    `skip_first` drops the receiver parameter of a plain function defined in a
    class body. Callables without an introspectable signature (some builtins)
    become a single variadic "any" slot.
    """
    name = name or getattr(fn, "__name__", "<callable>")
    body = body if body is not None else fn
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        return Variant(name, (ANY,), body, varargs=True, declaring_type=declaring_type)
    try:
        hints = typing.get_type_hints(fn)
    except Exception:
        # Unresolvable forward references: fall back to "any" for those slots.
        hints = {}

    params = list(sig.parameters.values())
    if skip_first and params and params[0].kind in (
        inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD
    ):
        params = params[1:]

    slots = []
    optional = 0
    varargs = False
    for p in params:
        annotation = hints.get(p.name, p.annotation if not isinstance(p.annotation, str) else inspect.Parameter.empty)
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            slots.append(normalize_annotation(annotation))
            if p.default is not inspect.Parameter.empty:
                optional += 1
        elif p.kind is inspect.Parameter.VAR_POSITIONAL:
            slots.append(normalize_annotation(annotation))
            varargs = True
    return Variant(name, tuple(slots), body, varargs=varargs, optional=optional, declaring_type=declaring_type)


__all__ = [
    "ANY",
    "Variant",
    "type_of",
    "types_of",
    "is_compatible",
    "type_distance",
    "parameter_distance",
    "is_valid_variant",
    "normalize_annotation",
    "signature_of",
]
