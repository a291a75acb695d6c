"""
Candidate selection for a closure's call operation.

A chooser is assigned once per closure type from the shape of its variant
catalog. The common shapes get constant-time choosers that only look at the
argument count; everything else goes through structural matching and, for
overloads, ranking by parameter distance.
"""
from enum import Enum
from typing import Any, List, Optional, Sequence

from closura.closura_errors import AmbiguousOverload
from closura.closura_types import ANY, Variant, is_valid_variant, parameter_distance

ArgTypes = Sequence[Optional[type]]


class ChooserKind(Enum):
    STANDARD = "standard"
    NO_ARG = "no_arg"
    UNARY_ANY = "unary_any"
    FIXED_ANY = "fixed_any"
    VARARGS_ANY = "varargs_any"
    SINGLE = "single"
    OVERLOAD = "overload"


class MethodChooser:
    """Picks one variant for a list of argument types, or None."""
    kind: ChooserKind
    __slots__ = ("variants",)

    def __init__(self, variants: Sequence[Variant]):
        self.variants = tuple(variants)

    def choose(self, arg_types: ArgTypes, coerce: bool = False) -> Optional[Variant]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} kind={self.kind.value} variants={len(self.variants)}>"


class StandardClosureChooser(MethodChooser):
    """A no-arg body plus a one-arg body taking anything (the implicit-parameter closure)."""
    kind = ChooserKind.STANDARD
    __slots__ = ("do_call0", "do_call1")

    def __init__(self, do_call0: Variant, do_call1: Variant):
        super().__init__((do_call0, do_call1))
        self.do_call0 = do_call0
        self.do_call1 = do_call1

    def choose(self, arg_types, coerce=False):
        if len(arg_types) == 0:
            return self.do_call0
        if len(arg_types) == 1:
            return self.do_call1
        return None


class NoArgChooser(MethodChooser):
    kind = ChooserKind.NO_ARG
    __slots__ = ()

    def choose(self, arg_types, coerce=False):
        return self.variants[0] if len(arg_types) == 0 else None


class UnaryAnyChooser(MethodChooser):
    kind = ChooserKind.UNARY_ANY
    __slots__ = ()

    def choose(self, arg_types, coerce=False):
        # < 2, because foo() is the same as foo(None)
        return self.variants[0] if len(arg_types) < 2 else None


class FixedAnyChooser(MethodChooser):
    """Every parameter takes anything, so only the count matters."""
    kind = ChooserKind.FIXED_ANY
    __slots__ = ()

    def choose(self, arg_types, coerce=False):
        return self.variants[0] if len(arg_types) == self.variants[0].arity else None


class VarargsAnyChooser(MethodChooser):
    """Leading parameters take anything and the variadic tail absorbs the rest."""
    kind = ChooserKind.VARARGS_ANY
    __slots__ = ("minimum",)

    def __init__(self, variants):
        super().__init__(variants)
        # Counts the tail and its neighbouring slot together, without a type check.
        self.minimum = self.variants[0].arity - 2

    def choose(self, arg_types, coerce=False):
        return self.variants[0] if len(arg_types) > self.minimum else None


class SingleVariantChooser(MethodChooser):
    kind = ChooserKind.SINGLE
    __slots__ = ()

    def choose(self, arg_types, coerce=False):
        variant = self.variants[0]
        return variant if is_valid_variant(variant, arg_types, coerce) else None


class OverloadChooser(MethodChooser):
    """General case: filter by structure, then rank by parameter distance."""
    kind = ChooserKind.OVERLOAD
    __slots__ = ("owner_type", "method_name")

    def __init__(self, variants, owner_type: Any = None, method_name: str = "do_call"):
        super().__init__(variants)
        self.owner_type = owner_type
        self.method_name = method_name

    def choose(self, arg_types, coerce=False):
        arg_types = tuple(arg_types)
        if len(arg_types) == 0:
            return self._choose_empty()
        if len(arg_types) == 1 and arg_types[0] is None:
            return self._choose_most_general_for_null()
        matching = [v for v in self.variants if is_valid_variant(v, arg_types, coerce)]
        if not matching:
            return None
        if len(matching) == 1:
            return matching[0]
        return self._choose_most_specific(matching, arg_types)

    def _choose_empty(self) -> Optional[Variant]:
        """Prefer bodies that take no arguments over ones that merely tolerate none."""
        defaulted = None
        variadic = None
        for v in self.variants:
            if v.varargs:
                if variadic is None and len(v.fixed_types) == 0:
                    variadic = v
            elif v.arity == 0:
                return v
            elif defaulted is None and v.optional == v.arity:
                defaulted = v
        return defaulted or variadic

    def _choose_most_general_for_null(self) -> Optional[Variant]:
        best = None
        for v in self.variants:
            if v.varargs or v.arity == 0 or v.arity - v.optional > 1:
                continue
            if best is None or issubclass(best.param_types[0], v.param_types[0]):
                best = v
        if best is not None:
            return best
        for v in self.variants:
            if v.varargs and len(v.fixed_types) <= 1:
                return v
        return None

    def _choose_most_specific(self, matching: List[Variant], arg_types) -> Variant:
        best_distance = None
        ties: List[Variant] = []
        for v in matching:
            dist = parameter_distance(v, arg_types)
            if dist == 0:
                return v
            if best_distance is None or dist < best_distance:
                best_distance = dist
                ties = [v]
            elif dist == best_distance:
                ties.append(v)
        if len(ties) == 1:
            return ties[0]
        raise AmbiguousOverload(self.method_name, self.owner_type, arg_types, ties)


def _plain(v: Variant) -> bool:
    return not v.varargs and not v.optional


def assign_chooser(variants: Sequence[Variant], owner_type: Any = None) -> MethodChooser:
    """Selects the chooser for a catalog once, from its shape."""
    variants = tuple(variants)
    if len(variants) == 1:
        v = variants[0]
        if v.optional:
            return SingleVariantChooser(variants)
        if v.arity == 0:
            return NoArgChooser(variants)
        if v.arity == 1 and not v.varargs and v.param_types[0] is ANY:
            return UnaryAnyChooser(variants)
        if v.is_all_any(v.arity - 1) and v.param_types[-1] is ANY:
            return VarargsAnyChooser(variants) if v.varargs else FixedAnyChooser(variants)
        return SingleVariantChooser(variants)
    if len(variants) == 2:
        m0 = m1 = None
        for v in variants:
            if _plain(v) and v.arity == 0:
                m0 = v
            elif _plain(v) and v.arity == 1 and v.param_types[0] is ANY:
                m1 = v
        if m0 is not None and m1 is not None:
            return StandardClosureChooser(m0, m1)
    return OverloadChooser(variants, owner_type)


__all__ = [
    "ChooserKind",
    "MethodChooser",
    "StandardClosureChooser",
    "NoArgChooser",
    "UnaryAnyChooser",
    "FixedAnyChooser",
    "VarargsAnyChooser",
    "SingleVariantChooser",
    "OverloadChooser",
    "assign_chooser",
]
