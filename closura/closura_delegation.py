"""
Routing of named calls a closure cannot answer itself.

The order in which owner and delegate are probed is a pure function of the
resolve strategy; the probing loop below does not know about strategies.
"""
from typing import Any, Dict, List, Optional, Sequence, Tuple

from closura.closura_datatypes import Closure, ResolveStrategy
from closura.closura_errors import MissingMethod, MissingProperty
from closura.closura_types import Variant

ArgTypes = Sequence[Optional[type]]

DELEGATION_ORDER: Dict[ResolveStrategy, Tuple[str, ...]] = {
    ResolveStrategy.SELF: (),
    ResolveStrategy.DELEGATE_ONLY: ("delegate",),
    ResolveStrategy.OWNER_ONLY: ("owner",),
    ResolveStrategy.DELEGATE_FIRST: ("delegate", "owner"),
    ResolveStrategy.OWNER_FIRST: ("owner", "delegate"),
}


def delegation_order(strategy: ResolveStrategy) -> Tuple[str, ...]:
    return DELEGATION_ORDER[strategy]


def delegation_targets(closure: Closure) -> List[Any]:
    """Receivers to probe, in order; never the closure itself, never the same object twice."""
    targets: List[Any] = []
    for role in delegation_order(closure.resolve_strategy):
        target = closure.owner if role == "owner" else closure.delegate
        if target is None or target is closure:
            continue
        if any(target is seen for seen in targets):
            continue
        targets.append(target)
    return targets


class DelegationResolver:
    """Sends a named call to owner and/or delegate, with a property-closure fallback."""

    def __init__(self, registry):
        self.registry = registry
        self.host = registry.host

    def _dbg(self, *parts):
        self.registry._dbg(*parts)

    def pick(self, target: Any, name: str, arg_types: ArgTypes) -> Optional[Tuple[Variant, Any]]:
        """Static lookup of `name` on one target, as (variant, invoker)."""
        coerce = self.registry.config.coerce_numerics
        if isinstance(target, Closure):
            table = self.registry.table_for(type(target))
            variant = table.pick_method(name, arg_types)
            return (variant, table.invoke_variant) if variant is not None else None
        variant = self.host.pick_method(target, name, arg_types, coerce)
        return (variant, self.host.invoke) if variant is not None else None

    def invoke(self, closure: Closure, name: str, args: Tuple[Any, ...], arg_types: ArgTypes, sender: Any = None):
        targets = delegation_targets(closure)
        self._dbg("delegate", type(closure).__name__, name, closure.resolve_strategy.name,
                  "targets", [type(t).__name__ for t in targets])

        for target in targets:
            picked = self.pick(target, name, arg_types)
            if picked is not None:
                variant, invoker = picked
                self._dbg("static match", variant.name, "on", type(target).__name__)
                return invoker(variant, target, args)

        first_missing: Optional[MissingMethod] = None
        for target in targets:
            if not self.host.supports_dynamic(target):
                continue
            try:
                return self.host.invoke_dynamic(target, name, args)
            except MissingMethod as e:
                self._dbg("dynamic miss", name, "on", type(target).__name__)
                if first_missing is None:
                    first_missing = e

        # A field holding a closure acts as a method.
        try:
            value = self.host.get_property(closure, name)
        except MissingProperty:
            value = None
        if isinstance(value, Closure) and value is not closure:
            self._dbg("property closure", name, "on", type(closure).__name__)
            table = self.registry.table_for(type(value))
            try:
                return table.invoke_method(value, "do_call", args, sender=closure)
            except MissingMethod as e:
                if first_missing is None:
                    raise
                self._dbg("property closure miss", name, "on", type(value).__name__)
                raise first_missing from e

        if first_missing is not None:
            raise first_missing
        raise MissingMethod(name, type(closure), arg_types, sender)


__all__ = [
    "DELEGATION_ORDER",
    "delegation_order",
    "delegation_targets",
    "DelegationResolver",
]
