"""
Defines the core runtime types for closura.

This module provides the closure value itself, the resolution strategies
that steer delegation, and Scope, the expando-style dynamic object closures
are usually owned by.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Dict, Any, Optional, Sequence
import collections.abc

from closura.closura_errors import MissingMethod, MissingProperty
from closura.closura_types import types_of


class ResolveStrategy(Enum):
    """Where a named call that the closure cannot answer itself is sent."""
    SELF = "self"
    OWNER_FIRST = "owner_first"
    OWNER_ONLY = "owner_only"
    DELEGATE_FIRST = "delegate_first"
    DELEGATE_ONLY = "delegate_only"

    @classmethod
    def coerce(cls, value) -> "ResolveStrategy":
        """Accepts a member, its value or its name (any case)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower().replace("-", "_")
            for member in cls:
                if member.value == key:
                    return member
        raise ValueError(f"Unknown resolve strategy: {value!r}")


def call_variant(func):
    """A decorator marking a method as one implementation of a closure's call operation."""
    func._is_call_variant = True
    return func


# =================================================================
# Abstract Base Classes
# =================================================================

class DynamicObject(ABC):
    """The required base class for objects that accept method calls by name.

    Only dynamic objects are eligible for by-name invocation when a closure
    delegates a call that no static method satisfies.
    """

    @abstractmethod
    def invoke_method(self, name: str, args: Sequence[Any] = ()): raise NotImplementedError
    @abstractmethod
    def get_property(self, name: str): raise NotImplementedError
    @abstractmethod
    def set_property(self, name: str, value: Any): raise NotImplementedError


# =================================================================
# Core Runtime Types
# =================================================================

class Scope(DynamicObject):
    """A dynamic object with prototype parent and mixins.

    Bindings are looked up on the instance, then its mixins, then the
    parent chain. A binding holding a closure or any Python callable can be
    invoked by name, which makes a Scope a natural owner or delegate.
    """
    def __init__(self, parent: Optional['Scope'] = None, **bindings: Any):
        self.bindings: Dict[str, Any] = dict(bindings)
        self.meta: Dict[str, Any] = {
            "parent": parent,
            "mixins": []  # List[Scope]
        }

    def __setitem__(self, key: str, value: Any):
        if not isinstance(key, str):
            raise TypeError(f"Scope key must be a str, not {type(key)}")
        self.bindings[key] = value

    def __getitem__(self, key: str) -> Any:
        owner = self.find_owner(key) if isinstance(key, str) else None
        if owner:
            return owner.bindings[key]
        raise KeyError(f"'{key}'")

    def __delitem__(self, key: str):
        if key not in self.bindings:
            raise KeyError(f"'{key}'")
        del self.bindings[key]

    def __contains__(self, key: Any) -> bool:
        """Checks if a key exists in this Scope or its prototypes."""
        if isinstance(key, str):
            return self.find_owner(key) is not None
        return False

    def find_owner(self, key: str) -> Optional['Scope']:
        """Finds the Scope in the lookup chain (self → mixins → parent) that owns key."""
        if key in self.bindings:
            return self
        for mixin in self.meta.get("mixins", []):
            owner = mixin.find_owner(key)
            if owner is not None:
                return owner
        parent = self.meta.get("parent")
        if parent:
            return parent.find_owner(key)
        return None

    def get(self, key: str, default: Any = None) -> Any:
        owner = self.find_owner(key) if isinstance(key, str) else None
        if owner:
            return owner.bindings[key]
        return default

    def inherit(self, parent: 'Scope'):
        """Sets the prototype parent once. Raises if already set."""
        if self.meta.get("parent") is not None:
            raise ValueError("inherit can only be called once on a scope (parent already set).")
        self.meta["parent"] = parent

    def add_mixin(self, *sources: 'Scope'):
        """Adds one or more mixin scopes, preserving order and avoiding duplicates."""
        mixins: List['Scope'] = self.meta.setdefault("mixins", [])
        for src in sources:
            if src not in mixins:
                mixins.append(src)

    @property
    def parent(self) -> Optional['Scope']:
        return self.meta.get("parent")

    @property
    def mixins(self) -> List['Scope']:
        return self.meta.setdefault("mixins", [])

    def keys(self) -> collections.abc.KeysView:
        """Returns a view of keys in the current scope only."""
        return self.bindings.keys()

    # --- DynamicObject protocol ---
    def invoke_method(self, name: str, args: Sequence[Any] = ()):
        args = tuple(args)
        owner = self.find_owner(name)
        if owner is not None:
            fn = owner.bindings[name]
            if callable(fn):
                return fn(*args)
        raise MissingMethod(name, type(self), types_of(args))

    def get_property(self, name: str):
        owner = self.find_owner(name)
        if owner is None:
            raise MissingProperty(name, type(self))
        return owner.bindings[name]

    def set_property(self, name: str, value: Any):
        self[name] = value

    def __repr__(self) -> str:
        keys = ', '.join(self.bindings.keys())
        parent_id = f", parent=#{id(self.parent)}" if self.parent else ""
        return f"<Scope bindings=[{keys}]{parent_id}>"


class Closure(DynamicObject):
    """A first-class callable value with an owner, a delegate and a resolve strategy.

    Subclasses declare the bodies of their call operation with `@call_variant`;
    the closure type's dispatch table picks one per call from the runtime
    types of the arguments. Named calls the closure cannot answer itself are
    routed to the owner and/or delegate according to `resolve_strategy`.
    """
    def __init__(self, owner: Any, delegate: Any = None, resolve_strategy: Any = None):
        if owner is None:
            raise ValueError("A closure must have an owner.")
        self._owner = owner
        self._delegate = owner if delegate is None else delegate
        if resolve_strategy is None:
            from closura.closura_runtime import get_registry
            resolve_strategy = get_registry().config.default_resolve_strategy
        self._resolve_strategy = ResolveStrategy.coerce(resolve_strategy)

    @property
    def owner(self) -> Any:
        return self._owner

    @property
    def delegate(self) -> Any:
        return self._delegate

    @delegate.setter
    def delegate(self, value: Any):
        self._delegate = value

    @property
    def resolve_strategy(self) -> ResolveStrategy:
        return self._resolve_strategy

    @resolve_strategy.setter
    def resolve_strategy(self, value: Any):
        self._resolve_strategy = ResolveStrategy.coerce(value)

    def _table(self):
        from closura.closura_runtime import get_registry
        return get_registry().table_for(type(self))

    def call(self, *args):
        return self._table().invoke_method(self, "call", args)

    def __call__(self, *args):
        return self.call(*args)

    def curry(self, *args) -> 'CurriedClosure':
        return CurriedClosure(self, args)

    def parameter_types(self) -> tuple:
        return self._table().parameter_types()

    def maximum_number_of_parameters(self) -> int:
        return len(self.parameter_types())

    # --- DynamicObject protocol ---
    def invoke_method(self, name: str, args: Sequence[Any] = ()):
        return self._table().invoke_method(self, name, tuple(args))

    def get_property(self, name: str):
        try:
            return getattr(self, name)
        except AttributeError:
            raise MissingProperty(name, type(self)) from None

    def set_property(self, name: str, value: Any):
        try:
            setattr(self, name, value)
        except AttributeError:
            raise MissingProperty(name, type(self)) from None

    def get_attribute(self, name: str):
        return self._table().get_attribute(self, name)

    def set_attribute(self, name: str, value: Any):
        self._table().set_attribute(self, name, value)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} owner={type(self._owner).__name__} strategy={self._resolve_strategy.name}>"


class CurriedClosure(Closure):
    """A closure with leading arguments already bound."""
    uncurried: Closure
    curried: tuple

    def __init__(self, closure: Closure, curried: Sequence[Any]):
        super().__init__(closure.owner, closure.delegate, closure.resolve_strategy)
        self.uncurried = closure
        self.curried = tuple(curried)

    @Closure.delegate.setter
    def delegate(self, value: Any):
        self._delegate = value
        self.uncurried.delegate = value

    def parameter_types(self) -> tuple:
        return self.uncurried.parameter_types()[len(self.curried):]

    @call_variant
    def do_call(self, *args):
        return self.uncurried.call(*self.curried, *args)

    def __repr__(self) -> str:
        return f"<CurriedClosure of {self.uncurried!r} with {len(self.curried)} bound>"


__all__ = [
    "ResolveStrategy",
    "call_variant",
    "DynamicObject",
    "Scope",
    "Closure",
    "CurriedClosure",
]
