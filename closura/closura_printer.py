"""
A pretty-printer for the values that appear in dispatch diagnostics:
types, argument-type lists, variant signatures and closures.
"""
import collections.abc

from closura.closura_types import ANY, Variant
from closura.closura_datatypes import Closure, Scope, ResolveStrategy


class Printer:
    """Formats dispatch objects into short, readable strings."""

    def __init__(self, qualified=False):
        self._qualified = qualified
        self._handlers = self._create_handlers()

    def pformat(self, obj):
        """Public entry point to format an object."""
        handler = self._get_handler(obj)
        return handler(obj)

    def _get_handler(self, obj):
        """Dispatcher to find the correct formatting method."""
        if obj is None: return self._pformat_none
        if isinstance(obj, type): return self._pformat_type

        obj_type = type(obj)
        if obj_type in self._handlers:
            return self._handlers[obj_type]
        if isinstance(obj, Closure): return self._pformat_closure
        if isinstance(obj, collections.abc.Mapping): return self._pformat_dict
        # Default to Python's repr for unknown types
        return lambda o: repr(o)

    def _create_handlers(self):
        return {
            tuple: self._pformat_type_list,
            list: self._pformat_type_list,
            Variant: self._pformat_variant,
            ResolveStrategy: self._pformat_strategy,
            Scope: self._pformat_scope,
        }

    def _pformat_none(self, obj):
        return 'null'

    def _pformat_type(self, obj):
        if obj is ANY:
            return 'object'
        if not self._qualified or obj.__module__ == 'builtins':
            return obj.__qualname__
        return f"{obj.__module__}.{obj.__qualname__}"

    def _pformat_type_list(self, obj):
        return "[" + ", ".join(self.pformat(t) for t in obj) + "]"

    def _pformat_params(self, variant: Variant):
        parts = [self.pformat(t) for t in variant.param_types]
        if variant.varargs:
            parts[-1] = "*" + parts[-1]
        return "(" + ", ".join(parts) + ")"

    def _pformat_variant(self, obj):
        return f"{obj.name}{self._pformat_params(obj)}"

    def _pformat_strategy(self, obj):
        return obj.name

    def _pformat_closure(self, obj):
        return f"closure {self.pformat(type(obj))}"

    def _pformat_scope(self, obj):
        return "scope{" + ", ".join(obj.keys()) + "}"

    def _pformat_dict(self, obj):
        items = [f"{k}: {self.pformat(v)}" for k, v in obj.items()]
        return "#{" + ", ".join(items) + "}"
