"""
Dispatch tables and the registry that owns them.

One DispatchTable exists per closure type. It is built once, on the first
dispatch request for that type, and is read-only afterwards: the variant
catalog, the chooser picked from the catalog's shape, and the invocation
adapter obtained from the host. The attribute accessor cache is built
separately, on first attribute access.
"""

import threading
import types
from typing import Any, Dict, List, Optional, Sequence, Tuple

from closura.closura_accessors import AttributeAccessorCache
from closura.closura_config import DispatchConfig, dbg, load_config
from closura.closura_datatypes import Closure, DynamicObject
from closura.closura_delegation import DelegationResolver
from closura.closura_errors import InitializationFailure, InvalidReceiver, MissingMethod
from closura.closura_host import HostObjectModel, InvocationAdapter
from closura.closura_selection import MethodChooser, assign_chooser
from closura.closura_types import Variant, is_valid_variant, signature_of, types_of

CALL_ALIASES = ("call", "do_call")
CURRY_ALIAS = "curry"

ArgTypes = Sequence[Optional[type]]


def _late_bound(name: str):
    # Resolve on the receiver so subclass overrides of surface methods apply.
    def body(receiver, *args):
        return getattr(receiver, name)(*args)
    return body


class ClosureSurface:
    """The fixed built-in methods every closure answers, whatever its owner or delegate.

    A single instance is built by the registry, initialized once, and shared
    by reference with every dispatch table.
    """

    def __init__(self, host: HostObjectModel):
        self.host = host
        self._methods: Dict[str, Variant] = {}
        self._initialized = False

    def initialize(self) -> "ClosureSurface":
        if self._initialized:
            return self
        for name, member in vars(Closure).items():
            if name.startswith("_") or name in CALL_ALIASES:
                continue
            if isinstance(member, types.FunctionType):
                self._methods[name] = signature_of(member, name=name, declaring_type=Closure, body=_late_bound(name))
        self._initialized = True
        return self

    def names(self) -> List[str]:
        return list(self._methods)

    def pick(self, name: str, arg_types: ArgTypes, coerce: bool = False) -> Optional[Variant]:
        variant = self._methods.get(name)
        if variant is not None and is_valid_variant(variant, arg_types, coerce):
            return variant
        return None

    def invoke(self, variant: Variant, receiver: Any, args: Sequence[Any]):
        return self.host.invoke(variant, receiver, args)


class DispatchTable:
    """Per-closure-type catalog, chooser, adapter and accessor cache."""

    def __init__(self, closure_type: type, registry: "DispatchRegistry"):
        self.closure_type = closure_type
        self.registry = registry
        self.host = registry.host
        self.surface = registry.surface
        self.config = registry.config
        self.catalog: Tuple[Variant, ...] = ()
        self.chooser: Optional[MethodChooser] = None
        self.adapter: Optional[InvocationAdapter] = None
        self.accessors = AttributeAccessorCache(closure_type, self.host)
        self._initialized = False
        self._lock = threading.Lock()

    def _dbg(self, *parts):
        dbg(self.config, *parts)

    @property
    def initialized(self) -> bool:
        return self._initialized

    def ensure_initialized(self):
        if self._initialized:
            return
        with self._lock:
            if self._initialized:
                return
            catalog = tuple(self._collect_variants())
            chooser = assign_chooser(catalog, self.closure_type)
            adapter = self.host.adapter_for(self.closure_type, catalog)
            if adapter is None:
                raise InitializationFailure(self.closure_type)
            self.catalog = catalog
            self.chooser = chooser
            self.adapter = adapter
            self._initialized = True
            self._dbg("init", self.closure_type.__name__, "variants", len(catalog), "chooser", chooser.kind.value)

    def _collect_variants(self) -> List[Variant]:
        found: Dict[str, Tuple[type, Any]] = {}
        for klass in reversed(self.closure_type.__mro__):
            if klass is Closure or not issubclass(klass, Closure):
                continue
            for attr_name, member in vars(klass).items():
                if getattr(member, "_is_call_variant", False):
                    found[attr_name] = (klass, member)
                else:
                    # A plain redefinition hides the inherited variant.
                    found.pop(attr_name, None)
        return [signature_of(member, name=attr_name, declaring_type=klass)
                for attr_name, (klass, member) in found.items()]

    # --- Call operation ---
    def select(self, arg_types: ArgTypes, coerce: Optional[bool] = None) -> Optional[Variant]:
        self.ensure_initialized()
        if coerce is None:
            coerce = self.config.coerce_numerics
        return self.chooser.choose(tuple(arg_types), coerce)

    def pick_method(self, name: str, arg_types: ArgTypes) -> Optional[Variant]:
        if name in CALL_ALIASES:
            return self.select(arg_types)
        return self.surface.pick(name, arg_types, self.config.coerce_numerics)

    def invoke_variant(self, variant: Variant, receiver: Any, args: Sequence[Any]):
        return self.adapter.invoke(variant, receiver, args)

    def invoke_method(self, receiver: Any, name: str, args: Sequence[Any] = (), sender: Any = None):
        if receiver is None:
            raise InvalidReceiver(name)
        self.ensure_initialized()
        args = tuple(args)
        arg_types = types_of(args)
        self._dbg("invoke", self.closure_type.__name__, name, "argc", len(args))

        if name in CALL_ALIASES:
            variant = self.select(arg_types)
            if variant is None:
                raise MissingMethod(name, self.closure_type, arg_types, sender)
            return self.adapter.invoke(variant, receiver, args)
        if name == CURRY_ALIAS:
            return receiver.curry(*args)

        variant = self.surface.pick(name, arg_types, self.config.coerce_numerics)
        if variant is not None:
            return self.surface.invoke(variant, receiver, args)
        return self.registry.resolver.invoke(receiver, name, args, arg_types, sender)

    def parameter_types(self) -> Tuple[Any, ...]:
        """Signature of the widest variant."""
        self.ensure_initialized()
        if not self.catalog:
            return ()
        return max(self.catalog, key=lambda v: v.arity).param_types

    # --- Attributes ---
    def get_attribute(self, receiver: Any, name: str) -> Any:
        if receiver is None:
            raise InvalidReceiver(name)
        return self.accessors.get(receiver, name)

    def set_attribute(self, receiver: Any, name: str, value: Any):
        if receiver is None:
            raise InvalidReceiver(name)
        self.accessors.set(receiver, name, value)

    def __repr__(self) -> str:
        state = self.chooser.kind.value if self._initialized else "uninitialized"
        return f"<DispatchTable {self.closure_type.__name__} {state}>"


class DispatchRegistry:
    """Owns one DispatchTable per closure type, plus the shared services they use."""

    def __init__(self, host: Optional[HostObjectModel] = None, config: Optional[DispatchConfig] = None):
        self.host = host if host is not None else HostObjectModel()
        self.config = config if config is not None else load_config()
        self.surface = ClosureSurface(self.host).initialize()
        self.resolver = DelegationResolver(self)
        self._tables: Dict[type, DispatchTable] = {}
        self._lock = threading.Lock()

    def _dbg(self, *parts):
        dbg(self.config, *parts)

    def table_for(self, closure_type: type) -> DispatchTable:
        table = self._tables.get(closure_type)
        if table is None:
            if not (isinstance(closure_type, type) and issubclass(closure_type, Closure)):
                raise TypeError(f"Not a closure type: {closure_type!r}")
            with self._lock:
                table = self._tables.get(closure_type)
                if table is None:
                    table = DispatchTable(closure_type, self)
                    self._tables[closure_type] = table
        table.ensure_initialized()
        return table

    def __contains__(self, closure_type: type) -> bool:
        return closure_type in self._tables

    def __len__(self) -> int:
        return len(self._tables)


# ===================================================================
# Process-wide registry
# ===================================================================

_registry: Optional[DispatchRegistry] = None
_registry_lock = threading.Lock()


def initialize_registry(host: Optional[HostObjectModel] = None, config: Optional[DispatchConfig] = None) -> DispatchRegistry:
    """Builds the process-wide registry, replacing any previous one."""
    global _registry
    with _registry_lock:
        _registry = DispatchRegistry(host, config)
        return _registry


def get_registry() -> DispatchRegistry:
    """The process-wide registry, built with defaults on first use."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = DispatchRegistry()
    return _registry


def invoke_method(receiver: Any, name: str, *args):
    """Invoke `name` on any receiver: closures, dynamic objects or plain objects."""
    if receiver is None:
        raise InvalidReceiver(name)
    registry = get_registry()
    if isinstance(receiver, Closure):
        return registry.table_for(type(receiver)).invoke_method(receiver, name, args)
    if isinstance(receiver, DynamicObject):
        return receiver.invoke_method(name, args)
    arg_types = types_of(args)
    variant = registry.host.pick_method(receiver, name, arg_types, registry.config.coerce_numerics)
    if variant is None:
        raise MissingMethod(name, type(receiver), arg_types)
    return registry.host.invoke(variant, receiver, args)


def get_attribute(receiver: Any, name: str) -> Any:
    if receiver is None:
        raise InvalidReceiver(name)
    if isinstance(receiver, Closure):
        return get_registry().table_for(type(receiver)).get_attribute(receiver, name)
    return get_registry().host.get_property(receiver, name)


def set_attribute(receiver: Any, name: str, value: Any):
    if receiver is None:
        raise InvalidReceiver(name)
    if isinstance(receiver, Closure):
        get_registry().table_for(type(receiver)).set_attribute(receiver, name, value)
    else:
        get_registry().host.set_property(receiver, name, value)


__all__ = [
    "CALL_ALIASES",
    "CURRY_ALIAS",
    "ClosureSurface",
    "DispatchTable",
    "DispatchRegistry",
    "initialize_registry",
    "get_registry",
    "invoke_method",
    "get_attribute",
    "set_attribute",
]
