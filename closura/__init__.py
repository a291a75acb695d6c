"""
closura: dynamic dispatch for first-class closures.

Picks the implementation body of a closure for the runtime types of a
call's arguments, and routes named calls to the closure's owner or
delegate according to its resolve strategy.
"""
from closura.closura_types import ANY, Variant
from closura.closura_errors import (
    ClosuraError, MissingMethod, MissingProperty, AmbiguousOverload,
    InvalidReceiver, InitializationFailure, ConfigError,
)
from closura.closura_datatypes import ResolveStrategy, call_variant, DynamicObject, Scope, Closure, CurriedClosure
from closura.closura_config import DispatchConfig, load_config
from closura.closura_host import HostObjectModel, InvocationAdapter
from closura.closura_selection import ChooserKind
from closura.closura_runtime import (
    DispatchTable, DispatchRegistry, initialize_registry, get_registry,
    invoke_method, get_attribute, set_attribute,
)

__all__ = [
    "ANY",
    "Variant",
    "ClosuraError",
    "MissingMethod",
    "MissingProperty",
    "AmbiguousOverload",
    "InvalidReceiver",
    "InitializationFailure",
    "ConfigError",
    "ResolveStrategy",
    "call_variant",
    "DynamicObject",
    "Scope",
    "Closure",
    "CurriedClosure",
    "DispatchConfig",
    "load_config",
    "HostObjectModel",
    "InvocationAdapter",
    "ChooserKind",
    "DispatchTable",
    "DispatchRegistry",
    "initialize_registry",
    "get_registry",
    "invoke_method",
    "get_attribute",
    "set_attribute",
]
