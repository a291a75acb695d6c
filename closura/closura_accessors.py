"""
Per-type cache of raw field accessors for direct attribute get/set on
closure instances.
"""
import threading
from typing import Any, Dict, Optional

from closura.closura_host import FieldAccessor, HostObjectModel

# Placeholder entry recorded first so a concurrent second build sees a non-empty map.
_BUILDING = "!"


class AttributeAccessorCache:
    """Field name → accessor, built on first attribute access and then read-only."""

    def __init__(self, owner_type: type, host: HostObjectModel):
        self.owner_type = owner_type
        self.host = host
        self._accessors: Dict[str, Optional[FieldAccessor]] = {}
        self._done = False
        self._lock = threading.Lock()

    def _build(self):
        with self._lock:
            if self._accessors:
                return
            self._accessors[_BUILDING] = None
            try:
                for name in self.host.declared_fields(self.owner_type):
                    self._accessors[name] = self.host.field_accessor(self.owner_type, name)
            except Exception:
                self._accessors.clear()
                raise
            self._done = True

    def lookup(self, name: str) -> Optional[FieldAccessor]:
        if not self._done:
            self._build()
        return self._accessors.get(name)

    @property
    def built(self) -> bool:
        return self._done

    def field_names(self):
        if not self._done:
            self._build()
        return [n for n in self._accessors if n != _BUILDING]

    def get(self, obj: Any, name: str) -> Any:
        accessor = self.lookup(name)
        if accessor is None:
            return self.host.get_property(obj, name)
        return accessor.get(obj)

    def set(self, obj: Any, name: str, value: Any):
        accessor = self.lookup(name)
        if accessor is None:
            self.host.set_property(obj, name, value)
        else:
            accessor.set(obj, value)


__all__ = ["AttributeAccessorCache"]
